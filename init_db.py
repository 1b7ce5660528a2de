"""Print the Supabase schema for tests, questions, attempts and answer records."""

# SQL schema
SCHEMA_SQL = """
-- Test catalogue
CREATE TABLE IF NOT EXISTS tests (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    title TEXT NOT NULL,
    duration_minutes INT NOT NULL CHECK (duration_minutes > 0),
    created_at TIMESTAMPTZ DEFAULT NOW()
);

-- Question bank (authored elsewhere, read-only to the session)
CREATE TABLE IF NOT EXISTS questions (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    test_id UUID NOT NULL REFERENCES tests(id) ON DELETE CASCADE,
    question_text TEXT NOT NULL,
    question_type VARCHAR(20) NOT NULL CHECK (question_type IN ('mcq', 'multiple_correct')),
    options JSONB NOT NULL,
    correct_answers JSONB NOT NULL,
    marks INT NOT NULL DEFAULT 1,
    order_index INT NOT NULL DEFAULT 0
);

-- Attempts: started_at is the clock anchor and is never rewritten
CREATE TABLE IF NOT EXISTS test_attempts (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    test_id UUID NOT NULL REFERENCES tests(id) ON DELETE CASCADE,
    user_id UUID NOT NULL,
    status VARCHAR(20) NOT NULL DEFAULT 'in_progress'
        CHECK (status IN ('in_progress', 'submitted', 'auto_submitted')),
    started_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    submitted_at TIMESTAMPTZ,
    time_taken_seconds INT,
    score INT
);

-- At most one open attempt per (test, user)
CREATE UNIQUE INDEX IF NOT EXISTS uq_test_attempts_open
    ON test_attempts(test_id, user_id) WHERE status = 'in_progress';

-- Answer records, one per (attempt, question); NULL selection = unanswered
CREATE TABLE IF NOT EXISTS attempt_answers (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    attempt_id UUID NOT NULL REFERENCES test_attempts(id) ON DELETE CASCADE,
    question_id UUID NOT NULL REFERENCES questions(id),
    selected_answers JSONB,
    is_correct BOOLEAN NOT NULL DEFAULT FALSE,
    marks_obtained INT NOT NULL DEFAULT 0,
    UNIQUE(attempt_id, question_id)
);

-- Create indexes for performance
CREATE INDEX IF NOT EXISTS idx_questions_test_id ON questions(test_id, order_index);
CREATE INDEX IF NOT EXISTS idx_test_attempts_user_id ON test_attempts(user_id);
CREATE INDEX IF NOT EXISTS idx_attempt_answers_attempt_id ON attempt_answers(attempt_id);
"""


def schema_statements() -> list[str]:
    """Schema split into single statements, comments stripped."""
    statements = []
    for raw in SCHEMA_SQL.split(";"):
        lines = [line for line in raw.splitlines() if line.strip() and not line.strip().startswith("--")]
        if lines:
            statements.append("\n".join(lines).strip())
    return statements


def main():
    statements = schema_statements()
    print(f"Schema has {len(statements)} statements.")
    print("\nNote: the Supabase client cannot run DDL, run this SQL in the Supabase SQL Editor:")
    print(SCHEMA_SQL)


if __name__ == "__main__":
    main()
