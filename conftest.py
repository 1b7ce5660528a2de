"""Shared fakes: an in-memory attempt store and a hand-driven clock."""
from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from exam_runner.errors import LoadFailure, PersistenceWriteFailure
from exam_runner.models import (
    AnswerRecord,
    Attempt,
    AttemptStatus,
    Option,
    Question,
    QuestionKind,
)

T0 = datetime(2026, 1, 10, 9, 0, 0, tzinfo=timezone.utc)


class ManualClock:
    def __init__(self, start: datetime = T0):
        self.current = start

    def now(self) -> datetime:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += timedelta(seconds=seconds)


class InMemoryGateway:
    """PersistenceGateway over plain dicts, with switches to make calls fail."""

    def __init__(self, questions=None):
        self.questions: dict[str, list[Question]] = {}
        self.attempts: dict[str, Attempt] = {}
        self.answers: dict[tuple[str, str], AnswerRecord] = {}
        self.finalize_calls: list[dict] = []
        self.upsert_calls: list[dict] = []
        self.fail_loads = False
        self.fail_upserts = False
        self.fail_finalize = False
        if questions:
            for test_id, qs in questions.items():
                self.questions[test_id] = list(qs)

    def add_attempt(self, test_id: str, user_id: str, started_at: datetime) -> Attempt:
        attempt = Attempt(id=str(uuid4()), test_id=test_id, user_id=user_id, started_at=started_at)
        self.attempts[attempt.id] = attempt
        return attempt

    async def load_questions(self, test_id):
        if self.fail_loads:
            raise LoadFailure("questions unavailable")
        return list(self.questions.get(test_id, []))

    async def load_in_progress_attempt(self, test_id, user_id):
        if self.fail_loads:
            raise LoadFailure("attempts unavailable")
        for attempt in self.attempts.values():
            if attempt.test_id == test_id and attempt.user_id == user_id and not attempt.is_terminal:
                return attempt
        return None

    async def load_answers(self, attempt_id):
        return [r for (aid, _), r in self.answers.items() if aid == attempt_id]

    async def create_attempt(self, test_id, user_id, started_at):
        return self.add_attempt(test_id, user_id, started_at)

    async def upsert_answer(self, attempt_id, question_id, selected, is_correct, marks):
        if self.fail_upserts:
            raise PersistenceWriteFailure("write rejected")
        self.upsert_calls.append(
            {"question_id": question_id, "selected": selected, "is_correct": is_correct, "marks": marks}
        )
        self.answers[(attempt_id, question_id)] = AnswerRecord(
            attempt_id=attempt_id,
            question_id=question_id,
            selected_answers=list(selected) if selected else None,
            is_correct=is_correct,
            marks_obtained=marks,
        )

    async def finalize_attempt(self, attempt_id, submitted_at, time_taken_seconds, score, status):
        if self.fail_finalize:
            raise PersistenceWriteFailure("finalize rejected")
        self.finalize_calls.append(
            {"attempt_id": attempt_id, "time_taken_seconds": time_taken_seconds, "score": score, "status": status}
        )
        attempt = self.attempts[attempt_id]
        attempt.status = AttemptStatus(status)
        attempt.submitted_at = submitted_at
        attempt.time_taken_seconds = time_taken_seconds
        attempt.score = score


def make_question(qid, correct, kind=QuestionKind.SINGLE, options=("a", "b", "c", "d"), marks=1, order=0):
    return Question(
        id=qid,
        question_text=f"Question {qid}",
        question_type=kind,
        options=tuple(Option(id=o, text=o.upper()) for o in options),
        correct_answers=tuple(correct),
        marks=marks,
        order_index=order,
    )


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def questions():
    return [
        make_question("q1", ["a"], order=0, marks=2),
        make_question("q2", ["a", "c"], kind=QuestionKind.MULTIPLE, order=1, marks=3),
        make_question("q3", ["d"], order=2),
    ]


@pytest.fixture
def gateway(questions):
    return InMemoryGateway({"test-1": questions})
