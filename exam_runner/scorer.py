"""
Scoring: all-or-nothing per question, compared as sets via sorted option ids.
No negative marking, no partial credit.
"""
from dataclasses import dataclass, field
from typing import List, Sequence

from exam_runner.answer_set import AnswerSet
from exam_runner.models import AnswerRecord, Question


@dataclass(frozen=True)
class ScoreResult:
    total_score: int
    records: List[AnswerRecord] = field(default_factory=list)
    max_score: int = 0

    @property
    def correct_count(self) -> int:
        return sum(1 for r in self.records if r.is_correct)

    @property
    def answered_count(self) -> int:
        return sum(1 for r in self.records if r.is_answered)


def is_correct_selection(question: Question, selected) -> bool:
    """True iff selected is present and equals the question's correct set."""
    if not selected:
        return False
    return sorted(selected) == sorted(question.correct_answers)


def score_answers(attempt_id: str, questions: Sequence[Question], answers: AnswerSet) -> ScoreResult:
    """
    Score every question against the current selections.

    Returns one record per question, in question order. Unanswered questions get
    a None selection and zero marks. Pure: same inputs give the same result.
    """
    total = 0
    records = []
    for question in questions:
        selected = answers.get(question.id)
        correct = is_correct_selection(question, selected)
        marks = question.marks if correct else 0
        total += marks
        records.append(
            AnswerRecord(
                attempt_id=attempt_id,
                question_id=question.id,
                selected_answers=list(selected) if selected else None,
                is_correct=correct,
                marks_obtained=marks,
            )
        )
    return ScoreResult(
        total_score=total,
        records=records,
        max_score=sum(q.marks for q in questions),
    )
