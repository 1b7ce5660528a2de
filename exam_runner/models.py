"""
Records exchanged with the attempt store: questions, attempts and answer rows.
Field names match the persisted column names and must round-trip exactly.
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Tuple

from exam_runner.clock import format_timestamp, parse_timestamp


class QuestionKind(str, Enum):
    SINGLE = "mcq"
    MULTIPLE = "multiple_correct"


class AttemptStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    SUBMITTED = "submitted"
    AUTO_SUBMITTED = "auto_submitted"


class Trigger(str, Enum):
    """What started a finalize: the submit button or the countdown reaching zero."""
    MANUAL = "manual"
    AUTOMATIC = "automatic"

    @property
    def status(self) -> AttemptStatus:
        if self is Trigger.AUTOMATIC:
            return AttemptStatus.AUTO_SUBMITTED
        return AttemptStatus.SUBMITTED


@dataclass(frozen=True)
class Option:
    id: str
    text: str

    @classmethod
    def from_row(cls, row: Dict) -> "Option":
        return cls(id=str(row["id"]), text=row.get("text") or "")


@dataclass(frozen=True)
class Question:
    id: str
    question_text: str
    question_type: QuestionKind
    options: Tuple[Option, ...]
    correct_answers: Tuple[str, ...]
    marks: int = 1
    order_index: int = 0

    @property
    def is_multiple(self) -> bool:
        return self.question_type is QuestionKind.MULTIPLE

    def has_option(self, option_id: str) -> bool:
        return any(o.id == option_id for o in self.options)

    @classmethod
    def from_row(cls, row: Dict) -> "Question":
        return cls(
            id=str(row["id"]),
            question_text=row.get("question_text") or "",
            question_type=QuestionKind(row.get("question_type") or QuestionKind.SINGLE.value),
            options=tuple(Option.from_row(o) for o in (row.get("options") or [])),
            correct_answers=tuple(str(a) for a in (row.get("correct_answers") or [])),
            marks=row.get("marks", 1),
            order_index=row.get("order_index", 0),
        )


@dataclass
class Attempt:
    id: str
    test_id: str
    user_id: str
    started_at: datetime
    status: AttemptStatus = AttemptStatus.IN_PROGRESS
    submitted_at: Optional[datetime] = None
    time_taken_seconds: Optional[int] = None
    score: Optional[int] = None

    @property
    def is_terminal(self) -> bool:
        return self.status is not AttemptStatus.IN_PROGRESS

    @classmethod
    def from_row(cls, row: Dict) -> "Attempt":
        submitted_at = row.get("submitted_at")
        return cls(
            id=str(row["id"]),
            test_id=str(row["test_id"]),
            user_id=str(row["user_id"]),
            started_at=parse_timestamp(row["started_at"]),
            status=AttemptStatus(row.get("status") or AttemptStatus.IN_PROGRESS.value),
            submitted_at=parse_timestamp(submitted_at) if submitted_at else None,
            time_taken_seconds=row.get("time_taken_seconds"),
            score=row.get("score"),
        )


@dataclass
class AnswerRecord:
    attempt_id: str
    question_id: str
    selected_answers: Optional[List[str]] = None
    is_correct: bool = False
    marks_obtained: int = 0

    @property
    def is_answered(self) -> bool:
        return bool(self.selected_answers)

    def to_row(self) -> Dict:
        return {
            "attempt_id": self.attempt_id,
            "question_id": self.question_id,
            # None, never [], marks an unanswered question
            "selected_answers": list(self.selected_answers) if self.selected_answers else None,
            "is_correct": self.is_correct,
            "marks_obtained": self.marks_obtained,
        }

    @classmethod
    def from_row(cls, row: Dict) -> "AnswerRecord":
        selected = row.get("selected_answers")
        return cls(
            attempt_id=str(row["attempt_id"]),
            question_id=str(row["question_id"]),
            selected_answers=[str(s) for s in selected] if selected else None,
            is_correct=bool(row.get("is_correct", False)),
            marks_obtained=row.get("marks_obtained") or 0,
        )


@dataclass(frozen=True)
class FinalizePayload:
    """Attempt columns written once at finalization."""
    submitted_at: datetime
    time_taken_seconds: int
    score: int
    status: AttemptStatus = field(default=AttemptStatus.SUBMITTED)

    def to_row(self) -> Dict:
        return {
            "submitted_at": format_timestamp(self.submitted_at),
            "time_taken_seconds": self.time_taken_seconds,
            "score": self.score,
            "status": self.status.value,
        }
