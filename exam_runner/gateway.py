"""The narrow async interface the session core uses to reach the attempt store."""
from datetime import datetime
from typing import List, Optional, Protocol, Sequence

from exam_runner.models import AnswerRecord, Attempt, AttemptStatus, Question


class PersistenceGateway(Protocol):
    """
    Record store for questions, attempts and answer rows.

    Load methods raise LoadFailure, write methods raise PersistenceWriteFailure.
    upsert_answer is idempotent per (attempt_id, question_id).
    """

    async def load_questions(self, test_id: str) -> List[Question]:
        ...

    async def load_in_progress_attempt(self, test_id: str, user_id: str) -> Optional[Attempt]:
        ...

    async def load_answers(self, attempt_id: str) -> List[AnswerRecord]:
        ...

    async def create_attempt(self, test_id: str, user_id: str, started_at: datetime) -> Attempt:
        ...

    async def upsert_answer(
        self,
        attempt_id: str,
        question_id: str,
        selected: Optional[Sequence[str]],
        is_correct: bool,
        marks: int,
    ) -> None:
        ...

    async def finalize_attempt(
        self,
        attempt_id: str,
        submitted_at: datetime,
        time_taken_seconds: int,
        score: int,
        status: AttemptStatus,
    ) -> None:
        ...
