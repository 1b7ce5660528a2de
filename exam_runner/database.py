"""
Supabase persistence for exam sessions.
Async implementation of the PersistenceGateway over the questions,
test_attempts and attempt_answers tables.
"""
import logging
import os
from datetime import datetime
from typing import List, Optional, Sequence

from dotenv import load_dotenv
from supabase import AsyncClient, acreate_client

from exam_runner.clock import format_timestamp
from exam_runner.errors import LoadFailure, PersistenceWriteFailure
from exam_runner.models import (
    AnswerRecord,
    Attempt,
    AttemptStatus,
    FinalizePayload,
    Question,
)

logger = logging.getLogger(__name__)

load_dotenv()

SUPABASE_URL = os.getenv("SUPABASE_URL")
SUPABASE_KEY = os.getenv("SUPABASE_KEY")


class DatabaseClient:
    """Wrapper around the async Supabase client with attempt-specific operations."""

    QUESTIONS_TABLE = "questions"
    ATTEMPTS_TABLE = "test_attempts"
    ANSWERS_TABLE = "attempt_answers"
    ANSWER_CONFLICT = "attempt_id,question_id"

    def __init__(self, client: AsyncClient):
        self.client = client

    @classmethod
    async def connect(cls, url: Optional[str] = None, key: Optional[str] = None) -> "DatabaseClient":
        url = url or SUPABASE_URL
        key = key or SUPABASE_KEY
        if not url or not key:
            raise ValueError("SUPABASE_URL and SUPABASE_KEY must be set")
        client = await acreate_client(url, key)
        return cls(client)

    # ============= Loads =============

    async def load_questions(self, test_id: str) -> List[Question]:
        """Fetch the test's questions in display order."""
        try:
            response = await (
                self.client.table(self.QUESTIONS_TABLE)
                .select("*")
                .eq("test_id", test_id)
                .order("order_index")
                .execute()
            )
        except Exception as e:
            logger.error(f"Error fetching questions for test {test_id}: {e}")
            raise LoadFailure(f"could not load questions for test {test_id}") from e
        return [Question.from_row(row) for row in (response.data or [])]

    async def load_in_progress_attempt(self, test_id: str, user_id: str) -> Optional[Attempt]:
        """Fetch the user's open attempt for this test, if any."""
        try:
            response = await (
                self.client.table(self.ATTEMPTS_TABLE)
                .select("*")
                .eq("test_id", test_id)
                .eq("user_id", user_id)
                .eq("status", AttemptStatus.IN_PROGRESS.value)
                .order("started_at", desc=True)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error(f"Error fetching in-progress attempt for test {test_id}: {e}")
            raise LoadFailure(f"could not load attempt for test {test_id}") from e
        if not response.data:
            return None
        return Attempt.from_row(response.data[0])

    async def load_answers(self, attempt_id: str) -> List[AnswerRecord]:
        try:
            response = await (
                self.client.table(self.ANSWERS_TABLE)
                .select("*")
                .eq("attempt_id", attempt_id)
                .execute()
            )
        except Exception as e:
            logger.error(f"Error fetching answers for attempt {attempt_id}: {e}")
            raise LoadFailure(f"could not load answers for attempt {attempt_id}") from e
        return [AnswerRecord.from_row(row) for row in (response.data or [])]

    # ============= Writes =============

    async def create_attempt(self, test_id: str, user_id: str, started_at: datetime) -> Attempt:
        """Insert a fresh in-progress attempt anchored at started_at."""
        row = {
            "test_id": test_id,
            "user_id": user_id,
            "status": AttemptStatus.IN_PROGRESS.value,
            "started_at": format_timestamp(started_at),
        }
        try:
            response = await self.client.table(self.ATTEMPTS_TABLE).insert(row).execute()
        except Exception as e:
            logger.error(f"Error creating attempt for test {test_id}: {e}")
            raise LoadFailure(f"could not create attempt for test {test_id}") from e
        if not response.data:
            raise LoadFailure(f"attempt insert for test {test_id} returned no row")
        attempt = Attempt.from_row(response.data[0])
        logger.info(f"Created attempt {attempt.id} for test {test_id}")
        return attempt

    async def upsert_answer(
        self,
        attempt_id: str,
        question_id: str,
        selected: Optional[Sequence[str]],
        is_correct: bool,
        marks: int,
    ) -> None:
        record = AnswerRecord(
            attempt_id=attempt_id,
            question_id=question_id,
            selected_answers=list(selected) if selected else None,
            is_correct=is_correct,
            marks_obtained=marks,
        )
        try:
            await (
                self.client.table(self.ANSWERS_TABLE)
                .upsert(record.to_row(), on_conflict=self.ANSWER_CONFLICT)
                .execute()
            )
        except Exception as e:
            logger.error(f"Error upserting answer {attempt_id}/{question_id}: {e}")
            raise PersistenceWriteFailure(f"could not save answer for question {question_id}") from e

    async def finalize_attempt(
        self,
        attempt_id: str,
        submitted_at: datetime,
        time_taken_seconds: int,
        score: int,
        status: AttemptStatus,
    ) -> None:
        payload = FinalizePayload(
            submitted_at=submitted_at,
            time_taken_seconds=time_taken_seconds,
            score=score,
            status=status,
        )
        try:
            await (
                self.client.table(self.ATTEMPTS_TABLE)
                .update(payload.to_row())
                .eq("id", attempt_id)
                .execute()
            )
        except Exception as e:
            logger.error(f"Error finalizing attempt {attempt_id}: {e}")
            raise PersistenceWriteFailure(f"could not finalize attempt {attempt_id}") from e
