"""Reconciles persisted attempt state with the clock when a session opens."""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import List

from exam_runner.answer_set import AnswerSet
from exam_runner.clock import elapsed_seconds
from exam_runner.errors import LoadFailure
from exam_runner.gateway import PersistenceGateway
from exam_runner.models import Attempt, Question

logger = logging.getLogger(__name__)


@dataclass
class ResumeResult:
    questions: List[Question]
    attempt: Attempt
    answers: AnswerSet = field(default_factory=AnswerSet)
    remaining_seconds: int = 0
    resumed: bool = False

    @property
    def expired(self) -> bool:
        return self.remaining_seconds <= 0


def remaining_seconds(duration_minutes: int, attempt: Attempt, now) -> int:
    """max(0, duration - elapsed since the attempt's start), in whole seconds."""
    return max(0, duration_minutes * 60 - elapsed_seconds(attempt.started_at, now))


class SessionResumer:
    """Loads or creates the user's attempt and works out how much time is left."""

    def __init__(self, gateway: PersistenceGateway, clock, duration_minutes: int):
        self.gateway = gateway
        self.clock = clock
        self.duration_minutes = duration_minutes

    async def resume(self, test_id: str, user_id: str) -> ResumeResult:
        """
        Load questions plus any in-progress attempt for (test_id, user_id).

        With no open attempt a fresh one is created, started now, with the full
        duration remaining. With an open attempt its saved answers are restored
        and the remaining time is derived from its start timestamp.

        Raises:
            LoadFailure: if questions, the attempt or its answers cannot be loaded.
        """
        questions, attempt = await asyncio.gather(
            self.gateway.load_questions(test_id),
            self.gateway.load_in_progress_attempt(test_id, user_id),
        )
        if not questions:
            raise LoadFailure(f"test {test_id} has no questions")
        questions = sorted(questions, key=lambda q: q.order_index)

        if attempt is None:
            attempt = await self.gateway.create_attempt(test_id, user_id, self.clock.now())
            logger.info(f"Started attempt {attempt.id} ({len(questions)} questions, {self.duration_minutes} min)")
            return ResumeResult(
                questions=questions,
                attempt=attempt,
                remaining_seconds=self.duration_minutes * 60,
            )

        records = await self.gateway.load_answers(attempt.id)
        answers = AnswerSet.from_records(records)
        remaining = remaining_seconds(self.duration_minutes, attempt, self.clock.now())
        logger.info(f"Resumed attempt {attempt.id}: {len(answers)} answered, {remaining}s remaining")
        return ResumeResult(
            questions=questions,
            attempt=attempt,
            answers=answers,
            remaining_seconds=remaining,
            resumed=True,
        )
