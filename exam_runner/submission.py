"""At-most-once finalization of an attempt."""
import logging
from typing import Awaitable, Callable, List, Optional

from exam_runner.answer_set import AnswerSet
from exam_runner.clock import elapsed_seconds
from exam_runner.errors import PersistenceWriteFailure
from exam_runner.gateway import PersistenceGateway
from exam_runner.models import Attempt, Question, Trigger
from exam_runner.scorer import ScoreResult, score_answers
from exam_runner.timer import Timer

logger = logging.getLogger(__name__)


class SubmissionCoordinator:
    """
    Scores and persists an attempt exactly once.

    The in-flight flag is checked and set before the first await, so a manual
    submit racing the timer's automatic one on the same loop cannot both pass.
    It stays set after a successful finalize and is cleared only on failure.

    before_write, if given, is awaited after the flag is set and before the
    first write; the session uses it to let pending provisional writes land
    so the scored records are the last ones written.
    """

    def __init__(
        self,
        gateway: PersistenceGateway,
        clock,
        timer: Timer,
        attempt: Attempt,
        questions: List[Question],
        answers: AnswerSet,
        on_complete: Optional[Callable[[], None]] = None,
        before_write: Optional[Callable[[], Awaitable[None]]] = None,
    ):
        self.gateway = gateway
        self.clock = clock
        self.timer = timer
        self.attempt = attempt
        self.questions = questions
        self.answers = answers
        self.on_complete = on_complete
        self.before_write = before_write

        self.in_flight = False
        self.completed = False
        self.trigger: Optional[Trigger] = None
        self.result: Optional[ScoreResult] = None
        self.last_error: Optional[Exception] = None

    async def finalize(self, trigger: Trigger) -> bool:
        """
        Score the attempt, write the attempt row then every answer row, then signal completion.

        Returns True if this call finalized the attempt, False if another
        finalize was already underway or done, or if persistence failed.
        """
        if self.in_flight:
            logger.debug(f"Finalize ({trigger.value}) ignored: already in flight")
            return False
        self.in_flight = True

        self.timer.cancel()
        submitted_at = self.clock.now()
        time_taken = elapsed_seconds(self.attempt.started_at, submitted_at)
        result = score_answers(self.attempt.id, self.questions, self.answers)
        status = trigger.status

        logger.info(
            f"Finalizing attempt {self.attempt.id} ({trigger.value}): "
            f"score={result.total_score}/{result.max_score}, time_taken={time_taken}s"
        )
        try:
            if self.before_write is not None:
                await self.before_write()
            await self.gateway.finalize_attempt(
                self.attempt.id, submitted_at, time_taken, result.total_score, status
            )
            for record in result.records:
                await self.gateway.upsert_answer(
                    record.attempt_id,
                    record.question_id,
                    record.selected_answers,
                    record.is_correct,
                    record.marks_obtained,
                )
        except PersistenceWriteFailure as e:
            logger.error(f"Finalize of attempt {self.attempt.id} failed, submission can be retried: {e}")
            self._release(e)
            return False
        except Exception as e:
            logger.error(f"Unexpected error finalizing attempt {self.attempt.id}: {e}")
            failure = PersistenceWriteFailure(f"could not finalize attempt {self.attempt.id}: {e}")
            failure.__cause__ = e
            self._release(failure)
            return False

        self.attempt.status = status
        self.attempt.submitted_at = submitted_at
        self.attempt.time_taken_seconds = time_taken
        self.attempt.score = result.total_score
        self.trigger = trigger
        self.result = result
        self.last_error = None
        self.completed = True
        if self.on_complete is not None:
            self.on_complete()
        return True

    def _release(self, error: PersistenceWriteFailure) -> None:
        self.last_error = error
        self.in_flight = False
