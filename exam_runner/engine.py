"""
Exam session engine: one test-taker, one timed attempt.
Resumes the attempt, runs the countdown, echoes selections to the store and
finalizes exactly once on submit or on expiry.
"""
import asyncio
import logging
from enum import Enum
from typing import Callable, Dict, List, Optional, Set

from exam_runner.answer_set import AnswerSet
from exam_runner.clock import SystemClock
from exam_runner.errors import LoadFailure, PersistenceWriteFailure
from exam_runner.gateway import PersistenceGateway
from exam_runner.models import Attempt, Question, Trigger
from exam_runner.resumer import SessionResumer
from exam_runner.scorer import ScoreResult
from exam_runner.submission import SubmissionCoordinator
from exam_runner.timer import Timer, format_time, time_alert

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    LOADING = "loading"
    ACTIVE = "active"
    SUBMITTING = "submitting"
    COMPLETED = "completed"


class TestSession:
    """Manages a single timed test attempt from load to final submission."""

    __test__ = False  # not a pytest test class

    DEFAULT_DURATION_MINUTES = 60
    TICK_INTERVAL_SECONDS = 1.0

    def __init__(
        self,
        gateway: PersistenceGateway,
        test_id: str,
        user_id: str,
        duration_minutes: int = DEFAULT_DURATION_MINUTES,
        clock=None,
        on_complete: Optional[Callable[[], None]] = None,
        tick_interval: float = TICK_INTERVAL_SECONDS,
    ):
        """
        Args:
            gateway: store for questions, attempts and answers
            test_id: test being taken
            user_id: test-taker (identity is resolved by the caller)
            duration_minutes: fixed duration of the test
            clock: object with now() -> aware datetime; defaults to SystemClock
            on_complete: called once after the attempt is finalized and persisted
            tick_interval: seconds between countdown ticks
        """
        self.gateway = gateway
        self.test_id = test_id
        self.user_id = user_id
        self.duration_minutes = duration_minutes
        self.clock = clock or SystemClock()
        self.on_complete = on_complete

        self.state = SessionState.LOADING
        self.load_error: Optional[Exception] = None
        self.questions: List[Question] = []
        self.attempt: Optional[Attempt] = None
        self.answers = AnswerSet()
        self.current_index = 0

        self.timer = Timer(on_expire=self._on_timer_expired, interval=tick_interval)
        self.coordinator: Optional[SubmissionCoordinator] = None
        self._tasks: Set[asyncio.Task] = set()
        self._echoes: Set[asyncio.Task] = set()
        self._closed = False
        self._loading = False

    # ---------- lifecycle ----------

    async def load(self) -> bool:
        """
        Resume or start the attempt. Returns True once the session is active or finalized.

        If the stored attempt already ran out of time it is auto-submitted here,
        before the session ever becomes active; if that finalize fails the
        session stays in LOADING with submit_error set. On a load failure the
        session stays in LOADING with load_error set. Retrying is up to the caller.
        """
        if self.state is SessionState.COMPLETED:
            return True
        if self.coordinator is not None and self.state is SessionState.LOADING and self.submit_error is not None:
            # expired on resume and the automatic submit was not saved: retry it
            await self._finalize(Trigger.AUTOMATIC)
            return self.state is SessionState.COMPLETED

        if self._loading:
            logger.debug(f"Load of test {self.test_id} already underway")
            return False

        resumer = SessionResumer(self.gateway, self.clock, self.duration_minutes)
        self._loading = True
        try:
            resumed = await resumer.resume(self.test_id, self.user_id)
        except LoadFailure as e:
            logger.error(f"Could not load test {self.test_id}: {e}")
            self.load_error = e
            return False
        finally:
            self._loading = False

        self.load_error = None
        self.questions = resumed.questions
        self.attempt = resumed.attempt
        self.answers = resumed.answers
        self.timer.remaining = resumed.remaining_seconds
        self.coordinator = SubmissionCoordinator(
            self.gateway,
            self.clock,
            self.timer,
            self.attempt,
            self.questions,
            self.answers,
            on_complete=self._on_finalized,
            before_write=self._drain_echoes,
        )

        if resumed.expired:
            logger.info(f"Attempt {self.attempt.id} expired while away, auto-submitting")
            await self._finalize(Trigger.AUTOMATIC)
            return self.state is SessionState.COMPLETED

        if self._closed:
            return True
        self.state = SessionState.ACTIVE
        self.timer.start(resumed.remaining_seconds)
        return True

    async def submit(self) -> bool:
        """Manual submit. Returns True if this call finalized the attempt."""
        if self.coordinator is None:
            return False
        return await self._finalize(Trigger.MANUAL)

    def close(self) -> None:
        """Tear down: stop the countdown. Pending writes are left to finish on their own."""
        self._closed = True
        self.timer.cancel()

    async def wait_idle(self) -> None:
        """Wait for outstanding background writes and auto-submits."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # ---------- answers ----------

    def select(self, question_id: str, option_id: str) -> bool:
        """Record a click on an option. Returns False if the session no longer accepts answers."""
        if self.state is not SessionState.ACTIVE:
            logger.warning(f"Selection on {question_id} ignored: session is {self.state.value}")
            return False
        question = self.get_question(question_id)
        if not question.has_option(option_id):
            raise ValueError(f"Option {option_id} does not belong to question {question_id}")
        selected = self.answers.select(question, option_id)
        self._echo(question_id, selected)
        return True

    def clear(self, question_id: str) -> bool:
        if self.state is not SessionState.ACTIVE:
            return False
        self.get_question(question_id)
        if self.answers.clear(question_id):
            self._echo(question_id, None)
        return True

    def get_question(self, question_id: str) -> Question:
        for question in self.questions:
            if question.id == question_id:
                return question
        raise KeyError(f"Question {question_id} not in test {self.test_id}")

    # ---------- navigation ----------

    @property
    def current_question(self) -> Optional[Question]:
        if not self.questions:
            return None
        return self.questions[self.current_index]

    def go_to(self, index: int) -> int:
        if not self.questions:
            return 0
        self.current_index = max(0, min(index, len(self.questions) - 1))
        return self.current_index

    def next_question(self) -> int:
        return self.go_to(self.current_index + 1)

    def previous_question(self) -> int:
        return self.go_to(self.current_index - 1)

    # ---------- status ----------

    @property
    def remaining_seconds(self) -> int:
        return self.timer.remaining

    @property
    def auto_submitted(self) -> bool:
        return self.coordinator is not None and self.coordinator.trigger is Trigger.AUTOMATIC

    @property
    def submit_error(self) -> Optional[Exception]:
        return self.coordinator.last_error if self.coordinator else None

    @property
    def result(self) -> Optional[ScoreResult]:
        return self.coordinator.result if self.coordinator else None

    def summary(self) -> Dict:
        """Real-time summary for display during the exam."""
        remaining = self.remaining_seconds
        return {
            "attempt_id": self.attempt.id if self.attempt else None,
            "state": self.state.value,
            "current_question": self.current_index + 1,
            "total_questions": len(self.questions),
            "answered": len(self.answers),
            "time_remaining_sec": remaining,
            "time_remaining": format_time(remaining),
            "time_alert": time_alert(remaining),
        }

    def view(self) -> Dict:
        """Everything a page render reads, copied in one call so it is consistent."""
        question = self.current_question
        return {
            **self.summary(),
            "state": self.state,
            "load_error": self.load_error,
            "submit_error": self.submit_error,
            "auto_submitted": self.auto_submitted,
            "result": self.result,
            "questions": list(self.questions),
            "current_index": self.current_index,
            "question": question,
            "selected": (self.answers.get(question.id) or ()) if question else (),
            "answered_ids": set(self.answers.snapshot()),
        }

    # ---------- internals ----------

    async def _finalize(self, trigger: Trigger) -> bool:
        if self.coordinator.in_flight:
            return False
        previous = self.state
        self.state = SessionState.SUBMITTING
        done = await self.coordinator.finalize(trigger)
        if not done and self.state is SessionState.SUBMITTING:
            # persistence failed: back to where we were, submit may be retried
            self.state = previous
        return done

    def _on_timer_expired(self) -> None:
        self._spawn(self._finalize(Trigger.AUTOMATIC))

    def _on_finalized(self) -> None:
        self.state = SessionState.COMPLETED
        if self.on_complete is not None:
            self.on_complete()

    def _echo(self, question_id: str, selected) -> None:
        """Fire-and-forget provisional upsert; scoring happens only at finalize."""
        task = self._spawn(self._save_provisional(self.attempt.id, question_id, selected))
        self._echoes.add(task)
        task.add_done_callback(self._echoes.discard)

    async def _drain_echoes(self) -> None:
        """Let provisional writes already underway land before the scored records."""
        pending = [t for t in self._echoes if not t.done()]
        if pending:
            logger.debug(f"Waiting for {len(pending)} provisional writes before finalizing")
            await asyncio.gather(*pending, return_exceptions=True)

    async def _save_provisional(self, attempt_id: str, question_id: str, selected) -> None:
        if self.coordinator is not None and (self.coordinator.in_flight or self.coordinator.completed):
            logger.debug(f"Provisional write for {question_id} skipped: attempt is being finalized")
            return
        try:
            await self.gateway.upsert_answer(attempt_id, question_id, selected, False, 0)
            logger.debug(f"Saved answer {question_id} -> {selected}")
        except PersistenceWriteFailure as e:
            logger.warning(f"Answer {question_id} not saved, keeping local selection: {e}")

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task
