"""
Timed test attempts.

Holds the live answer map for one test. When the test has a time limit,
a single expiry timer submits the attempt automatically; the timer is
cancelled whenever the attempt ends first.
"""

import logging
import threading
from collections.abc import Callable
from datetime import timedelta

from primonotes.application.grading import score_test
from primonotes.application.id_service import IdGenerator, generate_id
from primonotes.domain.errors import SessionClosedError, ValidationError
from primonotes.domain.interfaces import Clock
from primonotes.domain.models import Test, TestResult

logger = logging.getLogger(__name__)


class TestAttempt:
    """
    One reviewer's attempt at a test, from first answer to submission.
    """

    __test__ = False  # Not a pytest test class

    def __init__(
        self,
        test: Test,
        clock: Clock,
        on_auto_submit: Callable[[TestResult], None] | None = None,
        timer_factory: Callable[..., threading.Timer] = threading.Timer,
        id_factory: IdGenerator = generate_id,
    ):
        self.test = test
        self._clock = clock
        self._on_auto_submit = on_auto_submit
        self._timer_factory = timer_factory
        self._id_factory = id_factory
        self._question_ids = {q.id for q in test.questions}
        self._answers: dict[str, list[str]] = {}
        self._lock = threading.Lock()
        self._timer: threading.Timer | None = None
        self._started_at = None
        self.result: TestResult | None = None
        self.cancelled = False

    @property
    def answers(self) -> dict[str, list[str]]:
        return {qid: list(values) for qid, values in self._answers.items()}

    @property
    def closed(self) -> bool:
        return self.result is not None or self.cancelled

    def start(self) -> None:
        """Begin the attempt, arming the expiry timer if the test is timed."""
        self._started_at = self._clock.now()
        if self.test.time_limit:
            seconds = self.test.time_limit * 60
            self._timer = self._timer_factory(seconds, self._expire)
            self._timer.daemon = True
            self._timer.start()
            logger.debug(f"[attempt] {self.test.id}: timer armed for {seconds}s")

    def time_remaining(self) -> timedelta | None:
        """Time left before auto-submission, or None for untimed tests."""
        if not self.test.time_limit or self._started_at is None:
            return None
        deadline = self._started_at + timedelta(minutes=self.test.time_limit)
        return max(deadline - self._clock.now(), timedelta(0))

    def answer(self, question_id: str, values: list[str]) -> None:
        """
        Record (or replace) the answer for one question.
        """
        if self.closed:
            raise SessionClosedError(f"Attempt at {self.test.id} is already closed")
        if question_id not in self._question_ids:
            raise ValidationError(f"Question {question_id} is not part of test {self.test.id}")
        self._answers[question_id] = list(values)

    def submit(self) -> TestResult:
        """
        Grade the attempt and produce its immutable result.

        Raises:
            SessionClosedError: If the attempt was already submitted or cancelled.
        """
        with self._lock:
            if self.closed:
                raise SessionClosedError(f"Attempt at {self.test.id} is already closed")
            self._cancel_timer()
            score = score_test(self.test.questions, self._answers)
            self.result = TestResult(
                id=self._id_factory(),
                test_id=self.test.id,
                answers=self.answers,
                score=score,
                total_questions=len(self.test.questions),
                completed_at=self._clock.now(),
            )
        logger.info(f"[attempt] {self.test.id} submitted, score={score:.2f}")
        return self.result

    def cancel(self) -> None:
        """Abandon the attempt without producing a result."""
        with self._lock:
            if self.closed:
                return
            self._cancel_timer()
            self.cancelled = True

    def _expire(self) -> None:
        try:
            result = self.submit()
        except SessionClosedError:
            # Submitted or cancelled while the timer was firing
            return
        logger.info(f"[attempt] {self.test.id}: time limit reached, auto-submitted")
        if self._on_auto_submit:
            self._on_auto_submit(result)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
