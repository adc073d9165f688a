"""
LessonSession - per (user, lesson) attempt tracking.

A session moves NOT_STARTED -> IN_PROGRESS -> COMPLETED:
- start() opens the session when the lesson is loaded
- submit() counts an attempt and evaluates it
- the first hint is surfaced automatically when the 2nd attempt fails
- a passing attempt completes the session and yields a CompletionEvent

Sessions live in memory; only the CompletionEvent is persisted (by the
service, as a ProgressRecord).
"""

import logging
import threading
from datetime import datetime
from typing import Optional

from debugquest.errors import ConflictError, ValidationError
from debugquest.schemas import (
    AttemptResult,
    CompletionEvent,
    Lesson,
    LessonStatus,
    Verdict,
)

from .evaluator import Evaluator, OutputMatchEvaluator

logger = logging.getLogger(__name__)

# The attempt whose failure surfaces hint 0
AUTO_HINT_ATTEMPT = 2


class LessonSession:
    """
    Attempt and hint state for one user working on one lesson.

    At most one submission may be in flight; an overlapping submit()
    raises ConflictError rather than interleaving.
    """

    def __init__(self, user_id: str, lesson: Lesson, evaluator: Optional[Evaluator] = None):
        self.user_id = user_id
        self.lesson = lesson
        self.evaluator = evaluator or OutputMatchEvaluator()
        self.status = LessonStatus.NOT_STARTED
        self.attempts = 0
        self.hints_revealed: set[int] = set()
        self.started_at: Optional[datetime] = None
        self.completion: Optional[CompletionEvent] = None
        self._submit_lock = threading.Lock()

    @property
    def hints_used(self) -> int:
        return len(self.hints_revealed)

    @property
    def is_completed(self) -> bool:
        return self.status == LessonStatus.COMPLETED

    def revealed_hints(self) -> list[str]:
        """Revealed hint texts in lesson order."""
        return [self.lesson.hints[i] for i in sorted(self.hints_revealed)]

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def start(self, now: Optional[datetime] = None):
        """Open the session. Starting an open session is a no-op."""
        if self.status != LessonStatus.NOT_STARTED:
            return
        self.status = LessonStatus.IN_PROGRESS
        self.attempts = 0
        self.hints_revealed = set()
        self.started_at = now or datetime.now()

    def submit(self, output: Optional[str], now: Optional[datetime] = None,
               time_taken: Optional[int] = None) -> AttemptResult:
        """
        Evaluate one submission.

        Args:
            output: Program output produced by the user's code
            now: Submission time (default: now)
            time_taken: Seconds spent; derived from start time if omitted

        Raises:
            ValidationError: If the session is not in progress
            ConflictError: If another submission is still being evaluated
        """
        if not self._submit_lock.acquire(blocking=False):
            raise ConflictError("A submission for this lesson is already being evaluated")
        try:
            return self._submit(output, now or datetime.now(), time_taken)
        finally:
            self._submit_lock.release()

    def _submit(self, output: Optional[str], now: datetime,
                time_taken: Optional[int]) -> AttemptResult:
        if self.status == LessonStatus.NOT_STARTED:
            raise ValidationError(f"Lesson {self.lesson.id} has not been started")
        if self.status == LessonStatus.COMPLETED:
            raise ValidationError(f"Lesson {self.lesson.id} is already completed")

        self.attempts += 1
        verdict = self.evaluator.evaluate(self.lesson, output)

        if verdict == Verdict.PASS:
            self.status = LessonStatus.COMPLETED
            if time_taken is None and self.started_at is not None:
                time_taken = max(0, int((now - self.started_at).total_seconds()))
            self.completion = CompletionEvent(
                user_id=self.user_id,
                lesson_id=self.lesson.id,
                attempts=self.attempts,
                hints_used=self.hints_used,
                time_taken=time_taken,
                completed_at=now,
            )
            logger.info(
                f"User {self.user_id} solved {self.lesson.id} "
                f"in {self.attempts} attempt(s) with {self.hints_used} hint(s)"
            )
            return AttemptResult(
                verdict=verdict,
                attempts=self.attempts,
                status=self.status,
                completion=self.completion,
            )

        revealed_hint = None
        if self.attempts == AUTO_HINT_ATTEMPT and self.lesson.has_hints:
            self.hints_revealed.add(0)
            revealed_hint = 0

        return AttemptResult(
            verdict=verdict,
            attempts=self.attempts,
            status=self.status,
            revealed_hint=revealed_hint,
        )

    def reveal_hint(self, index: int) -> str:
        """
        Reveal a hint on request. Never changes status or attempts.

        Raises:
            ValidationError: If the lesson has no hint at that index
        """
        if index < 0 or index >= len(self.lesson.hints):
            raise ValidationError(
                f"Lesson {self.lesson.id} has no hint {index} "
                f"({len(self.lesson.hints)} available)"
            )
        self.hints_revealed.add(index)
        return self.lesson.hints[index]

    def reopen(self):
        """
        Undo the passing attempt after its completion could not be recorded,
        so the same submission can be retried.
        """
        if self.status != LessonStatus.COMPLETED:
            return
        self.status = LessonStatus.IN_PROGRESS
        self.attempts = max(0, self.attempts - 1)
        self.completion = None

    def reset(self):
        """
        Clear attempts and revealed hints.

        A completed session stays completed; its record is already persisted.
        """
        self.attempts = 0
        self.hints_revealed = set()
