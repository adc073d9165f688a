"""
PracticeService - the entry point a presentation layer calls.

Wires the stages in data-flow order:
  catalog -> session (evaluate, track attempts/hints) -> progress record
  -> scoring & streak -> badges -> leaderboard & stats
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from debugquest.config import Settings
from debugquest.errors import DebugQuestError, ValidationError, is_retryable
from debugquest.schemas import (
    AttemptResult,
    Badge,
    EarnedBadge,
    LanguageProgress,
    LeaderboardEntry,
    Profile,
    UserStats,
    Verdict,
)

from .badges import BadgeAwarder
from .catalog import LessonCatalog
from .evaluator import Evaluator
from .leaderboard import language_progress, rank_profiles, user_stats
from .scoring import ScoreKeeper
from .session import LessonSession
from .store import PracticeStore

logger = logging.getLogger(__name__)

RECENT_BADGES_LIMIT = 3


@dataclass
class SubmissionOutcome:
    """Everything the UI needs after one submission."""
    verdict: Verdict
    attempts: int
    message: str
    revealed_hint: Optional[int] = None
    points_awarded: int = 0
    profile: Optional[Profile] = None
    new_badges: list[Badge] = field(default_factory=list)
    first_completion: bool = False  # user's first solve of any lesson
    next_lesson_id: Optional[str] = None

    @property
    def passed(self) -> bool:
        return self.verdict == Verdict.PASS


def failure_message(result: AttemptResult) -> str:
    if result.revealed_hint is not None:
        return "Hint unlocked! Check the hints for guidance."
    return f"Not quite right. Attempt {result.attempts}. Keep trying!"


class PracticeService:
    """Run practice sessions and record their results."""

    def __init__(self, store: PracticeStore, settings: Optional[Settings] = None,
                 evaluator: Optional[Evaluator] = None):
        self.store = store
        self.settings = settings or Settings(db_path=store.db_path)
        self.evaluator = evaluator
        self.catalog = LessonCatalog(store)
        self.scores = ScoreKeeper(
            store,
            policy=self.settings.repeat_completions,
            window_days=self.settings.streak_window_days,
        )
        self.badges = BadgeAwarder(store)

    # -------------------------------------------------------------------------
    # Sessions
    # -------------------------------------------------------------------------

    def start_lesson(self, user_id: str, lesson_id: str,
                     now: Optional[datetime] = None) -> LessonSession:
        """
        Load a lesson and open a session on it.

        Raises:
            ValidationError: If the lesson does not exist
        """
        lesson = self.catalog.get(lesson_id)
        session = LessonSession(user_id, lesson, evaluator=self.evaluator)
        session.start(now)
        return session

    def submit(self, session: LessonSession, output: Optional[str],
               time_taken: Optional[int] = None,
               now: Optional[datetime] = None) -> SubmissionOutcome:
        """
        Evaluate a submission and, on success, record and score it.

        The next lesson is looked up before anything is written. The
        progress record is written before scoring; if scoring fails
        (e.g. ProfileNotFound) the record stands and the error propagates.
        On a retryable store error the session is reopened so the caller can
        submit again. Badge failures are logged and do not affect the outcome.
        """
        result = session.submit(output, now=now, time_taken=time_taken)
        if not result.passed:
            return SubmissionOutcome(
                verdict=result.verdict,
                attempts=result.attempts,
                message=failure_message(result),
                revealed_hint=result.revealed_hint,
            )

        event = result.completion
        lesson = session.lesson
        try:
            next_lesson = self.catalog.next_lesson(lesson)
            first_completion = not self.store.has_progress(event.user_id)
            previous = self.store.upsert_progress(event.to_record())
            score = self.scores.on_completion(event, lesson, previous=previous)
        except DebugQuestError as e:
            if is_retryable(e):
                logger.warning(f"Completion of {lesson.id} by {event.user_id} not recorded: {e}")
                session.reopen()
            raise

        new_badges = self.badges.award(score.profile)

        if score.points_awarded:
            message = f"Correct solution! You earned {score.points_awarded} points!"
        else:
            message = "Correct solution! You already earned points for this lesson."

        return SubmissionOutcome(
            verdict=result.verdict,
            attempts=result.attempts,
            message=message,
            points_awarded=score.points_awarded,
            profile=score.profile,
            new_badges=new_badges,
            first_completion=first_completion,
            next_lesson_id=next_lesson.id if next_lesson else None,
        )

    def reveal_hint(self, session: LessonSession, index: int) -> str:
        return session.reveal_hint(index)

    def reset(self, session: LessonSession):
        session.reset()

    # -------------------------------------------------------------------------
    # Profiles, rankings and stats
    # -------------------------------------------------------------------------

    def rename(self, user_id: str, display_name: str) -> Profile:
        """
        Change a user's display name.

        Raises:
            ValidationError: If the name is blank
            ProfileNotFound: If the user has no profile
        """
        name = (display_name or "").strip()
        if not name:
            raise ValidationError("Display name cannot be empty")
        return self.store.rename_profile(user_id, name)

    def leaderboard(self, limit: Optional[int] = None) -> list[LeaderboardEntry]:
        return rank_profiles(
            self.store.list_profiles(),
            limit if limit is not None else self.settings.leaderboard_limit,
        )

    def user_stats(self, user_id: str) -> UserStats:
        return user_stats(self.store.list_progress(user_id))

    def language_progress(self, user_id: str) -> list[LanguageProgress]:
        return language_progress(
            self.store.list_progress(user_id),
            self.catalog.totals_by_language(),
        )

    def recent_badges(self, user_id: str, limit: int = RECENT_BADGES_LIMIT) -> list[EarnedBadge]:
        return self.store.list_earned_badges(user_id, limit=limit)
