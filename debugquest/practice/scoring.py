"""
Scoring and streaks - turn a completion into profile updates.

Points equal the lesson's point value with no attempt or hint penalty.
The streak grows when a completion falls on the same calendar day as the
user's last activity or within streak_window_days after it, and restarts
at 1 otherwise.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from debugquest.config import RepeatCompletionPolicy
from debugquest.schemas import CompletionEvent, Lesson, Profile, ProgressRecord

from .store import PracticeStore

logger = logging.getLogger(__name__)


def streak_after(current_streak: int, last_activity_at: Optional[datetime],
                 completed_at: datetime, window_days: int = 1) -> int:
    """
    Streak value after a completion at completed_at.

    A completion dated before the last activity counts as same-day.
    """
    if last_activity_at is None:
        return 1
    gap_days = (completed_at.date() - last_activity_at.date()).days
    if gap_days <= window_days:
        return current_streak + 1
    return 1


def apply_completion(profile: Profile, points: int, completed_at: datetime,
                     window_days: int = 1, counts_as_new: bool = True) -> Profile:
    """
    Pure profile update for one completion.

    Args:
        profile: Profile before the completion
        points: Points to award
        completed_at: Completion time
        window_days: Days after the last activity that still extend the streak
        counts_as_new: Whether to add points and a completion (False for
            repeat completions that are not re-scored)
    """
    current = streak_after(profile.current_streak, profile.last_activity_at,
                           completed_at, window_days)
    last_activity = completed_at
    if profile.last_activity_at is not None and profile.last_activity_at > completed_at:
        last_activity = profile.last_activity_at

    return profile.model_copy(update={
        "total_points": profile.total_points + (points if counts_as_new else 0),
        "total_lessons_completed": profile.total_lessons_completed + (1 if counts_as_new else 0),
        "current_streak": current,
        "best_streak": max(profile.best_streak, current),
        "last_activity_at": last_activity,
    })


@dataclass
class ScoreResult:
    """Outcome of scoring one completion."""
    profile: Profile
    points_awarded: int
    rescored: bool  # repeat completion that earned points again


class ScoreKeeper:
    """
    Apply completions to profiles through the store's atomic update.

    Repeat completions are scored according to the configured policy.
    """

    def __init__(self, store: PracticeStore,
                 policy: RepeatCompletionPolicy = RepeatCompletionPolicy.FIRST_ONLY,
                 window_days: int = 1):
        self.store = store
        self.policy = policy
        self.window_days = window_days

    def awards_points(self, previous: Optional[ProgressRecord]) -> bool:
        """
        Whether a completion earns points.

        Under FIRST_ONLY a lesson earns points until a completion of it has
        actually been scored, so a completion whose scoring failed is scored
        on the next try.
        """
        if self.policy == RepeatCompletionPolicy.EVERY:
            return True
        return previous is None or not previous.scored

    def on_completion(self, event: CompletionEvent, lesson: Lesson,
                      previous: Optional[ProgressRecord] = None) -> ScoreResult:
        """
        Score a completion.

        Args:
            event: The completion
            lesson: The completed lesson
            previous: The record this completion replaced, if any

        Raises:
            ProfileNotFound: If the user has no profile
            ConflictError: If the profile changed during the update
        """
        scored = self.awards_points(previous)
        points = lesson.points if scored else 0

        profile = self.store.update_profile(
            event.user_id,
            lambda current: apply_completion(
                current, points, event.completed_at,
                window_days=self.window_days, counts_as_new=scored,
            ),
            scored_lesson_id=lesson.id if scored else None,
        )

        if scored:
            logger.info(
                f"User {event.user_id} earned {points} points for {lesson.id} "
                f"(total {profile.total_points}, streak {profile.current_streak})"
            )
        else:
            logger.info(
                f"User {event.user_id} repeated {lesson.id}; no points under "
                f"{self.policy.value} policy (streak {profile.current_streak})"
            )

        return ScoreResult(
            profile=profile,
            points_awarded=points,
            rescored=scored and previous is not None and previous.scored,
        )
