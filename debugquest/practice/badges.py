"""
Badge evaluation - grant badges whose thresholds the user now meets.

Each badge type has a predicate over the user's profile and completion
history. Granting is idempotent, and badge failures never fail the
completion that triggered them.
"""

import logging
from collections import Counter
from typing import Callable, Iterable, Optional

from debugquest.schemas import (
    Badge,
    BadgeType,
    Language,
    Profile,
    ProgressEntry,
)

from .store import PracticeStore

logger = logging.getLogger(__name__)


class BadgeContext:
    """Aggregates the badge predicates read."""

    def __init__(self, profile: Profile, history: list[ProgressEntry],
                 lesson_totals: dict[Language, int]):
        self.profile = profile
        self.history = history
        self.lesson_totals = lesson_totals

    def completed_by_language(self) -> Counter:
        return Counter(entry.language for entry in {e.lesson_id: e for e in self.history}.values())

    def hint_free_completions(self) -> int:
        return sum(1 for entry in self.history if entry.hints_used == 0)

    def fastest_completion(self) -> Optional[int]:
        times = [entry.time_taken for entry in self.history if entry.time_taken is not None]
        return min(times) if times else None


def _first_debug(badge: Badge, ctx: BadgeContext) -> bool:
    return ctx.profile.total_lessons_completed >= 1


def _consecutive_solves(badge: Badge, ctx: BadgeContext) -> bool:
    return ctx.profile.current_streak >= badge.requirement_value


def _language_master(badge: Badge, ctx: BadgeContext) -> bool:
    completed = ctx.completed_by_language()
    return any(
        total > 0 and completed.get(language, 0) >= total
        for language, total in ctx.lesson_totals.items()
    )


def _speed_demon(badge: Badge, ctx: BadgeContext) -> bool:
    fastest = ctx.fastest_completion()
    return fastest is not None and fastest <= badge.requirement_value


def _accuracy_ace(badge: Badge, ctx: BadgeContext) -> bool:
    return ctx.hint_free_completions() >= badge.requirement_value


BADGE_PREDICATES: dict[BadgeType, Callable[[Badge, BadgeContext], bool]] = {
    BadgeType.FIRST_DEBUG: _first_debug,
    BadgeType.CONSECUTIVE_SOLVES: _consecutive_solves,
    BadgeType.LANGUAGE_MASTER: _language_master,
    BadgeType.SPEED_DEMON: _speed_demon,
    BadgeType.ACCURACY_ACE: _accuracy_ace,
}

# Types whose predicate compares against requirement_value
THRESHOLD_TYPES = {
    BadgeType.CONSECUTIVE_SOLVES,
    BadgeType.SPEED_DEMON,
    BadgeType.ACCURACY_ACE,
}


def badge_earned(badge: Badge, ctx: BadgeContext) -> bool:
    """Check one badge's predicate. Threshold badges without a threshold never qualify."""
    if badge.badge_type in THRESHOLD_TYPES and badge.requirement_value is None:
        logger.warning(f"Badge {badge.id} ({badge.badge_type.value}) has no requirement_value")
        return False
    return BADGE_PREDICATES[badge.badge_type](badge, ctx)


def evaluate_badges(profile: Profile, history: list[ProgressEntry],
                    catalog: Iterable[Badge], owned: Iterable[str],
                    lesson_totals: dict[Language, int]) -> list[Badge]:
    """
    Get catalog badges the user has earned but does not own yet.

    Args:
        profile: Current profile (after scoring)
        history: The user's completion history
        catalog: All badges
        owned: IDs of badges the user already has
        lesson_totals: Lesson count per language
    """
    owned_ids = set(owned)
    ctx = BadgeContext(profile, history, lesson_totals)
    return [
        badge for badge in catalog
        if badge.id not in owned_ids and badge_earned(badge, ctx)
    ]


class BadgeAwarder:
    """Evaluate and grant badges against the store."""

    def __init__(self, store: PracticeStore):
        self.store = store

    def award(self, profile: Profile) -> list[Badge]:
        """
        Grant every newly earned badge.

        Errors are logged and swallowed; an empty list is returned instead.
        """
        try:
            return self._award(profile)
        except Exception:
            logger.exception(f"Badge evaluation failed for user {profile.user_id}")
            return []

    def _award(self, profile: Profile) -> list[Badge]:
        user_id = profile.user_id
        earned = evaluate_badges(
            profile,
            self.store.list_progress(user_id),
            self.store.list_badges(),
            [ub.badge_id for ub in self.store.list_user_badges(user_id)],
            self.store.count_lessons_by_language(),
        )

        granted = []
        for badge in earned:
            if self.store.grant_badge(user_id, badge.id):
                logger.info(f"User {user_id} earned badge {badge.name}")
                granted.append(badge)
        return granted
