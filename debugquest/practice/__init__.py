"""
DebugQuest Practice - Runtime components for solving and scoring lessons.

This module provides:
- evaluate / OutputMatchEvaluator: decide pass/fail for a submission
- LessonSession: attempt and hint tracking per user and lesson
- PracticeStore: SQLite store for catalog, profiles, progress and badges
- LessonCatalog: lesson lookup and track navigation
- ScoreKeeper: points and streaks
- BadgeAwarder: badge evaluation and grants
- rank_profiles / user_stats / language_progress: read-side projections
- PracticeService: the facade wiring all of the above
"""

from .evaluator import (
    Evaluator,
    OutputMatchEvaluator,
    evaluate,
    normalize_output,
)

from .session import (
    LessonSession,
    AUTO_HINT_ATTEMPT,
)

from .store import (
    PracticeStore,
    DEFAULT_TIMEOUT_SECONDS,
)

from .catalog import LessonCatalog

from .scoring import (
    ScoreKeeper,
    ScoreResult,
    apply_completion,
    streak_after,
)

from .badges import (
    BadgeAwarder,
    BadgeContext,
    badge_earned,
    evaluate_badges,
)

from .leaderboard import (
    rank_profiles,
    user_stats,
    language_progress,
    RECENT_DAYS,
)

from .service import (
    PracticeService,
    SubmissionOutcome,
)

__all__ = [
    # Evaluator
    "Evaluator",
    "OutputMatchEvaluator",
    "evaluate",
    "normalize_output",
    # Session
    "LessonSession",
    "AUTO_HINT_ATTEMPT",
    # Store
    "PracticeStore",
    "DEFAULT_TIMEOUT_SECONDS",
    # Catalog
    "LessonCatalog",
    # Scoring
    "ScoreKeeper",
    "ScoreResult",
    "apply_completion",
    "streak_after",
    # Badges
    "BadgeAwarder",
    "BadgeContext",
    "badge_earned",
    "evaluate_badges",
    # Leaderboard & stats
    "rank_profiles",
    "user_stats",
    "language_progress",
    "RECENT_DAYS",
    # Service
    "PracticeService",
    "SubmissionOutcome",
]
