"""
DebugQuest Schemas - Pydantic models for the debugging practice platform.

This module exports all schema classes for:
- Lesson: languages, difficulty levels, lesson content
- Profile: per-user points and streak aggregate
- Progress: session status, completion records and events
- Badge: badge catalog and grants
- Stats: leaderboard rows and per-user breakdowns
"""

# Lesson schemas
from .lesson import (
    Language,
    Difficulty,
    DIFFICULTY_ORDER,
    Lesson,
)

# Profile schemas
from .profile import Profile

# Progress schemas
from .progress import (
    LessonStatus,
    Verdict,
    ProgressRecord,
    ProgressEntry,
    CompletionEvent,
    AttemptResult,
)

# Badge schemas
from .badge import (
    BadgeType,
    Badge,
    UserBadge,
    EarnedBadge,
)

# Stats schemas
from .stats import (
    LeaderboardEntry,
    LanguageCount,
    DifficultyCount,
    DailyCount,
    UserStats,
    LanguageProgress,
)

__all__ = [
    # Lesson
    'Language',
    'Difficulty',
    'DIFFICULTY_ORDER',
    'Lesson',
    # Profile
    'Profile',
    # Progress
    'LessonStatus',
    'Verdict',
    'ProgressRecord',
    'ProgressEntry',
    'CompletionEvent',
    'AttemptResult',
    # Badge
    'BadgeType',
    'Badge',
    'UserBadge',
    'EarnedBadge',
    # Stats
    'LeaderboardEntry',
    'LanguageCount',
    'DifficultyCount',
    'DailyCount',
    'UserStats',
    'LanguageProgress',
]
