"""
Leaderboard and statistics - read-side projections over profiles and history.

Nothing here writes to the store. Rankings and breakdowns are recomputed
from profiles and progress records every time they are requested.
"""

from collections import Counter
from typing import Iterable

from debugquest.config import DEFAULT_LEADERBOARD_LIMIT
from debugquest.errors import ValidationError
from debugquest.schemas import (
    DIFFICULTY_ORDER,
    DailyCount,
    DifficultyCount,
    Language,
    LanguageCount,
    LanguageProgress,
    LeaderboardEntry,
    Profile,
    ProgressEntry,
    UserStats,
)

RECENT_DAYS = 7


def rank_profiles(profiles: Iterable[Profile],
                  limit: int = DEFAULT_LEADERBOARD_LIMIT) -> list[LeaderboardEntry]:
    """
    Rank profiles by points, earliest-created first on ties.

    Raises:
        ValidationError: If limit is below 1
    """
    if limit < 1:
        raise ValidationError(f"Leaderboard limit must be at least 1, got {limit}")

    ordered = sorted(
        profiles,
        key=lambda p: (-p.total_points, p.created_at, p.user_id),
    )
    return [
        LeaderboardEntry(
            user_id=profile.user_id,
            display_name=profile.display_name,
            total_points=profile.total_points,
            total_lessons_completed=profile.total_lessons_completed,
            current_streak=profile.current_streak,
            rank=idx + 1,
        )
        for idx, profile in enumerate(ordered[:limit])
    ]


def user_stats(history: list[ProgressEntry]) -> UserStats:
    """
    Per-user breakdown of a completion history.

    Languages and difficulties with no completions are omitted. The daily
    series covers the 7 most recent days that have completions.
    """
    by_language = Counter(entry.language for entry in history)
    by_difficulty = Counter(entry.difficulty for entry in history)
    by_day = Counter(entry.completed_at.date() for entry in history)

    recent_days = sorted(by_day)[-RECENT_DAYS:]
    total = len(history)

    return UserStats(
        completed_by_language=[
            LanguageCount(language=language, count=by_language[language])
            for language in Language
            if by_language[language]
        ],
        completed_by_difficulty=[
            DifficultyCount(difficulty=difficulty, count=by_difficulty[difficulty])
            for difficulty in DIFFICULTY_ORDER
            if by_difficulty[difficulty]
        ],
        progress_over_time=[
            DailyCount(date=day, lessons=by_day[day]) for day in recent_days
        ],
        average_attempts=sum(e.attempts for e in history) / total if total else 0.0,
        average_hints=sum(e.hints_used for e in history) / total if total else 0.0,
        total_completions=total,
    )


def language_progress(history: list[ProgressEntry],
                      lesson_totals: dict[Language, int]) -> list[LanguageProgress]:
    """Completed vs. total lessons for every language that has lessons."""
    completed = Counter(entry.language for entry in {e.lesson_id: e for e in history}.values())
    return [
        LanguageProgress(
            language=language,
            completed=completed.get(language, 0),
            total=lesson_totals[language],
        )
        for language in Language
        if lesson_totals.get(language, 0) > 0
    ]
