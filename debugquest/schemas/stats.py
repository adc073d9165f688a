"""
Leaderboard and statistics schemas for DebugQuest.

All of these are read-side projections; nothing here is stored.
"""

from pydantic import BaseModel
from typing import Optional
from datetime import date

from .lesson import Language, Difficulty


class LeaderboardEntry(BaseModel):
    user_id: str
    display_name: Optional[str] = None
    total_points: int
    total_lessons_completed: int
    current_streak: int
    rank: int  # 1-based


class LanguageCount(BaseModel):
    language: Language
    count: int


class DifficultyCount(BaseModel):
    difficulty: Difficulty
    count: int


class DailyCount(BaseModel):
    date: date
    lessons: int


class UserStats(BaseModel):
    completed_by_language: list[LanguageCount]
    completed_by_difficulty: list[DifficultyCount]
    progress_over_time: list[DailyCount]  # last 7 distinct days, oldest first
    average_attempts: float
    average_hints: float
    total_completions: int


class LanguageProgress(BaseModel):
    language: Language
    completed: int
    total: int

    @property
    def is_complete(self) -> bool:
        return self.total > 0 and self.completed >= self.total
