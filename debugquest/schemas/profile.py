"""
Profile schemas for DebugQuest.

A Profile is the per-user aggregate of points, completions and streaks.
It is only ever changed by the scoring step.
"""

from pydantic import BaseModel, Field, model_validator
from typing import Optional
from datetime import datetime


class Profile(BaseModel):
    user_id: str = Field(..., min_length=1)
    display_name: Optional[str] = None
    total_lessons_completed: int = Field(0, ge=0)
    total_points: int = Field(0, ge=0)
    current_streak: int = Field(0, ge=0)
    best_streak: int = Field(0, ge=0)
    last_activity_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    version: int = Field(0, ge=0)  # bumped on every write, used for compare-and-swap

    @model_validator(mode="after")
    def streak_within_best(self):
        if self.current_streak > self.best_streak:
            raise ValueError(
                f"current_streak ({self.current_streak}) exceeds best_streak ({self.best_streak})"
            )
        return self
