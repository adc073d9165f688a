"""
Badge schemas for DebugQuest.
"""

from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from enum import Enum


class BadgeType(str, Enum):
    FIRST_DEBUG = "first_debug"
    CONSECUTIVE_SOLVES = "consecutive_solves"
    LANGUAGE_MASTER = "language_master"
    SPEED_DEMON = "speed_demon"
    ACCURACY_ACE = "accuracy_ace"


class Badge(BaseModel):
    id: str = Field(..., min_length=1)
    name: str
    description: str
    badge_type: BadgeType
    icon: Optional[str] = None
    requirement_value: Optional[int] = Field(default=None, ge=0)  # e.g. 10 for "10 in a row"


class UserBadge(BaseModel):
    user_id: str
    badge_id: str
    earned_at: datetime


class EarnedBadge(BaseModel):
    """UserBadge joined with its badge for display."""
    badge_id: str
    name: str
    description: str
    icon: Optional[str] = None
    earned_at: datetime
