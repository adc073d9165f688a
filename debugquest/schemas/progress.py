"""
Progress tracking schemas for DebugQuest.

Defines Pydantic models for student progress including:
- Session status (not started / in progress / completed)
- Persisted completion records and their lesson-joined read model
- The completion event handed from a session to scoring
"""

from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from enum import Enum

from .lesson import Language, Difficulty


class LessonStatus(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class Verdict(str, Enum):
    PASS = "pass"
    FAIL = "fail"


class ProgressRecord(BaseModel):
    """One completion of a lesson by a user. Replaced, never updated in place."""
    user_id: str
    lesson_id: str
    completed_at: datetime
    attempts: int = Field(..., ge=1)
    hints_used: int = Field(0, ge=0)
    time_taken: Optional[int] = Field(default=None, ge=0)  # seconds
    scored: bool = False  # points for this lesson were applied to the profile


class ProgressEntry(ProgressRecord):
    """ProgressRecord joined with the lesson metadata stats are grouped by."""
    language: Language
    difficulty: Difficulty
    points: int


class CompletionEvent(BaseModel):
    user_id: str
    lesson_id: str
    attempts: int = Field(..., ge=1)
    hints_used: int = Field(0, ge=0)
    time_taken: Optional[int] = Field(default=None, ge=0)
    completed_at: datetime

    def to_record(self) -> ProgressRecord:
        return ProgressRecord(
            user_id=self.user_id,
            lesson_id=self.lesson_id,
            completed_at=self.completed_at,
            attempts=self.attempts,
            hints_used=self.hints_used,
            time_taken=self.time_taken,
        )


class AttemptResult(BaseModel):
    """What a single submission did to its session."""
    verdict: Verdict
    attempts: int
    status: LessonStatus
    revealed_hint: Optional[int] = None  # hint index surfaced by this attempt
    completion: Optional[CompletionEvent] = None

    @property
    def passed(self) -> bool:
        return self.verdict == Verdict.PASS
