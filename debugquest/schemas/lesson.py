"""
Lesson schemas for DebugQuest.

Defines Pydantic models for the lesson catalog including:
- Supported programming languages
- Ordered difficulty levels
- Lesson content (starter code, expected output, hints)
"""

from pydantic import BaseModel, ConfigDict, Field
from enum import Enum


class Language(str, Enum):
    PYTHON = "python"
    JAVASCRIPT = "javascript"
    JAVA = "java"
    CPP = "cpp"
    GO = "go"
    RUST = "rust"


class Difficulty(str, Enum):
    """Lesson difficulty, ordered easy < medium < hard < expert."""
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"
    EXPERT = "expert"

    @property
    def rank(self) -> int:
        return DIFFICULTY_ORDER.index(self)


DIFFICULTY_ORDER = [Difficulty.EASY, Difficulty.MEDIUM, Difficulty.HARD, Difficulty.EXPERT]


class Lesson(BaseModel):
    """A debugging exercise. Owned by the catalog and never mutated."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    title: str
    language: Language
    difficulty: Difficulty
    description: str
    starter_code: str
    expected_output: str     # compared after trimming both ends
    hints: tuple[str, ...] = ()
    points: int = Field(10, gt=0)
    position: int = Field(..., ge=0)  # order within the language track

    @property
    def has_hints(self) -> bool:
        return len(self.hints) > 0
