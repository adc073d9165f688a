"""
LessonCatalog - Read-only lesson access and per-language sequencing.

Provides:
- Ordered lesson tracks per language
- Lesson lookup with validation
- Next-lesson navigation within a track
- Lesson totals per language (used by language_master badges)
"""

from typing import Optional

from debugquest.errors import ValidationError
from debugquest.schemas import Language, Lesson

from .store import PracticeStore


class LessonCatalog:
    """Lesson lookups and navigation on top of the store."""

    def __init__(self, store: PracticeStore):
        self.store = store

    def lessons(self, language: Language) -> list[Lesson]:
        """Get the ordered lesson track for a language."""
        return self.store.list_lessons(language)

    def get(self, lesson_id: str) -> Lesson:
        """
        Get a lesson by ID.

        Raises:
            ValidationError: If no lesson has that ID
        """
        lesson = self.store.get_lesson(lesson_id)
        if lesson is None:
            raise ValidationError(f"Unknown lesson id: {lesson_id}")
        return lesson

    def first_lesson(self, language: Language) -> Optional[Lesson]:
        """Get the first lesson of a track, or None for an empty track."""
        track = self.lessons(language)
        return track[0] if track else None

    def next_lesson(self, lesson: Lesson) -> Optional[Lesson]:
        """Get the lesson after this one in its track, or None at the end."""
        track = self.lessons(lesson.language)
        ids = [item.id for item in track]
        if lesson.id not in ids:
            return None
        idx = ids.index(lesson.id)
        if idx + 1 >= len(track):
            return None
        return track[idx + 1]

    def get_lesson_position(self, lesson: Lesson) -> tuple[int, int]:
        """
        Get lesson position in its track as (current, total).

        Returns (0, total) if lesson not found.
        """
        ids = [item.id for item in self.lessons(lesson.language)]
        if lesson.id not in ids:
            return (0, len(ids))
        return (ids.index(lesson.id) + 1, len(ids))

    def totals_by_language(self) -> dict[Language, int]:
        """Number of lessons in each non-empty language track."""
        return self.store.count_lessons_by_language()
