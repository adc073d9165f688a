"""
Shared fixtures for DebugQuest tests.
"""

import pytest
from datetime import datetime

from debugquest.config import Settings, RepeatCompletionPolicy
from debugquest.practice import PracticeService, PracticeStore
from debugquest.schemas import Badge, BadgeType, Difficulty, Language, Lesson
from debugquest.utils import seed_store


@pytest.fixture
def store(tmp_path):
    return PracticeStore(tmp_path / "practice.db")


@pytest.fixture
def seeded_store(store):
    seed_store(store)
    return store


@pytest.fixture
def make_lesson():
    def _make(**overrides) -> Lesson:
        values = dict(
            id="python-off-by-one",
            title="Off-by-One Error in Loop",
            language=Language.PYTHON,
            difficulty=Difficulty.EASY,
            description="Print 1 through 5",
            starter_code="for i in range(1, 7):\n    print(i)",
            expected_output="1\n2\n3\n4\n5",
            hints=["Check the upper bound.", "range() stop is exclusive."],
            points=10,
            position=1,
        )
        values.update(overrides)
        return Lesson(**values)
    return _make


@pytest.fixture
def make_badge():
    def _make(badge_type: BadgeType, requirement_value=None, **overrides) -> Badge:
        values = dict(
            id=badge_type.value,
            name=badge_type.value.replace("_", " ").title(),
            description=f"{badge_type.value} badge",
            badge_type=badge_type,
            icon="*",
            requirement_value=requirement_value,
        )
        values.update(overrides)
        return Badge(**values)
    return _make


@pytest.fixture
def settings(store):
    return Settings(db_path=store.db_path, repeat_completions=RepeatCompletionPolicy.FIRST_ONLY)


@pytest.fixture
def service(seeded_store, settings):
    seeded_store.create_profile("user_1", "ada", created_at=datetime(2025, 1, 1, 9, 0))
    return PracticeService(seeded_store, settings)
