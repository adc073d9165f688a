"""
PracticeStore tests against a temporary SQLite database.
"""

import sqlite3
import threading
import pytest
from datetime import datetime

from debugquest.errors import (
    ConflictError,
    NotFoundError,
    ProfileNotFound,
    StoreUnavailable,
    ValidationError,
)
from debugquest.practice import PracticeStore
from debugquest.schemas import BadgeType, Language, ProgressRecord


def record(lesson_id="python-off-by-one", user_id="user_1", **overrides) -> ProgressRecord:
    values = dict(
        user_id=user_id,
        lesson_id=lesson_id,
        completed_at=datetime(2025, 3, 1, 10, 0),
        attempts=1,
        hints_used=0,
    )
    values.update(overrides)
    return ProgressRecord(**values)


class TestLessons:
    """Test catalog storage."""

    def test_round_trip(self, store, make_lesson):
        lesson = make_lesson()
        store.add_lesson(lesson)
        assert store.get_lesson(lesson.id) == lesson

    def test_missing_lesson(self, store):
        assert store.get_lesson("nope") is None

    def test_list_by_language_in_position_order(self, store, make_lesson):
        store.add_lesson(make_lesson(id="py-2", position=2))
        store.add_lesson(make_lesson(id="py-1", position=1))
        store.add_lesson(make_lesson(id="go-1", language="go", position=1))
        assert [l.id for l in store.list_lessons(Language.PYTHON)] == ["py-1", "py-2"]
        assert [l.id for l in store.list_lessons(Language.GO)] == ["go-1"]
        assert store.list_lessons(Language.RUST) == []
        assert len(store.list_lessons()) == 3

    def test_add_lesson_replaces(self, store, make_lesson):
        store.add_lesson(make_lesson(points=10))
        store.add_lesson(make_lesson(points=20))
        assert store.get_lesson("python-off-by-one").points == 20
        assert len(store.list_lessons()) == 1

    def test_count_by_language(self, seeded_store):
        assert seeded_store.count_lessons_by_language() == {
            Language.PYTHON: 2,
            Language.JAVASCRIPT: 2,
            Language.JAVA: 1,
            Language.CPP: 1,
        }


class TestProfiles:
    """Test profile storage and atomic updates."""

    def test_create_and_get(self, store):
        created = store.create_profile("user_1", "ada", created_at=datetime(2025, 1, 1))
        fetched = store.get_profile("user_1")
        assert fetched == created
        assert fetched.display_name == "ada"
        assert fetched.total_points == 0

    def test_create_twice_rejected(self, store):
        store.create_profile("user_1")
        with pytest.raises(ValidationError):
            store.create_profile("user_1")

    def test_missing_profile(self, store):
        assert store.get_profile("ghost") is None

    def test_update_profile_applies_mutation(self, store):
        store.create_profile("user_1")
        updated = store.update_profile(
            "user_1",
            lambda p: p.model_copy(update={"total_points": p.total_points + 10}),
        )
        assert updated.total_points == 10
        assert updated.version == 1
        assert store.get_profile("user_1").total_points == 10
        assert store.get_profile("user_1").version == 1

    def test_sequential_updates_do_not_lose_increments(self, store):
        store.create_profile("user_1")
        for _ in range(5):
            store.update_profile(
                "user_1",
                lambda p: p.model_copy(update={"total_points": p.total_points + 3}),
            )
        assert store.get_profile("user_1").total_points == 15

    def test_concurrent_updates_do_not_lose_increments(self, store):
        store.create_profile("user_1")
        errors = []

        def add_points():
            try:
                store.update_profile(
                    "user_1",
                    lambda p: p.model_copy(update={
                        "total_points": p.total_points + 7,
                        "total_lessons_completed": p.total_lessons_completed + 1,
                    }),
                )
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=add_points) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        profile = store.get_profile("user_1")
        assert profile.total_points == 56
        assert profile.total_lessons_completed == 8
        assert profile.version == 8

    def test_update_missing_profile(self, store):
        with pytest.raises(ProfileNotFound):
            store.update_profile("ghost", lambda p: p)

    def test_failed_mutation_rolls_back(self, store):
        store.create_profile("user_1")

        def boom(profile):
            raise ConflictError("lost race")

        with pytest.raises(ConflictError):
            store.update_profile("user_1", boom)
        assert store.get_profile("user_1").version == 0

    def test_rename(self, store):
        store.create_profile("user_1", "ada")
        renamed = store.rename_profile("user_1", "grace")
        assert renamed.display_name == "grace"
        assert store.get_profile("user_1").display_name == "grace"

    def test_rename_missing(self, store):
        with pytest.raises(ProfileNotFound):
            store.rename_profile("ghost", "x")

    def test_list_profiles(self, store):
        store.create_profile("b", created_at=datetime(2025, 1, 2))
        store.create_profile("a", created_at=datetime(2025, 1, 1))
        assert [p.user_id for p in store.list_profiles()] == ["a", "b"]


class TestProgress:
    """Test completion records."""

    def test_first_upsert_returns_none(self, seeded_store):
        assert seeded_store.upsert_progress(record()) is None
        assert seeded_store.has_progress("user_1")

    def test_upsert_replaces_and_returns_previous(self, seeded_store):
        seeded_store.upsert_progress(record(attempts=3))
        previous = seeded_store.upsert_progress(record(attempts=1, hints_used=2))
        assert previous.attempts == 3
        history = seeded_store.list_progress("user_1")
        assert len(history) == 1
        assert history[0].attempts == 1
        assert history[0].hints_used == 2

    def test_unknown_lesson_rejected(self, seeded_store):
        with pytest.raises(ValidationError):
            seeded_store.upsert_progress(record(lesson_id="nope"))
        assert not seeded_store.has_progress("user_1")

    def test_history_joined_with_lesson(self, seeded_store):
        seeded_store.upsert_progress(record("cpp-memory-leak", time_taken=20))
        entry = seeded_store.list_progress("user_1")[0]
        assert entry.language == Language.CPP
        assert entry.difficulty.value == "hard"
        assert entry.points == 25
        assert entry.time_taken == 20

    def test_history_is_per_user(self, seeded_store):
        seeded_store.upsert_progress(record(user_id="user_1"))
        seeded_store.upsert_progress(record(user_id="user_2"))
        assert len(seeded_store.list_progress("user_1")) == 1
        assert not seeded_store.has_progress("user_3")

    def test_scored_flag_survives_replacement(self, seeded_store):
        seeded_store.create_profile("user_1")
        seeded_store.upsert_progress(record())
        seeded_store.update_profile("user_1", lambda p: p, scored_lesson_id="python-off-by-one")
        previous = seeded_store.upsert_progress(record(attempts=4))
        assert previous.scored
        assert seeded_store.list_progress("user_1")[0].scored


class TestBadges:
    """Test badge catalog and grants."""

    def test_catalog_round_trip(self, store, make_badge):
        badge = make_badge(BadgeType.SPEED_DEMON, 30)
        store.add_badge(badge)
        assert store.list_badges() == [badge]

    def test_grant_is_idempotent(self, store, make_badge):
        store.add_badge(make_badge(BadgeType.FIRST_DEBUG, 1))
        assert store.grant_badge("user_1", "first_debug") is True
        assert store.grant_badge("user_1", "first_debug") is False
        assert len(store.list_user_badges("user_1")) == 1

    def test_grant_unknown_badge(self, store):
        with pytest.raises(NotFoundError):
            store.grant_badge("user_1", "nope")

    def test_earned_badges_newest_first(self, store, make_badge):
        store.add_badge(make_badge(BadgeType.FIRST_DEBUG, 1))
        store.add_badge(make_badge(BadgeType.ACCURACY_ACE, 5))
        store.add_badge(make_badge(BadgeType.SPEED_DEMON, 30))
        store.grant_badge("user_1", "first_debug", earned_at=datetime(2025, 1, 1))
        store.grant_badge("user_1", "speed_demon", earned_at=datetime(2025, 1, 3))
        store.grant_badge("user_1", "accuracy_ace", earned_at=datetime(2025, 1, 2))

        earned = store.list_earned_badges("user_1")
        assert [b.badge_id for b in earned] == ["speed_demon", "accuracy_ace", "first_debug"]
        assert earned[0].name == "Speed Demon"
        assert [b.badge_id for b in store.list_earned_badges("user_1", limit=2)] == [
            "speed_demon", "accuracy_ace"
        ]


class TestStoreFailures:
    """Test translation of SQLite failures."""

    def test_locked_database_is_unavailable(self, tmp_path):
        db_path = tmp_path / "locked.db"
        store = PracticeStore(db_path, timeout=0.1)
        blocker = sqlite3.connect(str(db_path), isolation_level=None)
        try:
            blocker.execute("BEGIN EXCLUSIVE")
            with pytest.raises(StoreUnavailable):
                store.get_profile("user_1")
        finally:
            blocker.execute("ROLLBACK")
            blocker.close()

    def test_creates_parent_directory(self, tmp_path):
        store = PracticeStore(tmp_path / "nested" / "dir" / "practice.db")
        assert store.db_path.exists()
