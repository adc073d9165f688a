"""
Scoring and streak tests.
"""

import pytest
from datetime import datetime, timedelta

from debugquest.config import RepeatCompletionPolicy
from debugquest.errors import ProfileNotFound
from debugquest.practice import ScoreKeeper, apply_completion, streak_after
from debugquest.schemas import CompletionEvent, Profile, ProgressRecord

DAY = datetime(2025, 3, 10, 12, 0)


def profile(**overrides) -> Profile:
    values = dict(user_id="user_1", created_at=datetime(2025, 1, 1), updated_at=datetime(2025, 1, 1))
    values.update(overrides)
    return Profile(**values)


def event(lesson_id="python-off-by-one", completed_at=DAY, **overrides) -> CompletionEvent:
    values = dict(user_id="user_1", lesson_id=lesson_id, attempts=1, hints_used=0,
                  time_taken=40, completed_at=completed_at)
    values.update(overrides)
    return CompletionEvent(**values)


class TestStreakAfter:
    """Test the streak rule."""

    def test_first_activity_starts_streak(self):
        assert streak_after(0, None, DAY) == 1

    def test_same_day_increments(self):
        assert streak_after(3, DAY.replace(hour=8), DAY) == 4

    def test_next_day_increments(self):
        assert streak_after(3, DAY - timedelta(days=1), DAY) == 4

    def test_next_day_across_midnight(self):
        last = datetime(2025, 3, 9, 23, 59)
        assert streak_after(2, last, datetime(2025, 3, 10, 0, 1)) == 3

    def test_gap_resets(self):
        assert streak_after(5, DAY - timedelta(days=2), DAY) == 1

    def test_wider_window(self):
        assert streak_after(5, DAY - timedelta(days=2), DAY, window_days=2) == 6
        assert streak_after(5, DAY - timedelta(days=3), DAY, window_days=2) == 1

    def test_out_of_order_completion_counts_as_same_day(self):
        assert streak_after(2, DAY, DAY - timedelta(days=3)) == 3


class TestApplyCompletion:
    """Test the pure profile update."""

    def test_first_completion(self):
        updated = apply_completion(profile(), 10, DAY)
        assert updated.total_points == 10
        assert updated.total_lessons_completed == 1
        assert updated.current_streak == 1
        assert updated.best_streak == 1
        assert updated.last_activity_at == DAY

    def test_does_not_mutate_input(self):
        before = profile()
        apply_completion(before, 10, DAY)
        assert before.total_points == 0

    def test_best_streak_kept_after_reset(self):
        before = profile(current_streak=4, best_streak=7, last_activity_at=DAY - timedelta(days=5))
        updated = apply_completion(before, 10, DAY)
        assert updated.current_streak == 1
        assert updated.best_streak == 7

    def test_best_streak_follows_current(self):
        before = profile(current_streak=7, best_streak=7, last_activity_at=DAY - timedelta(days=1))
        updated = apply_completion(before, 10, DAY)
        assert updated.current_streak == 8
        assert updated.best_streak == 8

    def test_repeat_updates_streak_only(self):
        before = profile(total_points=10, total_lessons_completed=1, current_streak=1,
                         best_streak=1, last_activity_at=DAY - timedelta(days=1))
        updated = apply_completion(before, 10, DAY, counts_as_new=False)
        assert updated.total_points == 10
        assert updated.total_lessons_completed == 1
        assert updated.current_streak == 2

    def test_last_activity_never_moves_back(self):
        before = profile(current_streak=1, best_streak=1, last_activity_at=DAY)
        updated = apply_completion(before, 10, DAY - timedelta(days=1))
        assert updated.last_activity_at == DAY

    def test_current_never_exceeds_best(self):
        current = profile()
        days = [0, 1, 1, 2, 5, 6, 7, 7, 20, 21]
        for offset in days:
            current = apply_completion(current, 5, DAY + timedelta(days=offset))
            assert current.current_streak <= current.best_streak
        assert current.best_streak == 4
        assert current.current_streak == 2
        assert current.total_points == 5 * len(days)


class TestScoreKeeper:
    """Test scoring against the store."""

    @pytest.fixture
    def lesson(self, seeded_store):
        return seeded_store.get_lesson("python-off-by-one")

    @pytest.fixture
    def user(self, seeded_store):
        return seeded_store.create_profile("user_1", created_at=datetime(2025, 1, 1))

    def complete(self, store, keeper, lesson, completed_at=DAY):
        e = event(lesson.id, completed_at)
        previous = store.upsert_progress(e.to_record())
        return keeper.on_completion(e, lesson, previous=previous)

    def test_first_completion_scores(self, seeded_store, lesson, user):
        keeper = ScoreKeeper(seeded_store)
        result = self.complete(seeded_store, keeper, lesson)
        assert result.points_awarded == 10
        assert not result.rescored
        stored = seeded_store.get_profile("user_1")
        assert stored.total_points == 10
        assert stored.total_lessons_completed == 1
        assert stored.current_streak == 1
        assert seeded_store.list_progress("user_1")[0].scored

    def test_repeat_under_first_only(self, seeded_store, lesson, user):
        keeper = ScoreKeeper(seeded_store, RepeatCompletionPolicy.FIRST_ONLY)
        self.complete(seeded_store, keeper, lesson)
        result = self.complete(seeded_store, keeper, lesson, DAY + timedelta(days=1))
        assert result.points_awarded == 0
        assert result.profile.total_points == 10
        assert result.profile.total_lessons_completed == 1
        assert result.profile.current_streak == 2

    def test_repeat_under_every(self, seeded_store, lesson, user):
        keeper = ScoreKeeper(seeded_store, RepeatCompletionPolicy.EVERY)
        self.complete(seeded_store, keeper, lesson)
        result = self.complete(seeded_store, keeper, lesson)
        assert result.points_awarded == 10
        assert result.rescored
        assert result.profile.total_points == 20
        assert result.profile.total_lessons_completed == 2

    def test_unscored_record_is_scored_on_retry(self, seeded_store, lesson, user):
        keeper = ScoreKeeper(seeded_store)
        unscored = ProgressRecord(user_id="user_1", lesson_id=lesson.id,
                                  completed_at=DAY, attempts=1)
        assert keeper.awards_points(unscored)
        assert not keeper.awards_points(unscored.model_copy(update={"scored": True}))
        assert keeper.awards_points(None)

    def test_scoring_a_failed_first_attempt_is_not_a_rescore(self, seeded_store, lesson, user):
        keeper = ScoreKeeper(seeded_store)
        first = event(lesson.id)
        seeded_store.upsert_progress(first.to_record())
        previous = seeded_store.upsert_progress(first.to_record())
        assert previous is not None and not previous.scored

        result = keeper.on_completion(first, lesson, previous=previous)
        assert result.points_awarded == 10
        assert not result.rescored

    def test_missing_profile(self, seeded_store, lesson):
        keeper = ScoreKeeper(seeded_store)
        with pytest.raises(ProfileNotFound):
            self.complete(seeded_store, keeper, lesson)
        assert seeded_store.has_progress("user_1")

    def test_streak_window_setting(self, seeded_store, lesson, user):
        keeper = ScoreKeeper(seeded_store, window_days=3)
        self.complete(seeded_store, keeper, lesson)
        other = seeded_store.get_lesson("java-array-index")
        result = self.complete(seeded_store, keeper, other, DAY + timedelta(days=3))
        assert result.profile.current_streak == 2

    def test_version_increments_per_completion(self, seeded_store, lesson, user):
        keeper = ScoreKeeper(seeded_store)
        self.complete(seeded_store, keeper, lesson)
        self.complete(seeded_store, keeper, seeded_store.get_lesson("java-array-index"))
        assert seeded_store.get_profile("user_1").version == 2
