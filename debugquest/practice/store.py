"""
PracticeStore - SQLite persistence for lessons, profiles, progress and badges.

Stores:
- Lesson catalog and badge catalog (written by the seed step, read-only to the engine)
- One profile per user with additive counters
- One progress record per (user, lesson) completion
- Badge grants, unique per (user, badge)

Every method opens its own connection, so one store may be shared between
threads. Lock timeouts and other sqlite3.OperationalError failures surface
as StoreUnavailable.
"""

import json
import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterator, Optional

from debugquest.config import DEFAULT_DB_PATH
from debugquest.errors import (
    ConflictError,
    NotFoundError,
    ProfileNotFound,
    StoreUnavailable,
    ValidationError,
)
from debugquest.schemas import (
    Badge,
    BadgeType,
    Difficulty,
    EarnedBadge,
    Language,
    Lesson,
    Profile,
    ProgressEntry,
    ProgressRecord,
    UserBadge,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 5.0

SCHEMA = """
CREATE TABLE IF NOT EXISTS lessons (
    id TEXT PRIMARY KEY,
    title TEXT NOT NULL,
    language TEXT NOT NULL,
    difficulty TEXT NOT NULL,
    description TEXT NOT NULL,
    starter_code TEXT NOT NULL,
    expected_output TEXT NOT NULL,
    hints JSON NOT NULL DEFAULT '[]',
    points INTEGER NOT NULL DEFAULT 10,
    position INTEGER NOT NULL
);

CREATE TABLE IF NOT EXISTS profiles (
    user_id TEXT PRIMARY KEY,
    display_name TEXT,
    total_lessons_completed INTEGER NOT NULL DEFAULT 0,
    total_points INTEGER NOT NULL DEFAULT 0,
    current_streak INTEGER NOT NULL DEFAULT 0,
    best_streak INTEGER NOT NULL DEFAULT 0,
    last_activity_at TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    version INTEGER NOT NULL DEFAULT 0
);

CREATE TABLE IF NOT EXISTS user_progress (
    user_id TEXT NOT NULL,
    lesson_id TEXT NOT NULL REFERENCES lessons(id) ON DELETE CASCADE,
    completed_at TEXT NOT NULL,
    attempts INTEGER NOT NULL DEFAULT 1,
    hints_used INTEGER NOT NULL DEFAULT 0,
    time_taken INTEGER,
    scored INTEGER NOT NULL DEFAULT 0,
    PRIMARY KEY (user_id, lesson_id)
);

CREATE TABLE IF NOT EXISTS badges (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    description TEXT NOT NULL,
    badge_type TEXT NOT NULL,
    icon TEXT,
    requirement_value INTEGER
);

CREATE TABLE IF NOT EXISTS user_badges (
    user_id TEXT NOT NULL,
    badge_id TEXT NOT NULL REFERENCES badges(id) ON DELETE CASCADE,
    earned_at TEXT NOT NULL,
    PRIMARY KEY (user_id, badge_id)
);

CREATE INDEX IF NOT EXISTS idx_lessons_language
ON lessons(language, position);

CREATE INDEX IF NOT EXISTS idx_user_progress_user
ON user_progress(user_id);
"""


def _parse_dt(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


def _format_dt(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


class PracticeStore:
    """SQLite implementation of the catalog, profile, progress and badge stores."""

    def __init__(self, db_path: Optional[Path] = None, timeout: float = DEFAULT_TIMEOUT_SECONDS):
        """
        Initialize the store, creating the database if needed.

        Args:
            db_path: Path to the database (default: ~/.debugquest/debugquest.db)
            timeout: Seconds to wait on a locked database before giving up
        """
        self.db_path = Path(db_path) if db_path else DEFAULT_DB_PATH
        self.timeout = timeout
        self._ensure_database()

    def _ensure_database(self):
        """Create database and tables if they don't exist."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with self._connection() as conn:
            conn.executescript(SCHEMA)

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        """Autocommit connection; operational failures become StoreUnavailable."""
        try:
            conn = sqlite3.connect(str(self.db_path), timeout=self.timeout, isolation_level=None)
        except sqlite3.Error as e:
            logger.error(f"Cannot open store at {self.db_path}: {e}")
            raise StoreUnavailable("Store is unavailable") from e
        conn.row_factory = sqlite3.Row
        try:
            conn.execute("PRAGMA foreign_keys = ON")
            yield conn
        except sqlite3.OperationalError as e:
            logger.error(f"Store operation failed: {e}")
            raise StoreUnavailable("Store is unavailable") from e
        finally:
            conn.close()

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        """Write transaction holding the database write lock from the first read."""
        with self._connection() as conn:
            conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
            except BaseException:
                conn.execute("ROLLBACK")
                raise
            conn.execute("COMMIT")

    # -------------------------------------------------------------------------
    # Lessons
    # -------------------------------------------------------------------------

    @staticmethod
    def _row_to_lesson(row: sqlite3.Row) -> Lesson:
        return Lesson(
            id=row["id"],
            title=row["title"],
            language=Language(row["language"]),
            difficulty=Difficulty(row["difficulty"]),
            description=row["description"],
            starter_code=row["starter_code"],
            expected_output=row["expected_output"],
            hints=json.loads(row["hints"] or "[]"),
            points=row["points"],
            position=row["position"],
        )

    def add_lesson(self, lesson: Lesson):
        """Insert or replace a catalog lesson."""
        with self._connection() as conn:
            conn.execute(
                """INSERT INTO lessons (id, title, language, difficulty, description,
                                        starter_code, expected_output, hints, points, position)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                   ON CONFLICT(id) DO UPDATE SET
                     title = excluded.title,
                     language = excluded.language,
                     difficulty = excluded.difficulty,
                     description = excluded.description,
                     starter_code = excluded.starter_code,
                     expected_output = excluded.expected_output,
                     hints = excluded.hints,
                     points = excluded.points,
                     position = excluded.position""",
                (
                    lesson.id, lesson.title, lesson.language.value, lesson.difficulty.value,
                    lesson.description, lesson.starter_code, lesson.expected_output,
                    json.dumps(list(lesson.hints), ensure_ascii=False),
                    lesson.points, lesson.position,
                )
            )

    def get_lesson(self, lesson_id: str) -> Optional[Lesson]:
        """Get a single lesson by ID."""
        with self._connection() as conn:
            row = conn.execute("SELECT * FROM lessons WHERE id = ?", (lesson_id,)).fetchone()
            return self._row_to_lesson(row) if row else None

    def list_lessons(self, language: Optional[Language] = None) -> list[Lesson]:
        """Get lessons ordered by position, optionally for one language."""
        with self._connection() as conn:
            if language is None:
                cursor = conn.execute("SELECT * FROM lessons ORDER BY language, position, id")
            else:
                cursor = conn.execute(
                    "SELECT * FROM lessons WHERE language = ? ORDER BY position, id",
                    (Language(language).value,)
                )
            return [self._row_to_lesson(row) for row in cursor.fetchall()]

    def count_lessons_by_language(self) -> dict[Language, int]:
        """Get number of catalog lessons per language (languages without lessons omitted)."""
        with self._connection() as conn:
            cursor = conn.execute(
                "SELECT language, COUNT(*) AS count FROM lessons GROUP BY language"
            )
            return {Language(row["language"]): row["count"] for row in cursor.fetchall()}

    # -------------------------------------------------------------------------
    # Profiles
    # -------------------------------------------------------------------------

    @staticmethod
    def _row_to_profile(row: sqlite3.Row) -> Profile:
        return Profile(
            user_id=row["user_id"],
            display_name=row["display_name"],
            total_lessons_completed=row["total_lessons_completed"],
            total_points=row["total_points"],
            current_streak=row["current_streak"],
            best_streak=row["best_streak"],
            last_activity_at=_parse_dt(row["last_activity_at"]),
            created_at=_parse_dt(row["created_at"]),
            updated_at=_parse_dt(row["updated_at"]),
            version=row["version"],
        )

    def create_profile(self, user_id: str, display_name: Optional[str] = None,
                       created_at: Optional[datetime] = None) -> Profile:
        """
        Create an empty profile. Called once when a user signs up.

        Raises:
            ValidationError: If the user already has a profile
        """
        now = created_at or datetime.now()
        profile = Profile(user_id=user_id, display_name=display_name,
                          created_at=now, updated_at=now)
        with self._connection() as conn:
            try:
                conn.execute(
                    """INSERT INTO profiles (user_id, display_name, created_at, updated_at)
                       VALUES (?, ?, ?, ?)""",
                    (user_id, display_name, _format_dt(now), _format_dt(now))
                )
            except sqlite3.IntegrityError as e:
                raise ValidationError(f"Profile already exists for user: {user_id}") from e
        logger.info(f"Created profile for user {user_id}")
        return profile

    def get_profile(self, user_id: str) -> Optional[Profile]:
        """Get a user's profile, or None if it does not exist."""
        with self._connection() as conn:
            row = conn.execute(
                "SELECT * FROM profiles WHERE user_id = ?", (user_id,)
            ).fetchone()
            return self._row_to_profile(row) if row else None

    def list_profiles(self) -> list[Profile]:
        """Get all profiles in creation order."""
        with self._connection() as conn:
            cursor = conn.execute("SELECT * FROM profiles ORDER BY created_at, user_id")
            return [self._row_to_profile(row) for row in cursor.fetchall()]

    def rename_profile(self, user_id: str, display_name: str) -> Profile:
        """Change a profile's display name."""
        with self._transaction() as conn:
            cursor = conn.execute(
                """UPDATE profiles
                   SET display_name = ?, updated_at = ?, version = version + 1
                   WHERE user_id = ?""",
                (display_name, _format_dt(datetime.now()), user_id)
            )
            if cursor.rowcount == 0:
                raise ProfileNotFound(user_id)
            row = conn.execute(
                "SELECT * FROM profiles WHERE user_id = ?", (user_id,)
            ).fetchone()
            return self._row_to_profile(row)

    def update_profile(self, user_id: str, mutate: Callable[[Profile], Profile],
                       scored_lesson_id: Optional[str] = None) -> Profile:
        """
        Atomically read, modify and write a profile.

        The read and the write happen in one write transaction and the write
        is guarded by the profile version, so concurrent completions cannot
        lose each other's increments.

        Args:
            user_id: Profile owner
            mutate: Pure function from the current profile to the new one
            scored_lesson_id: Lesson whose progress record is marked scored
                in the same transaction

        Raises:
            ProfileNotFound: If the user has no profile
            ConflictError: If the profile changed underneath the update
        """
        with self._transaction() as conn:
            row = conn.execute(
                "SELECT * FROM profiles WHERE user_id = ?", (user_id,)
            ).fetchone()
            if not row:
                raise ProfileNotFound(user_id)

            current = self._row_to_profile(row)
            updated = mutate(current)
            now = datetime.now()
            cursor = conn.execute(
                """UPDATE profiles SET
                     total_lessons_completed = ?,
                     total_points = ?,
                     current_streak = ?,
                     best_streak = ?,
                     last_activity_at = ?,
                     updated_at = ?,
                     version = version + 1
                   WHERE user_id = ? AND version = ?""",
                (
                    updated.total_lessons_completed,
                    updated.total_points,
                    updated.current_streak,
                    updated.best_streak,
                    _format_dt(updated.last_activity_at),
                    _format_dt(now),
                    user_id,
                    current.version,
                )
            )
            if cursor.rowcount != 1:
                raise ConflictError(f"Profile for user {user_id} changed during update")

            if scored_lesson_id is not None:
                conn.execute(
                    """UPDATE user_progress SET scored = 1
                       WHERE user_id = ? AND lesson_id = ?""",
                    (user_id, scored_lesson_id)
                )

            return updated.model_copy(update={
                "updated_at": now,
                "version": current.version + 1,
            })

    # -------------------------------------------------------------------------
    # Progress
    # -------------------------------------------------------------------------

    def upsert_progress(self, record: ProgressRecord) -> Optional[ProgressRecord]:
        """
        Store a completion, replacing any earlier one for the same lesson.

        Returns:
            The replaced record, or None if this is the first completion

        Raises:
            ValidationError: If the lesson does not exist
        """
        with self._transaction() as conn:
            row = conn.execute(
                """SELECT user_id, lesson_id, completed_at, attempts, hints_used, time_taken, scored
                   FROM user_progress
                   WHERE user_id = ? AND lesson_id = ?""",
                (record.user_id, record.lesson_id)
            ).fetchone()
            previous = self._row_to_record(row) if row else None

            try:
                conn.execute(
                    """INSERT INTO user_progress
                         (user_id, lesson_id, completed_at, attempts, hints_used, time_taken)
                       VALUES (?, ?, ?, ?, ?, ?)
                       ON CONFLICT(user_id, lesson_id) DO UPDATE SET
                         completed_at = excluded.completed_at,
                         attempts = excluded.attempts,
                         hints_used = excluded.hints_used,
                         time_taken = excluded.time_taken""",
                    (
                        record.user_id, record.lesson_id, _format_dt(record.completed_at),
                        record.attempts, record.hints_used, record.time_taken,
                    )
                )
            except sqlite3.IntegrityError as e:
                raise ValidationError(f"Unknown lesson id: {record.lesson_id}") from e
            return previous

    @staticmethod
    def _row_to_record(row: sqlite3.Row) -> ProgressRecord:
        return ProgressRecord(
            user_id=row["user_id"],
            lesson_id=row["lesson_id"],
            completed_at=_parse_dt(row["completed_at"]),
            attempts=row["attempts"],
            hints_used=row["hints_used"],
            time_taken=row["time_taken"],
            scored=bool(row["scored"]),
        )

    def list_progress(self, user_id: str) -> list[ProgressEntry]:
        """Get a user's completions joined with lesson metadata, oldest first."""
        with self._connection() as conn:
            cursor = conn.execute(
                """SELECT p.user_id, p.lesson_id, p.completed_at, p.attempts,
                          p.hints_used, p.time_taken, p.scored,
                          l.language, l.difficulty, l.points
                   FROM user_progress p
                   JOIN lessons l ON p.lesson_id = l.id
                   WHERE p.user_id = ?
                   ORDER BY p.completed_at, p.lesson_id""",
                (user_id,)
            )
            return [
                ProgressEntry(
                    user_id=row["user_id"],
                    lesson_id=row["lesson_id"],
                    completed_at=_parse_dt(row["completed_at"]),
                    attempts=row["attempts"],
                    hints_used=row["hints_used"],
                    time_taken=row["time_taken"],
                    scored=bool(row["scored"]),
                    language=Language(row["language"]),
                    difficulty=Difficulty(row["difficulty"]),
                    points=row["points"],
                )
                for row in cursor.fetchall()
            ]

    def has_progress(self, user_id: str) -> bool:
        """Check whether the user has completed any lesson."""
        with self._connection() as conn:
            row = conn.execute(
                "SELECT 1 FROM user_progress WHERE user_id = ? LIMIT 1", (user_id,)
            ).fetchone()
            return row is not None

    # -------------------------------------------------------------------------
    # Badges
    # -------------------------------------------------------------------------

    def add_badge(self, badge: Badge):
        """Insert or replace a catalog badge."""
        with self._connection() as conn:
            conn.execute(
                """INSERT INTO badges (id, name, description, badge_type, icon, requirement_value)
                   VALUES (?, ?, ?, ?, ?, ?)
                   ON CONFLICT(id) DO UPDATE SET
                     name = excluded.name,
                     description = excluded.description,
                     badge_type = excluded.badge_type,
                     icon = excluded.icon,
                     requirement_value = excluded.requirement_value""",
                (badge.id, badge.name, badge.description, badge.badge_type.value,
                 badge.icon, badge.requirement_value)
            )

    def list_badges(self) -> list[Badge]:
        """Get the badge catalog."""
        with self._connection() as conn:
            cursor = conn.execute("SELECT * FROM badges ORDER BY id")
            return [
                Badge(
                    id=row["id"],
                    name=row["name"],
                    description=row["description"],
                    badge_type=BadgeType(row["badge_type"]),
                    icon=row["icon"],
                    requirement_value=row["requirement_value"],
                )
                for row in cursor.fetchall()
            ]

    def list_user_badges(self, user_id: str) -> list[UserBadge]:
        """Get badges granted to a user."""
        with self._connection() as conn:
            cursor = conn.execute(
                """SELECT user_id, badge_id, earned_at FROM user_badges
                   WHERE user_id = ? ORDER BY earned_at, badge_id""",
                (user_id,)
            )
            return [
                UserBadge(
                    user_id=row["user_id"],
                    badge_id=row["badge_id"],
                    earned_at=_parse_dt(row["earned_at"]),
                )
                for row in cursor.fetchall()
            ]

    def grant_badge(self, user_id: str, badge_id: str,
                    earned_at: Optional[datetime] = None) -> bool:
        """
        Grant a badge. Granting an owned badge is a no-op.

        Returns:
            True if the badge was newly granted

        Raises:
            NotFoundError: If the badge is not in the catalog
        """
        with self._connection() as conn:
            try:
                cursor = conn.execute(
                    """INSERT OR IGNORE INTO user_badges (user_id, badge_id, earned_at)
                       VALUES (?, ?, ?)""",
                    (user_id, badge_id, _format_dt(earned_at or datetime.now()))
                )
            except sqlite3.IntegrityError as e:
                raise NotFoundError(f"Badge not found: {badge_id}") from e
            return cursor.rowcount == 1

    def list_earned_badges(self, user_id: str, limit: Optional[int] = None) -> list[EarnedBadge]:
        """Get a user's badges with display details, newest first."""
        query = """SELECT ub.badge_id, ub.earned_at, b.name, b.description, b.icon
                   FROM user_badges ub
                   JOIN badges b ON ub.badge_id = b.id
                   WHERE ub.user_id = ?
                   ORDER BY ub.earned_at DESC, ub.badge_id"""
        params: tuple = (user_id,)
        if limit is not None:
            query += " LIMIT ?"
            params = (user_id, limit)
        with self._connection() as conn:
            cursor = conn.execute(query, params)
            return [
                EarnedBadge(
                    badge_id=row["badge_id"],
                    name=row["name"],
                    description=row["description"],
                    icon=row["icon"],
                    earned_at=_parse_dt(row["earned_at"]),
                )
                for row in cursor.fetchall()
            ]
