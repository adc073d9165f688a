"""
Catalog loader utility for DebugQuest.

Loads YAML lesson and badge catalogs from the catalog/ directory and seeds
them into a store.
"""

import logging
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import ValidationError as PydanticValidationError

from debugquest.errors import ValidationError
from debugquest.schemas import Badge, Lesson

logger = logging.getLogger(__name__)

# Default catalog directory (shipped with the package)
CATALOG_DIR = Path(__file__).parent.parent / "catalog"


def load_catalog_file(name: str, catalog_dir: Optional[Path] = None) -> Any:
    """
    Load a catalog file by name.

    Args:
        name: Catalog name without .yaml extension (e.g., "lessons")
        catalog_dir: Optional custom catalog directory

    Returns:
        The parsed YAML document

    Raises:
        FileNotFoundError: If catalog file doesn't exist
        yaml.YAMLError: If YAML parsing fails
    """
    dir_path = catalog_dir or CATALOG_DIR
    file_path = dir_path / f"{name}.yaml"

    if not file_path.exists():
        raise FileNotFoundError(f"Catalog file not found: {file_path}")

    with open(file_path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f)


def _parse_items(name: str, model, catalog_dir: Optional[Path]) -> list:
    data = load_catalog_file(name, catalog_dir) or {}
    items = data.get(name, [])
    try:
        return [model(**item) for item in items]
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid {name} catalog: {e}") from e


def load_lessons(catalog_dir: Optional[Path] = None) -> list[Lesson]:
    """Load and validate the lesson catalog."""
    return _parse_items("lessons", Lesson, catalog_dir)


def load_badges(catalog_dir: Optional[Path] = None) -> list[Badge]:
    """Load and validate the badge catalog."""
    return _parse_items("badges", Badge, catalog_dir)


def get_available_catalogs(catalog_dir: Optional[Path] = None) -> list[str]:
    """
    List all available catalog files.

    Returns:
        List of catalog names (without .yaml extension)
    """
    dir_path = catalog_dir or CATALOG_DIR
    if not dir_path.exists():
        return []
    return sorted(p.stem for p in dir_path.glob("*.yaml"))


def seed_store(store, catalog_dir: Optional[Path] = None) -> tuple[int, int]:
    """
    Write the lesson and badge catalogs into a store.

    Re-seeding replaces catalog rows in place; user data is untouched.

    Returns:
        (lesson count, badge count)
    """
    lessons = load_lessons(catalog_dir)
    badges = load_badges(catalog_dir)
    for lesson in lessons:
        store.add_lesson(lesson)
    for badge in badges:
        store.add_badge(badge)
    logger.info(f"Seeded {len(lessons)} lessons and {len(badges)} badges")
    return len(lessons), len(badges)
