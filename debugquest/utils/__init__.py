"""DebugQuest utilities."""

from .catalog_loader import (
    load_catalog_file,
    load_lessons,
    load_badges,
    get_available_catalogs,
    seed_store,
)

__all__ = [
    "load_catalog_file",
    "load_lessons",
    "load_badges",
    "get_available_catalogs",
    "seed_store",
]
