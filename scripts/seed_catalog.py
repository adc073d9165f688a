#!/usr/bin/env python3
"""
seed_catalog.py - Load the lesson and badge catalogs into the practice database.

Reads the YAML catalogs and upserts every lesson and badge. User profiles,
progress and badge grants are left untouched, so re-running is safe.

Usage:
  python scripts/seed_catalog.py
  python scripts/seed_catalog.py --db data/debugquest.db --catalog-dir my_catalog/
"""

import argparse
import logging
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from debugquest.config import load_settings, setup_logging
from debugquest.errors import DebugQuestError
from debugquest.practice import PracticeStore
from debugquest.utils import get_available_catalogs, seed_store

logger = logging.getLogger(__name__)


def parse_args():
    parser = argparse.ArgumentParser(description="Seed the DebugQuest catalog")
    parser.add_argument(
        "--db",
        type=Path,
        default=None,
        help="Database path (default: DEBUGQUEST_DB_PATH or ~/.debugquest/debugquest.db)",
    )
    parser.add_argument(
        "--catalog-dir",
        type=Path,
        default=None,
        help="Directory holding lessons.yaml and badges.yaml",
    )
    return parser.parse_args()


def main():
    args = parse_args()
    settings = load_settings()
    setup_logging(settings.log_level)

    db_path = args.db or settings.db_path
    available = get_available_catalogs(args.catalog_dir)
    logger.info(f"Catalogs found: {', '.join(available) or 'none'}")

    try:
        store = PracticeStore(db_path)
        lessons, badges = seed_store(store, args.catalog_dir)
    except (DebugQuestError, FileNotFoundError) as e:
        logger.error(f"Seeding failed: {e}")
        sys.exit(1)

    totals = store.count_lessons_by_language()
    logger.info(f"Database: {db_path}")
    for language, count in sorted(totals.items(), key=lambda item: item[0].value):
        logger.info(f"  {language.value}: {count} lessons")
    logger.info(f"Done: {lessons} lessons, {badges} badges")


if __name__ == "__main__":
    main()
