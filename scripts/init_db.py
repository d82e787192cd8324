#!/usr/bin/env python3
"""
Create the Club Ranking tables on the configured database.

For a managed database prefer the migrations:
    alembic upgrade head

This script is meant for local development on SQLite:
    python scripts/init_db.py
    python scripts/init_db.py --drop   # start from an empty schema
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from clubrank.db import Base, get_engine
from clubrank.logging_config import setup_logging

logger = logging.getLogger(__name__)


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Create Club Ranking tables.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--drop",
        action="store_true",
        help="Drop existing tables first (destroys all data).",
    )
    args = parser.parse_args()

    setup_logging()
    engine = get_engine()

    if args.drop:
        logger.warning("Dropping all tables on %s", engine.url.render_as_string(hide_password=True))
        Base.metadata.drop_all(engine)

    Base.metadata.create_all(engine)
    logger.info("Tables ready: %s", ", ".join(sorted(Base.metadata.tables)))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
