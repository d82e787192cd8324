#!/usr/bin/env python3
"""Create a club player."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from clubrank.config import settings
from clubrank.db.session import get_session
from clubrank.logging_config import setup_logging
from clubrank.repositories import UserRepository


def main() -> int:
    parser = argparse.ArgumentParser(description="Create a club player")
    parser.add_argument("--name", required=True, help="Player name")
    parser.add_argument(
        "--initials",
        default=None,
        help="Initials (default: first two letters of the name)",
    )
    parser.add_argument(
        "--elo",
        type=int,
        default=settings.elo_default_rating,
        help=f"Starting rating (default: {settings.elo_default_rating})",
    )
    args = parser.parse_args()

    setup_logging()

    try:
        with get_session() as session:
            user = UserRepository(session).create(args.name, args.initials, elo=args.elo)
            print(f"User ready: id={user.id}, name={user.name}, initials={user.initials}, elo={user.elo}")
    except ValueError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
