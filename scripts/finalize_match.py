#!/usr/bin/env python3
"""
Finalize a match from the command line.

Records the winner and both scores, optionally applies the rating swing,
and prints a JSON summary. Events are written to the log instead of being
pushed to live clients.

Examples:
    python scripts/finalize_match.py 12 --winner 3 --score 3:2 --score 5:1
    python scripts/finalize_match.py 12 --winner 3 --score 3:2 --score 5:1 \\
        --news "Derby goes to Anna" --apply-rating
"""
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from clubrank.db.session import SessionLocal
from clubrank.errors import FinalizeError
from clubrank.logging_config import setup_logging
from clubrank.matches import MatchFinalizer, ScoreEntry, ViewRefreshCoordinator
from clubrank.notify import LogNotifier


def _parse_score(raw: str) -> ScoreEntry:
    try:
        player_id, score = raw.split(":", 1)
        return ScoreEntry(int(player_id), int(score))
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected PLAYER_ID:SCORE, got {raw!r}") from None


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Finalize a match.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("match_id", type=int, help="Match to finalize")
    parser.add_argument("--winner", type=int, required=True, help="Winning user id")
    parser.add_argument(
        "--score",
        type=_parse_score,
        action="append",
        default=[],
        metavar="PLAYER_ID:SCORE",
        help="Score for one participant (repeat for each player).",
    )
    parser.add_argument("--news", default=None, help="News feed text")
    parser.add_argument("--extra-info-1", default=None)
    parser.add_argument("--extra-info-2", default=None)
    parser.add_argument(
        "--apply-rating",
        action="store_true",
        help="Move both players' ratings by the Elo swing.",
    )
    parser.add_argument(
        "--expected-version",
        type=int,
        default=None,
        help="Fail if the match changed since this version was read.",
    )
    return parser


def main() -> int:
    args = _build_parser().parse_args()
    setup_logging()

    coordinator = ViewRefreshCoordinator(SessionLocal, LogNotifier())
    finalizer = MatchFinalizer(SessionLocal, coordinator)

    try:
        result = finalizer.finalize(
            args.match_id,
            args.winner,
            args.score,
            news=args.news,
            extra_info_1=args.extra_info_1,
            extra_info_2=args.extra_info_2,
            apply_rating_update=args.apply_rating,
            expected_version=args.expected_version,
        )
    except FinalizeError as exc:
        print(json.dumps({"status": "rejected", "error": type(exc).__name__, "detail": str(exc)}))
        return 1

    change = result.rating_change
    payload = {
        "status": "degraded" if result.degraded else "success",
        "match": result.match.to_dict(),
        "rating_change": (
            {
                "winner_delta": change.winner_delta,
                "loser_delta": change.loser_delta,
                "expected_winner": round(change.expected_winner, 4),
            }
            if change is not None
            else None
        ),
        "ranking_changed": result.ranking_changed,
        "warnings": [str(warning) for warning in result.warnings],
    }
    print(json.dumps(payload, indent=2, default=str))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
