"""Finalize every session left open past its day.

Usage: python scripts/sweep_stale_sessions.py [--as-of YYYY-MM-DD]

Safe to run repeatedly (e.g. from cron shortly after midnight); sessions
already finalized are left untouched.
"""

from __future__ import annotations

import argparse
import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dotenv import load_dotenv

from config import get_settings_module

from src.time_tracker.time_tracker.common.datetime_utils import parse_iso_date
from src.time_tracker.time_tracker.common.logging import configure_logging
from src.time_tracker.time_tracker.container import build_container


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Finalize sessions left open past their day.")
    parser.add_argument(
        "--as-of",
        type=parse_iso_date,
        default=None,
        help="Sweep sessions dated before this day (YYYY-MM-DD, default: today)",
    )
    return parser.parse_args(argv)


def main(argv: list[str]) -> int:
    args = parse_args(argv)
    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    container = build_container(db_config=dict(settings.DB_CONFIG), settings=settings)
    try:
        summary = container.rollover_sweeper.sweep_all(args.as_of)
    finally:
        container.dispatcher.shutdown(wait=True)

    print(f"OK: finalized {sum(summary.values())} session(s) for {len(summary)} user(s)")
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
