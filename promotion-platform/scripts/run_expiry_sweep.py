#!/usr/bin/env python3
"""
Promotion Expiry Sweep Script

Runs one expiry sweep against the configured store, the same sweep the API's
hourly scheduler and the admin "Check & Expire Now" button run.

Usage:
    python run_expiry_sweep.py
    python run_expiry_sweep.py --dry-run
    python run_expiry_sweep.py --no-wait
"""

from __future__ import annotations

import argparse
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from api.dependencies import build_container
from config import load_settings
from domain.errors import SweepAlreadyRunning
from domain.lifecycle import is_expired
from domain.promotion import PromotionRecord, PromotionStatus
from repositories.promotion_store import PromotionStore
from services.expiry_sweeper import SweepSummary


def find_expired(store: PromotionStore, now: datetime) -> List[PromotionRecord]:
    """Active promotions a sweep at `now` would complete (read only)."""

    expired = [r for r in store.list_by_status(PromotionStatus.ACTIVE) if is_expired(r, now)]
    return sorted(expired, key=lambda r: (r.end_date, str(r.promotion_id)))


def format_summary(summary: SweepSummary) -> str:
    lines = [
        "=" * 60,
        "PROMOTION EXPIRY SWEEP",
        "=" * 60,
        f"Trigger:       {summary.trigger}",
        f"Scanned:       {summary.scanned}",
        f"Transitioned:  {summary.transitioned}",
        f"Errors:        {summary.error_count}",
    ]
    for error in summary.errors:
        target = str(error.promotion_id) if error.promotion_id else "(scan)"
        lines.append(f"  - {target}: {error.message}")
    lines.append("=" * 60)
    return "\n".join(lines)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="Complete promotions whose end date has passed",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run a sweep now (waits for a sweep already in progress in this process)
  python run_expiry_sweep.py

  # Show which promotions would be completed, without writing anything
  python run_expiry_sweep.py --dry-run
        """
    )

    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="List expired active promotions without completing them"
    )

    parser.add_argument(
        "--no-wait",
        action="store_true",
        help="Fail instead of waiting if a sweep is already running"
    )

    args = parser.parse_args(argv)

    try:
        container = build_container(load_settings())
        now = container.clock.now()

        if args.dry_run:
            expired = find_expired(container.store, now)
            print(f"{len(expired)} active promotion(s) past their end date as of {now.isoformat()}")
            for record in expired:
                print(
                    f"  {record.promotion_id}  {record.content_type.value}:{record.content_id}  "
                    f"{record.package_type.value}  ended {record.end_date.isoformat()}"
                )
            return 0

        summary = container.sweeper.run_now(wait=not args.no_wait, trigger="cli")
        print(format_summary(summary))
        return 0 if not summary.errors else 2

    except SweepAlreadyRunning as e:
        print(f"\n{e}", file=sys.stderr)
        return 3

    except KeyboardInterrupt:
        print("\n\nSweep interrupted by user")
        return 130

    except Exception as e:
        print(f"\nERROR: {e}", file=sys.stderr)
        import traceback
        traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
