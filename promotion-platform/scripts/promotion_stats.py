"""
Print promotion expiry stats - counts and investment by status, and what expires soon.
"""

import argparse
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from api.dependencies import build_container
from config import load_settings
from domain.stats import ExpiryStats
from services.stats_service import expiry_stats


def format_stats(stats: ExpiryStats) -> str:
    lines = [
        "=" * 50,
        "PROMOTION STATUS",
        "=" * 50,
        f"Active promotions:         {stats.active_count}",
        f"Active investment:         {stats.total_active_investment}",
        f"Expiring today:            {stats.expiring_today}",
        f"Expiring this week:        {stats.expiring_this_week}",
        "=" * 50,
        "",
        "Breakdown by status:",
        "-" * 50,
    ]
    for row in stats.status_breakdown:
        lines.append(f"{row.status.value:<16} {row.count:>6} promotions  {row.total_investment:>12} invested")
    lines.append("-" * 50)
    return "\n".join(lines)


def main() -> int:
    parser = argparse.ArgumentParser(description="Print promotion expiry statistics")
    parser.parse_args()

    container = build_container(load_settings())
    print(format_stats(expiry_stats(container.store, container.clock.now())))
    return 0


if __name__ == "__main__":
    sys.exit(main())
