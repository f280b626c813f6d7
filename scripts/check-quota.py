#!/usr/bin/env python3
"""Print today's YouTube quota usage per API key."""

import argparse
import sys

from google.cloud import firestore

from app.config import settings
from app.core.firestore_store import FirestoreStore
from app.core.quota_tracker import QuotaTracker


def check_quota(date: str | None = None):
    client = firestore.Client(project=settings.gcp_project_id, database=settings.firestore_database_id)
    tracker = QuotaTracker(
        store=FirestoreStore(client),
        key_count=len(settings.api_keys),
        daily_quota_per_key=settings.youtube_daily_quota_per_key,
        timezone=settings.quota_timezone,
    )
    usage = tracker.usage_for_date(date) if date else tracker.current_usage()

    print(f"📊 Quota usage for {usage.date} ({usage.timezone})\n")
    for key in usage.per_key:
        pct = key.units / usage.daily_limit_per_key * 100 if usage.daily_limit_per_key else 0
        flag = "🔴" if key.remaining == 0 else "⚠️ " if pct >= 80 else "✅"
        print(f"{flag} Key {key.key_index + 1}: {key.units:,}/{usage.daily_limit_per_key:,} units "
              f"({pct:.1f}%), {key.calls} calls, {key.remaining:,} remaining")

    capacity = usage.daily_limit_per_key * len(usage.per_key)
    print(f"\n   Total: {usage.total_units:,}/{capacity:,} units")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Show YouTube quota usage per API key")
    parser.add_argument("--date", help="Quota day (YYYY-MM-DD, Pacific). Defaults to today.")
    args = parser.parse_args()

    try:
        check_quota(args.date)
    except Exception as e:
        print(f"❌ Error: {e}", file=sys.stderr)
        sys.exit(1)
