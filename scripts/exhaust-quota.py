#!/usr/bin/env python3
"""Mark every configured API key as exhausted for today.

For exercising the quota-exhausted reporting path locally. The counters are
advisory, so real YouTube calls are still attempted afterwards.
"""

import argparse
import sys
from datetime import datetime
from zoneinfo import ZoneInfo

from google.cloud import firestore

from app.config import settings
from app.core.firestore_store import FirestoreStore
from app.models import QuotaRecord


def exhaust_quota(key_count: int):
    client = firestore.Client(project=settings.gcp_project_id, database=settings.firestore_database_id)
    store = FirestoreStore(client)
    today = datetime.now(ZoneInfo(settings.quota_timezone)).strftime("%Y-%m-%d")
    limit = settings.youtube_daily_quota_per_key

    for key_index in range(key_count):
        store.set_quota_usage(QuotaRecord(
            date=today,
            key_index=key_index,
            search_calls=limit // 100,
            total_units=limit,
            successful_calls=limit // 100,
        ))

    print(f"✓ {today}: all {key_count} API key(s) marked as exhausted "
          f"({key_count * limit:,}/{key_count * limit:,} units used)")
    print("✓ Quota resets at midnight Pacific time")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Mark all API keys as exhausted for today")
    parser.add_argument("--keys", type=int, default=len(settings.api_keys) or 4,
                        help="Number of keys to mark (defaults to the configured pool size)")
    parser.add_argument("--yes", "-y", action="store_true", help="Skip confirmation prompt")
    args = parser.parse_args()

    if not args.yes:
        answer = input(f"Overwrite today's quota records in project {settings.gcp_project_id}? [y/N] ")
        if answer.lower() != "y":
            print("Aborted")
            sys.exit(0)

    try:
        exhaust_quota(args.keys)
    except Exception as e:
        print(f"❌ Error: {e}", file=sys.stderr)
        sys.exit(1)
