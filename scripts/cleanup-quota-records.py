#!/usr/bin/env python3
"""Delete quota records older than the retention window."""

import argparse
import sys
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

from google.cloud import firestore

from app.config import settings
from app.core.firestore_store import FirestoreStore


def cleanup_quota_records(retention_days: int):
    client = firestore.Client(project=settings.gcp_project_id, database=settings.firestore_database_id)
    cutoff = (datetime.now(ZoneInfo(settings.quota_timezone)) - timedelta(days=retention_days)).strftime("%Y-%m-%d")

    print(f"🔍 Deleting quota records dated before {cutoff}...")
    deleted = FirestoreStore(client).delete_quota_usage_before(cutoff)
    print(f"✅ Deleted {deleted} record(s)")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Prune old quota usage records")
    parser.add_argument("--days", type=int, default=settings.quota_retention_days,
                        help="Keep this many days of records")
    args = parser.parse_args()

    try:
        cleanup_quota_records(args.days)
    except Exception as e:
        print(f"❌ Error: {e}", file=sys.stderr)
        sys.exit(1)
