"""YouTube API quota bookkeeping per quota day and API key."""

import logging
import threading
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

from ..models import KeyUsage, QuotaRecord, QuotaUsage
from .firestore_store import FirestoreStore

logger = logging.getLogger(__name__)


class QuotaTracker:
    """
    Advisory YouTube API quota tracking.

    Counts search and detail calls per (quota day, key index) and adds
    every call to the stored counters as an atomic increment. The quota
    day is the calendar day in Pacific time, which is when YouTube resets
    quotas, whatever the server locale.

    YouTube API v3 quota costs:
    - search.list: 100 units per call
    - videos.list: 1 unit per video returned

    The tracker never raises. It records; the fetcher decides.
    """

    COSTS = {
        "search": 100,  # search.list - EXPENSIVE
        "video_details": 1,  # videos.list, per video
    }

    # Warning threshold (percentage of a key's daily quota)
    WARNING_THRESHOLD = 0.80

    def __init__(
        self,
        store: FirestoreStore,
        key_count: int,
        daily_quota_per_key: int = 10_000,
        timezone: str = "America/Los_Angeles",
        clock=None,
    ):
        """
        Initialize quota tracker.

        Args:
            store: Persistence adapter for quota records
            key_count: Number of configured API keys (for usage reports)
            daily_quota_per_key: Daily quota limit per key in units
            timezone: Reference timezone for the quota day
            clock: Optional callable returning an aware datetime (tests)
        """
        self.store = store
        self.key_count = key_count
        self.daily_quota_per_key = daily_quota_per_key
        self.timezone = timezone
        self._tz = ZoneInfo(timezone)
        self._clock = clock or (lambda: datetime.now(self._tz))
        self._records: dict[tuple[str, int], QuotaRecord] = {}
        self._loaded_dates: set[str] = set()
        self._unpersisted: dict[tuple[str, int], QuotaRecord] = {}
        self._warned: set[tuple[str, int]] = set()
        self._lock = threading.Lock()

        logger.info(
            f"QuotaTracker initialized: {key_count} key(s) x {daily_quota_per_key} units ({timezone})"
        )

    def _get_today_key(self) -> str:
        """
        Get the current quota day.

        Returns:
            Date string in YYYY-MM-DD format (Pacific time)
        """
        return self._clock().astimezone(self._tz).strftime("%Y-%m-%d")

    def _load_date(self, date: str) -> None:
        """
        Hydrate counters for a date from the store.

        A date counts as loaded only after a successful read; until then
        every call retries. Calls recorded meanwhile were already added to
        the store as increments, so the stored totals replace the local
        ones, plus whatever failed to persist.
        """
        if date in self._loaded_dates:
            return

        try:
            stored = self.store.get_quota_usage(date)
        except Exception as e:
            logger.error(f"Failed to load quota usage for {date}, will retry: {e}")
            return

        for key in [k for k in self._records if k[0] == date]:
            del self._records[key]
        for record in stored:
            self._records[(date, record.key_index)] = record
        for (record_date, key_index), delta in list(self._unpersisted.items()):
            if record_date == date:
                self._add(self._get_or_create(date, key_index), delta)
                del self._unpersisted[(record_date, key_index)]

        self._loaded_dates.add(date)
        logger.debug(f"Loaded quota records for {date}")

    def _get_or_create(self, date: str, key_index: int) -> QuotaRecord:
        record = self._records.get((date, key_index))
        if record is None:
            record = QuotaRecord(date=date, key_index=key_index)
            self._records[(date, key_index)] = record
        return record

    @staticmethod
    def _add(record: QuotaRecord, delta: QuotaRecord) -> None:
        record.search_calls += delta.search_calls
        record.detail_calls += delta.detail_calls
        record.total_units += delta.total_units
        record.successful_calls += delta.successful_calls
        record.failed_calls += delta.failed_calls

    def record_search_call(self, key_index: int, successful: bool = True) -> None:
        """Record one search.list call (100 units), successful or not."""
        self._record(
            key_index,
            f"search call for key {key_index + 1}",
            successful,
            search_calls=1,
            total_units=self.COSTS["search"],
        )

    def record_detail_call(self, key_index: int, item_count: int, successful: bool = True) -> None:
        """Record one videos.list call (1 unit per video)."""
        self._record(
            key_index,
            f"detail call for key {key_index + 1} ({item_count} videos)",
            successful,
            detail_calls=1,
            total_units=self.COSTS["video_details"] * item_count,
        )

    def _record(self, key_index: int, label: str, successful: bool, **counters: int) -> None:
        with self._lock:
            date = self._get_today_key()
            self._load_date(date)

            delta = QuotaRecord(
                date=date,
                key_index=key_index,
                successful_calls=1 if successful else 0,
                failed_calls=0 if successful else 1,
                **counters,
            )
            record = self._get_or_create(date, key_index)
            self._add(record, delta)

            logger.info(f"Recorded {label}: {record.total_units} units used today")
            self._warn_if_near_limit(record)
            self._persist(delta)

    def _warn_if_near_limit(self, record: QuotaRecord) -> None:
        warn_key = (record.date, record.key_index)
        utilization = record.total_units / self.daily_quota_per_key if self.daily_quota_per_key else 0.0
        if utilization >= self.WARNING_THRESHOLD and warn_key not in self._warned:
            self._warned.add(warn_key)
            logger.warning(
                f"QUOTA WARNING: key {record.key_index + 1} at {utilization:.1%} "
                f"({record.total_units}/{self.daily_quota_per_key} units used)"
            )

    def _persist(self, delta: QuotaRecord) -> None:
        """Add the delta to the stored record. Caller holds the lock."""
        try:
            self.store.increment_quota_usage(delta)
        except Exception as e:
            logger.error(f"Failed to save quota usage: {e}")
            if delta.date not in self._loaded_dates:
                # Not in the store, so a later load must not drop it
                key = (delta.date, delta.key_index)
                pending = self._unpersisted.setdefault(
                    key, QuotaRecord(date=delta.date, key_index=delta.key_index)
                )
                self._add(pending, delta)

    def current_usage(self) -> QuotaUsage:
        """Today's usage across all configured keys."""
        today = self._get_today_key()
        return self.usage_for_date(today)

    def usage_for_date(self, date: str) -> QuotaUsage:
        with self._lock:
            self._load_date(date)
            records = {
                key_index: record.model_copy()
                for (record_date, key_index), record in self._records.items()
                if record_date == date
            }

        key_indexes = sorted(set(range(self.key_count)) | set(records))
        per_key = []
        for key_index in key_indexes:
            record = records.get(key_index) or QuotaRecord(date=date, key_index=key_index)
            per_key.append(KeyUsage(
                key_index=key_index,
                units=record.total_units,
                calls=record.search_calls + record.detail_calls,
                remaining=max(0, self.daily_quota_per_key - record.total_units),
            ))

        return QuotaUsage(
            date=date,
            timezone=self.timezone,
            total_units=sum(k.units for k in per_key),
            daily_limit_per_key=self.daily_quota_per_key,
            per_key=per_key,
        )

    def cleanup_old_records(self, retention_days: int = 30) -> int:
        """
        Drop records older than the retention window.

        Returns:
            Number of records deleted from the store
        """
        cutoff = (self._clock().astimezone(self._tz) - timedelta(days=retention_days)).strftime("%Y-%m-%d")

        with self._lock:
            for key in [k for k in self._records if k[0] < cutoff]:
                del self._records[key]
            self._loaded_dates = {d for d in self._loaded_dates if d >= cutoff}
            self._warned = {w for w in self._warned if w[0] >= cutoff}
            self._unpersisted = {k: v for k, v in self._unpersisted.items() if k[0] >= cutoff}

        try:
            return self.store.delete_quota_usage_before(cutoff)
        except Exception as e:
            logger.error(f"Failed to prune quota records before {cutoff}: {e}")
            return 0
