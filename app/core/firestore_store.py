"""Firestore persistence for learning paths, quota counters, analytics and bookmarks."""

import logging
import uuid
from datetime import datetime, UTC

from google.cloud import firestore

from ..config import settings
from ..models import Bookmark, BookmarkCreate, LearningPath, LearningPathVideo, QuotaRecord, SearchRecord
from .result_cache import normalize_query

logger = logging.getLogger(__name__)


def _topic_doc_id(topic: str) -> str:
    """Firestore document ID for a topic (slashes are not allowed in IDs)."""
    return normalize_query(topic).replace("/", "_") or "_"


class FirestoreStore:
    """
    Key-based CRUD over Firestore.

    No cross-entity transactions: each write stands on its own.
    """

    def __init__(self, firestore_client: firestore.Client):
        self.db = firestore_client
        self.paths_collection = settings.learning_paths_collection
        self.videos_collection = "videos"
        self.quota_collection = settings.quota_collection
        self.searches_collection = settings.searches_collection
        self.bookmarks_collection = settings.bookmarks_collection

    # ------------------------------------------------------------------
    # Learning paths
    # ------------------------------------------------------------------

    def save_learning_path(self, path: LearningPath) -> LearningPath:
        """Replace the stored path for a topic and upsert its videos."""
        batch = self.db.batch()

        path_ref = self.db.collection(self.paths_collection).document(_topic_doc_id(path.topic))
        batch.set(path_ref, {
            "topic": path.topic,
            "normalized_topic": normalize_query(path.topic),
            "videos": [v.model_dump(mode="json") for v in path.videos],
            "created_at": path.created_at,
        })

        for video in path.videos:
            video_ref = self.db.collection(self.videos_collection).document(video.youtube_id)
            batch.set(video_ref, {
                **video.model_dump(mode="json"),
                "updated_at": datetime.now(UTC),
            }, merge=True)

        batch.commit()
        logger.info(f"Saved learning path for '{path.topic}': {path.video_ids}")
        return path

    def get_learning_path_by_topic(self, topic: str) -> LearningPath | None:
        doc = self.db.collection(self.paths_collection).document(_topic_doc_id(topic)).get()
        if not doc.exists:
            return None

        data = doc.to_dict()
        return LearningPath(
            topic=data.get("topic", topic),
            videos=[LearningPathVideo(**v) for v in data.get("videos", [])],
            created_at=data.get("created_at") or datetime.now(UTC),
        )

    def get_video(self, youtube_id: str) -> LearningPathVideo | None:
        doc = self.db.collection(self.videos_collection).document(youtube_id).get()
        if not doc.exists:
            return None
        data = doc.to_dict()
        data.pop("updated_at", None)
        return LearningPathVideo(**data)

    # ------------------------------------------------------------------
    # Quota counters
    # ------------------------------------------------------------------

    QUOTA_COUNTERS = (
        "search_calls",
        "detail_calls",
        "total_units",
        "successful_calls",
        "failed_calls",
    )

    def increment_quota_usage(self, delta: QuotaRecord) -> None:
        """
        Add one call's counters to the stored (date, key) record.

        Atomic increments, so concurrent writers (and a writer that never
        managed to read the stored totals) cannot overwrite each other.
        """
        doc_id = f"{delta.date}_{delta.key_index}"
        self.db.collection(self.quota_collection).document(doc_id).set(
            {
                "date": delta.date,
                "key_index": delta.key_index,
                **{
                    field: firestore.Increment(getattr(delta, field))
                    for field in self.QUOTA_COUNTERS
                    if getattr(delta, field)
                },
                "updated_at": datetime.now(UTC),
            },
            merge=True,
        )

    def set_quota_usage(self, record: QuotaRecord) -> None:
        """Overwrite the counters for one (date, key) pair (operator scripts only)."""
        doc_id = f"{record.date}_{record.key_index}"
        self.db.collection(self.quota_collection).document(doc_id).set(
            {
                **record.model_dump(),
                "updated_at": datetime.now(UTC),
            },
            merge=True,
        )

    def get_quota_usage(self, date: str) -> list[QuotaRecord]:
        docs = self.db.collection(self.quota_collection).where("date", "==", date).stream()

        records = []
        for doc in docs:
            data = doc.to_dict()
            data.pop("updated_at", None)
            records.append(QuotaRecord(**data))

        return sorted(records, key=lambda r: r.key_index)

    def delete_quota_usage_before(self, cutoff_date: str) -> int:
        """Delete quota records dated strictly before ``cutoff_date``."""
        docs = self.db.collection(self.quota_collection).where("date", "<", cutoff_date).stream()

        deleted = 0
        for doc in docs:
            doc.reference.delete()
            deleted += 1

        if deleted:
            logger.info(f"Pruned {deleted} quota records older than {cutoff_date}")
        return deleted

    # ------------------------------------------------------------------
    # Search analytics
    # ------------------------------------------------------------------

    def record_search(self, record: SearchRecord) -> str:
        doc_ref = self.db.collection(self.searches_collection).document()
        doc_ref.set(record.model_dump())
        return doc_ref.id

    def list_recent_searches(self, limit: int = 100) -> list[SearchRecord]:
        docs = (
            self.db.collection(self.searches_collection)
            .order_by("created_at", direction=firestore.Query.DESCENDING)
            .limit(limit)
            .stream()
        )
        return [SearchRecord(**doc.to_dict()) for doc in docs]

    # ------------------------------------------------------------------
    # Bookmarks
    # ------------------------------------------------------------------

    def save_bookmark(self, bookmark: BookmarkCreate) -> Bookmark:
        saved = Bookmark(bookmark_id=uuid.uuid4().hex, **bookmark.model_dump())
        self.db.collection(self.bookmarks_collection).document(saved.bookmark_id).set(
            saved.model_dump()
        )
        logger.info(f"Saved bookmark {saved.bookmark_id} for user {saved.user_id}")
        return saved

    def list_bookmarks(self, user_id: str) -> list[Bookmark]:
        docs = self.db.collection(self.bookmarks_collection).where("user_id", "==", user_id).stream()
        bookmarks = [Bookmark(**doc.to_dict()) for doc in docs]
        return sorted(bookmarks, key=lambda b: b.created_at, reverse=True)

    def delete_bookmark(self, bookmark_id: str, user_id: str) -> bool:
        """Delete a bookmark owned by ``user_id``. Returns False if not found."""
        doc_ref = self.db.collection(self.bookmarks_collection).document(bookmark_id)
        doc = doc_ref.get()
        if not doc.exists or doc.to_dict().get("user_id") != user_id:
            return False

        doc_ref.delete()
        logger.info(f"Deleted bookmark {bookmark_id}")
        return True
