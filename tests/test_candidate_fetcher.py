"""Tests for CandidateFetcher and its parsing helpers."""

from datetime import datetime, timedelta, UTC
from unittest.mock import MagicMock

import httplib2
import pytest

from app.core.api_key_pool import ApiKeyPool
from app.core.candidate_fetcher import CandidateFetcher, FetchStats, parse_duration, recency_score
from app.core.errors import (
    AccessDeniedError,
    InvalidKeyError,
    NoResultsError,
    QuotaExhaustedError,
    UpstreamError,
)
from app.core.result_cache import ResultCache
from conftest import NOW, make_detail_item, make_http_error, make_search_item


class TestParseDuration:
    @pytest.mark.parametrize(
        "value,expected",
        [
            ("PT5M30S", 330),
            ("PT1H15M", 4500),
            ("PT45S", 45),
            ("PT", 0),
            ("P1DT1H", 90000),
            ("", 0),
            (None, 0),
            ("garbage", 0),
            ("5M30S", 0),
        ],
    )
    def test_parse(self, value, expected):
        assert parse_duration(value) == expected


class TestRecencyScore:
    def test_fresh_video(self):
        assert recency_score(NOW - timedelta(days=5), NOW) == 1.0

    def test_old_video(self):
        assert recency_score(NOW - timedelta(days=1000), NOW) == 0.1

    def test_linear_in_between(self):
        midpoint = (30 + 730) / 2
        assert recency_score(NOW - timedelta(days=midpoint), NOW) == pytest.approx(0.55)

    def test_future_date_counts_as_fresh(self):
        assert recency_score(NOW + timedelta(days=3), NOW) == 1.0


def make_client(search_items=None, detail_items=None, search_error=None, detail_error=None):
    client = MagicMock()
    if search_error is not None:
        client.search_videos.side_effect = search_error
    else:
        client.search_videos.return_value = search_items or []
    if detail_error is not None:
        client.get_video_details.side_effect = detail_error
    else:
        client.get_video_details.return_value = detail_items or []
    return client


def build_fetcher(clients: dict[str, MagicMock], quota=None, **kwargs):
    keys = list(clients)
    return CandidateFetcher(
        key_pool=ApiKeyPool(keys),
        quota_tracker=quota or MagicMock(),
        cache=ResultCache(),
        client_factory=lambda api_key: clients[api_key],
        clock=lambda: NOW,
        **kwargs,
    )


@pytest.fixture
def healthy_client():
    ids = ["v1", "v2", "v3", "v4"]
    return make_client(
        search_items=[make_search_item(i) for i in ids],
        detail_items=[make_detail_item(i) for i in ids],
    )


class TestFetchCandidates:
    def test_happy_path(self, healthy_client):
        quota = MagicMock()
        fetcher = build_fetcher({"key-a": healthy_client}, quota=quota)
        stats = FetchStats()

        candidates = fetcher.fetch_candidates("Photosynthesis", stats)

        assert [c.video_id for c in candidates] == ["v1", "v2", "v3", "v4"]
        assert candidates[0].duration_seconds == 600
        assert candidates[0].view_count == 1000
        assert candidates[0].recency_score == 1.0
        quota.record_search_call.assert_called_once_with(0)
        quota.record_detail_call.assert_called_once_with(0, 4)
        assert stats.key_index == 0
        assert stats.quota_units == 104

    def test_query_sent_as_typed(self, healthy_client):
        fetcher = build_fetcher({"key-a": healthy_client}, search_max_results=25)

        fetcher.fetch_candidates("  Malaysia History ")

        healthy_client.search_videos.assert_called_once_with("Malaysia History", max_results=25)

    def test_duplicate_ids_are_dropped(self):
        client = make_client(
            search_items=[make_search_item("v1"), make_search_item("v1"), make_search_item("v2")],
            detail_items=[make_detail_item("v1"), make_detail_item("v2")],
        )
        fetcher = build_fetcher({"k": client})

        candidates = fetcher.fetch_candidates("topic")

        assert [c.video_id for c in candidates] == ["v1", "v2"]
        client.get_video_details.assert_called_once_with(["v1", "v2"])

    def test_prefetch_limit_caps_detail_request(self):
        ids = [f"v{i}" for i in range(25)]
        client = make_client(
            search_items=[make_search_item(i) for i in ids],
            detail_items=[make_detail_item(i) for i in ids],
        )
        fetcher = build_fetcher({"k": client}, prefetch_limit=15)

        candidates = fetcher.fetch_candidates("topic")

        assert len(client.get_video_details.call_args[0][0]) == 15
        assert len(candidates) == 15

    def test_duration_band_filter(self):
        client = make_client(
            search_items=[make_search_item(i) for i in ("short", "ok", "long", "edge")],
            detail_items=[
                make_detail_item("short", duration="PT1M59S"),
                make_detail_item("ok", duration="PT20M"),
                make_detail_item("long", duration="PT1H0M1S"),
                make_detail_item("edge", duration="PT2M"),
            ],
        )
        fetcher = build_fetcher({"k": client})

        candidates = fetcher.fetch_candidates("topic")

        assert [c.video_id for c in candidates] == ["ok", "edge"]

    def test_missing_details_are_dropped(self):
        client = make_client(
            search_items=[make_search_item("v1"), make_search_item("v2")],
            detail_items=[make_detail_item("v2")],
        )
        fetcher = build_fetcher({"k": client})

        assert [c.video_id for c in fetcher.fetch_candidates("topic")] == ["v2"]

    def test_no_search_results(self):
        fetcher = build_fetcher({"k": make_client(search_items=[])})

        with pytest.raises(NoResultsError):
            fetcher.fetch_candidates("zzzz")

    def test_nothing_in_duration_band(self):
        client = make_client(
            search_items=[make_search_item("v1")],
            detail_items=[make_detail_item("v1", duration="PT30S")],
        )
        fetcher = build_fetcher({"k": client})

        with pytest.raises(NoResultsError):
            fetcher.fetch_candidates("topic")

    def test_cache_hit_makes_no_network_calls(self, healthy_client):
        quota = MagicMock()
        fetcher = build_fetcher({"k": healthy_client}, quota=quota)
        fetcher.fetch_candidates("Photosynthesis")
        healthy_client.reset_mock()
        quota.reset_mock()
        stats = FetchStats()

        candidates = fetcher.fetch_candidates("  photosynthesis", stats)

        assert len(candidates) == 4
        assert stats.cache_hit is True
        healthy_client.search_videos.assert_not_called()
        healthy_client.get_video_details.assert_not_called()
        quota.record_search_call.assert_not_called()


class TestKeyRotation:
    def test_rotates_past_exhausted_key(self, healthy_client):
        exhausted = make_client(search_error=make_http_error(403, "quotaExceeded"))
        quota = MagicMock()
        fetcher = build_fetcher({"k0": exhausted, "k1": healthy_client}, quota=quota)

        candidates = fetcher.fetch_candidates("topic")

        assert len(candidates) == 4
        assert quota.record_search_call.call_count == 2
        quota.record_search_call.assert_any_call(0, successful=False)
        quota.record_search_call.assert_any_call(1)
        # Details go to the key that served the search
        healthy_client.get_video_details.assert_called_once()
        exhausted.get_video_details.assert_not_called()
        quota.record_detail_call.assert_called_once_with(1, 4)

    def test_all_keys_exhausted(self):
        clients = {
            f"k{i}": make_client(search_error=make_http_error(403, "quotaExceeded"))
            for i in range(4)
        }
        quota = MagicMock()
        fetcher = build_fetcher(clients, quota=quota)
        stats = FetchStats()

        with pytest.raises(QuotaExhaustedError):
            fetcher.fetch_candidates("topic", stats)

        assert stats.attempts == 4
        assert quota.record_search_call.call_count == 4
        for client in clients.values():
            client.search_videos.assert_called_once()

    def test_successive_requests_start_on_different_keys(self):
        clients = {
            f"k{i}": make_client(
                search_items=[make_search_item("v1")], detail_items=[make_detail_item("v1")]
            )
            for i in range(2)
        }
        fetcher = build_fetcher(clients)

        first, second = FetchStats(), FetchStats()
        fetcher.fetch_candidates("alpha", first)
        fetcher.fetch_candidates("beta", second)

        assert {first.key_index, second.key_index} == {0, 1}

    @pytest.mark.parametrize("status,reason", [
        (429, "rateLimitExceeded"),
        (403, "rateLimitExceeded"),
        (403, "userRateLimitExceeded"),
    ])
    def test_throttling_does_not_rotate(self, healthy_client, status, reason):
        limited = make_client(search_error=make_http_error(status, reason, "Too many requests"))
        fetcher = build_fetcher({"k0": limited, "k1": healthy_client})
        stats = FetchStats()

        with pytest.raises(UpstreamError):
            fetcher.fetch_candidates("topic", stats)

        assert stats.attempts == 1
        healthy_client.search_videos.assert_not_called()


class TestErrorMapping:
    def test_invalid_key(self, healthy_client):
        invalid = make_client(search_error=make_http_error(400, "keyInvalid", "API key not valid."))
        fetcher = build_fetcher({"k0": invalid, "k1": healthy_client})

        with pytest.raises(InvalidKeyError):
            fetcher.fetch_candidates("topic")

        # Configuration errors do not rotate
        healthy_client.search_videos.assert_not_called()

    def test_access_denied(self):
        denied = make_client(search_error=make_http_error(403, "forbidden", "Access Not Configured"))
        fetcher = build_fetcher({"k": denied})

        with pytest.raises(AccessDeniedError):
            fetcher.fetch_candidates("topic")

    def test_server_error(self):
        broken = make_client(search_error=make_http_error(500, "backendError"))
        fetcher = build_fetcher({"k": broken})

        with pytest.raises(UpstreamError):
            fetcher.fetch_candidates("topic")

    def test_transport_error(self):
        broken = make_client(search_error=httplib2.HttpLib2Error("connection reset"))
        quota = MagicMock()
        fetcher = build_fetcher({"k": broken}, quota=quota)

        with pytest.raises(UpstreamError):
            fetcher.fetch_candidates("topic")
        quota.record_search_call.assert_called_once_with(0, successful=False)

    def test_timeout(self):
        broken = make_client(search_error=TimeoutError("timed out"))
        fetcher = build_fetcher({"k": broken})

        with pytest.raises(UpstreamError):
            fetcher.fetch_candidates("topic")

    def test_quota_exceeded_on_details(self):
        client = make_client(
            search_items=[make_search_item("v1")],
            detail_error=make_http_error(403, "quotaExceeded"),
        )
        quota = MagicMock()
        fetcher = build_fetcher({"k": client}, quota=quota)

        with pytest.raises(QuotaExhaustedError):
            fetcher.fetch_candidates("topic")
        quota.record_detail_call.assert_called_once_with(0, 1, successful=False)

    def test_failures_are_not_cached(self, healthy_client):
        client = make_client(search_error=make_http_error(500, "backendError"))
        fetcher = build_fetcher({"k": client})

        with pytest.raises(UpstreamError):
            fetcher.fetch_candidates("topic")
        assert len(fetcher.cache) == 0
