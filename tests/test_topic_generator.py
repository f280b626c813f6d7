"""Tests for TopicGenerator."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from app.core.topic_generator import FALLBACK_TOPICS, TopicGenerator


@pytest.fixture
def mock_gemini():
    gemini = MagicMock()
    gemini.generate_json = AsyncMock()
    return gemini


@pytest.mark.asyncio
async def test_generated_topics(mock_gemini):
    mock_gemini.generate_json.return_value = {"topics": [" Chess ", "", "Knitting", 3, "Topology"]}

    topics = await TopicGenerator(mock_gemini).generate_topics(2)

    assert topics == ["Chess", "Knitting"]
    assert mock_gemini.generate_json.call_args.kwargs["temperature"] == 0.8


@pytest.mark.asyncio
async def test_failure_uses_fallback(mock_gemini):
    mock_gemini.generate_json.side_effect = TimeoutError()

    assert await TopicGenerator(mock_gemini).generate_topics(8) == FALLBACK_TOPICS


@pytest.mark.asyncio
async def test_bad_shape_uses_fallback(mock_gemini):
    mock_gemini.generate_json.return_value = {"topics": "Chess"}

    assert await TopicGenerator(mock_gemini).generate_topics(3) == FALLBACK_TOPICS[:3]


@pytest.mark.asyncio
async def test_without_gemini():
    assert await TopicGenerator(None).generate_topics(4) == FALLBACK_TOPICS[:4]
