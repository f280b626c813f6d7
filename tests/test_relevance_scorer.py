"""Tests for RelevanceScorer."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from app.core.relevance_scorer import RelevanceScorer, keyword_relevance, topic_words


@pytest.fixture
def mock_gemini():
    gemini = MagicMock()
    gemini.generate_json = AsyncMock()
    return gemini


@pytest.fixture
def candidates(make_candidate):
    return [
        make_candidate("v1", "Photosynthesis explained", "How plants make food"),
        make_candidate("v2", "Cooking pasta", "Italian recipes"),
        make_candidate("v3", "Light reactions", "Photosynthesis in chloroplasts"),
    ]


class TestKeywordRelevance:
    def test_topic_words_skip_short_tokens(self):
        assert topic_words("The history of AI in Asia") == ["the", "history", "asia"]

    def test_full_phrase_in_title(self, make_candidate):
        video = make_candidate("v", "Malaysia History in 10 minutes", "")
        assert keyword_relevance(video, "Malaysia History") == 0.9

    def test_missing_word_scores_zero(self, make_candidate):
        video = make_candidate("v", "Singapore History", "A city state")
        assert keyword_relevance(video, "Malaysia History") == 0.0

    def test_words_split_between_title_and_description(self, make_candidate):
        video = make_candidate("v", "History of a nation", "Malaysia from 1957")
        assert keyword_relevance(video, "Malaysia History") == pytest.approx(0.3)

    def test_capped_at_one(self, make_candidate):
        video = make_candidate("v", "alpha beta gamma delta epsilon", "")
        assert keyword_relevance(video, "epsilon delta gamma beta alpha") == 1.0


class TestScoreWithAI:
    @pytest.mark.asyncio
    async def test_scores_in_order(self, mock_gemini, candidates):
        mock_gemini.generate_json.return_value = {
            "scores": [0.95, 0.05, 0.85],
            "reasoning": ["On topic", "Cooking", "Sub-topic"],
        }
        scorer = RelevanceScorer(mock_gemini)

        scored = await scorer.score_relevance(candidates, "Photosynthesis")

        assert [s.relevance_score for s in scored] == [0.95, 0.05, 0.85]
        assert [s.relevance_source for s in scored] == ["ai", "ai", "ai"]
        assert scored[1].relevance_rationale == "Cooking"
        mock_gemini.generate_json.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_out_of_range_scores_are_clamped(self, mock_gemini, candidates):
        mock_gemini.generate_json.return_value = {"scores": [1.7, -0.2, "0.5"]}
        scorer = RelevanceScorer(mock_gemini)

        scored = await scorer.score_relevance(candidates, "Photosynthesis")

        assert [s.relevance_score for s in scored] == [1.0, 0.0, 0.5]

    @pytest.mark.asyncio
    async def test_missing_scores_default_to_low_confidence(self, mock_gemini, candidates):
        mock_gemini.generate_json.return_value = {"scores": [0.9, None]}
        scorer = RelevanceScorer(mock_gemini)

        scored = await scorer.score_relevance(candidates, "Photosynthesis")

        assert [s.relevance_score for s in scored] == [0.9, 0.1, 0.1]
        assert scored[1].relevance_source == "default"
        assert scored[2].relevance_rationale == "Default score (missing AI output)"

    @pytest.mark.asyncio
    async def test_malformed_response_falls_back(self, mock_gemini, candidates):
        mock_gemini.generate_json.return_value = {"ratings": [1, 1, 1]}
        scorer = RelevanceScorer(mock_gemini)

        scored = await scorer.score_relevance(candidates, "Photosynthesis")

        assert all(s.relevance_source == "keyword" for s in scored)


class TestFallback:
    @pytest.mark.asyncio
    async def test_gemini_error_falls_back_to_keywords(self, mock_gemini, candidates):
        mock_gemini.generate_json.side_effect = TimeoutError("timed out")
        scorer = RelevanceScorer(mock_gemini)

        scored = await scorer.score_relevance(candidates, "Photosynthesis")

        assert [s.relevance_score for s in scored] == [0.9, 0.0, 0.0]
        assert all(s.relevance_rationale == "Keyword matching" for s in scored)

    @pytest.mark.asyncio
    async def test_unconfigured_gemini_uses_keywords(self, candidates):
        scorer = RelevanceScorer(None)

        scored = await scorer.score_relevance(candidates, "Photosynthesis")

        assert [s.relevance_source for s in scored] == ["keyword"] * 3

    @pytest.mark.asyncio
    async def test_fallback_is_deterministic(self, candidates):
        scorer = RelevanceScorer(None)

        first = await scorer.score_relevance(candidates, "photosynthesis")
        second = await scorer.score_relevance(candidates, "photosynthesis")

        assert [s.relevance_score for s in first] == [s.relevance_score for s in second]

    @pytest.mark.asyncio
    async def test_empty_input(self, mock_gemini):
        scorer = RelevanceScorer(mock_gemini)

        assert await scorer.score_relevance([], "anything") == []
        mock_gemini.generate_json.assert_not_called()
