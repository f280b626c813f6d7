"""Topical relevance scoring: batched Gemini call with keyword-matching fallback."""

import logging
from typing import Any

from ..models import CandidateVideo, ScoredCandidate
from .gemini_client import GeminiClient
from .prompt_builder import RELEVANCE_SYSTEM_INSTRUCTION, PromptBuilder
from .scoring import StageResult, clamp

logger = logging.getLogger(__name__)


def topic_words(topic: str) -> list[str]:
    """Lowercase topic tokens longer than two characters."""
    return [word for word in topic.strip().lower().split() if len(word) > 2]


def keyword_relevance(candidate: CandidateVideo, topic: str) -> float:
    """
    Deterministic relevance score from keyword matching.

    Scoring:
    - Any topic word missing from title+description: 0.0
    - Full topic phrase in the title: 0.9
    - Otherwise: 0.3 per topic word found in the title (max 1.0)

    Partial matches are deliberately scored 0 so tangential videos are
    not surfaced when AI scoring is unavailable.
    """
    phrase = topic.strip().lower()
    words = topic_words(topic)
    title = candidate.title.lower()
    description = candidate.description.lower()

    if not all(word in title or word in description for word in words):
        return 0.0

    if phrase and phrase in title:
        return 0.9

    return min(1.0, 0.3 * sum(1 for word in words if word in title))


class RelevanceScorer:
    """
    Score each candidate's relevance to the topic (0.0-1.0).

    Primary: one batched Gemini prompt. Fallback: keyword matching.
    AI failures never propagate.
    """

    DEFAULT_SCORE = 0.1  # Low confidence, not exclusion

    def __init__(self, gemini_client: GeminiClient | None, prompt_builder: PromptBuilder | None = None):
        self.gemini = gemini_client
        self.prompts = prompt_builder or PromptBuilder()

    async def score_relevance(self, candidates: list[CandidateVideo], topic: str) -> list[ScoredCandidate]:
        """Attach relevance score and rationale to every candidate."""
        if not candidates:
            return []

        result = await self.score_with_ai(candidates, topic)
        if result.ok:
            return result.value

        logger.warning(
            f"AI relevance scoring unavailable ({result.error.reason}), using keyword matching"
        )
        return self.score_with_keywords(candidates, topic)

    def score_with_keywords(self, candidates: list[CandidateVideo], topic: str) -> list[ScoredCandidate]:
        return [
            ScoredCandidate(
                **candidate.model_dump(),
                relevance_score=keyword_relevance(candidate, topic),
                relevance_rationale="Keyword matching",
                relevance_source="keyword",
            )
            for candidate in candidates
        ]

    async def score_with_ai(
        self, candidates: list[CandidateVideo], topic: str
    ) -> StageResult[list[ScoredCandidate]]:
        if self.gemini is None:
            return StageResult.failure("relevance", "Gemini not configured")

        prompt = self.prompts.build_relevance_prompt(candidates, topic)
        try:
            data = await self.gemini.generate_json(prompt, RELEVANCE_SYSTEM_INSTRUCTION)
        except Exception as e:
            logger.warning(f"Gemini relevance call failed: {type(e).__name__}: {e}")
            return StageResult.failure("relevance", str(e), e)

        scores = data.get("scores")
        if not isinstance(scores, list):
            return StageResult.failure("relevance", "response has no 'scores' array")

        reasoning = data.get("reasoning")
        if not isinstance(reasoning, list):
            reasoning = []

        scored = []
        defaulted = 0
        for i, candidate in enumerate(candidates):
            score = self._coerce_score(scores[i] if i < len(scores) else None)
            rationale = reasoning[i] if i < len(reasoning) and isinstance(reasoning[i], str) else ""

            if score is None:
                defaulted += 1
                scored.append(ScoredCandidate(
                    **candidate.model_dump(),
                    relevance_score=self.DEFAULT_SCORE,
                    relevance_rationale="Default score (missing AI output)",
                    relevance_source="default",
                ))
                continue

            scored.append(ScoredCandidate(
                **candidate.model_dump(),
                relevance_score=score,
                relevance_rationale=rationale or "AI batch analysis",
                relevance_source="ai",
            ))

        if defaulted:
            logger.warning(f"Gemini returned no usable score for {defaulted}/{len(candidates)} videos")

        logger.info(f"AI relevance scores for '{topic}': {[round(s.relevance_score, 2) for s in scored]}")
        return StageResult.success(scored)

    @staticmethod
    def _coerce_score(value: Any) -> float | None:
        if isinstance(value, bool) or value is None:
            return None
        try:
            score = float(value)
        except (TypeError, ValueError):
            return None
        if score != score:  # NaN
            return None
        return clamp(score, 0.0, 1.0)
