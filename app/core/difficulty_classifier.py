"""Difficulty classification (1-3): batched Gemini call with a keyword/duration heuristic fallback."""

import logging
import re
from typing import Any

from ..models import ClassifiedCandidate, DifficultyTier, ScoredCandidate
from .gemini_client import GeminiClient
from .prompt_builder import DIFFICULTY_SYSTEM_INSTRUCTION, PromptBuilder
from .scoring import StageResult

logger = logging.getLogger(__name__)

ADVANCED_PATTERN = re.compile(r"\b(advanced|master|expert|comprehensive)")
INTERMEDIATE_PATTERN = re.compile(r"\b(intermediate|tutorial|guide|course)")

ADVANCED_DURATION_SECONDS = 1800
INTERMEDIATE_DURATION_SECONDS = 900


def heuristic_tier(candidate: ScoredCandidate) -> DifficultyTier:
    """
    Guess difficulty from title/description keywords and duration.

    - advanced/master/expert/comprehensive, or longer than 30 min: 3
    - intermediate/tutorial/guide/course, or longer than 15 min: 2
    - otherwise: 1
    """
    text = f"{candidate.title} {candidate.description}".lower()

    if ADVANCED_PATTERN.search(text) or candidate.duration_seconds > ADVANCED_DURATION_SECONDS:
        return DifficultyTier.ADVANCED
    if INTERMEDIATE_PATTERN.search(text) or candidate.duration_seconds > INTERMEDIATE_DURATION_SECONDS:
        return DifficultyTier.INTERMEDIATE
    return DifficultyTier.BEGINNER


def dedupe_by_id(candidates: list[ScoredCandidate]) -> list[ScoredCandidate]:
    seen: set[str] = set()
    unique = []
    for candidate in candidates:
        if candidate.video_id in seen:
            continue
        seen.add(candidate.video_id)
        unique.append(candidate)
    return unique


class DifficultyClassifier:
    """Assign each candidate a difficulty tier with a short rationale."""

    DEFAULT_TIER = DifficultyTier.BEGINNER

    def __init__(self, gemini_client: GeminiClient | None, prompt_builder: PromptBuilder | None = None):
        self.gemini = gemini_client
        self.prompts = prompt_builder or PromptBuilder()

    async def classify_difficulty(
        self, candidates: list[ScoredCandidate], topic: str
    ) -> list[ClassifiedCandidate]:
        unique = dedupe_by_id(candidates)
        if len(unique) != len(candidates):
            logger.warning(f"Dropped {len(candidates) - len(unique)} duplicate candidates before classification")
        if not unique:
            return []

        result = await self.classify_with_ai(unique, topic)
        if result.ok:
            return result.value

        logger.warning(
            f"AI difficulty classification unavailable ({result.error.reason}), using heuristic"
        )
        return self.classify_with_heuristic(unique)

    def classify_with_heuristic(self, candidates: list[ScoredCandidate]) -> list[ClassifiedCandidate]:
        return [
            ClassifiedCandidate(
                **candidate.model_dump(),
                difficulty_tier=heuristic_tier(candidate),
                difficulty_rationale="Keyword and duration heuristic",
                difficulty_source="heuristic",
            )
            for candidate in candidates
        ]

    async def classify_with_ai(
        self, candidates: list[ScoredCandidate], topic: str
    ) -> StageResult[list[ClassifiedCandidate]]:
        if self.gemini is None:
            return StageResult.failure("difficulty", "Gemini not configured")

        prompt = self.prompts.build_difficulty_prompt(candidates, topic)
        try:
            data = await self.gemini.generate_json(prompt, DIFFICULTY_SYSTEM_INSTRUCTION)
        except Exception as e:
            logger.warning(f"Gemini difficulty call failed: {type(e).__name__}: {e}")
            return StageResult.failure("difficulty", str(e), e)

        difficulties = data.get("difficulties")
        if not isinstance(difficulties, list):
            return StageResult.failure("difficulty", "response has no 'difficulties' array")

        reasoning = data.get("reasoning")
        if not isinstance(reasoning, list):
            reasoning = []

        classified = []
        for i, candidate in enumerate(candidates):
            tier = self._coerce_tier(difficulties[i] if i < len(difficulties) else None)
            rationale = reasoning[i] if i < len(reasoning) and isinstance(reasoning[i], str) else ""

            classified.append(ClassifiedCandidate(
                **candidate.model_dump(),
                difficulty_tier=tier or self.DEFAULT_TIER,
                difficulty_rationale=rationale or ("AI classification" if tier else "Default tier (missing AI output)"),
                difficulty_source="ai" if tier else "default",
            ))

        logger.info(f"AI difficulty tiers for '{topic}': {[int(c.difficulty_tier) for c in classified]}")
        return StageResult.success(classified)

    @staticmethod
    def _coerce_tier(value: Any) -> DifficultyTier | None:
        if isinstance(value, bool) or value is None:
            return None
        try:
            tier = int(round(float(value)))
        except (TypeError, ValueError, OverflowError):
            return None
        return DifficultyTier(max(1, min(3, tier)))
