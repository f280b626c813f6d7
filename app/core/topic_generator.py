"""Suggest learning topics for the search page."""

import logging

from .gemini_client import GeminiClient
from .prompt_builder import TOPICS_SYSTEM_INSTRUCTION, PromptBuilder

logger = logging.getLogger(__name__)

FALLBACK_TOPICS = [
    "Machine Learning",
    "Public Speaking",
    "Financial Planning",
    "Photography",
    "Data Science",
    "Leadership",
    "Digital Marketing",
    "Psychology",
]


class TopicGenerator:
    """Generate diverse topics with Gemini, falling back to a fixed list."""

    def __init__(self, gemini_client: GeminiClient | None, prompt_builder: PromptBuilder | None = None):
        self.gemini = gemini_client
        self.prompts = prompt_builder or PromptBuilder()

    async def generate_topics(self, count: int = 8) -> list[str]:
        if self.gemini is None:
            return FALLBACK_TOPICS[:count]

        try:
            data = await self.gemini.generate_json(
                self.prompts.build_topics_prompt(count),
                TOPICS_SYSTEM_INSTRUCTION,
                temperature=0.8,  # Higher temperature for more diverse topics
            )
            topics = data.get("topics")
            if not isinstance(topics, list):
                raise ValueError("Invalid response format from Gemini")

            cleaned = [t.strip() for t in topics if isinstance(t, str) and t.strip()]
            if not cleaned:
                raise ValueError("Gemini returned no topics")
            return cleaned[:count]

        except Exception as e:
            logger.warning(f"Topic generation failed, using fallback topics: {e}")
            return FALLBACK_TOPICS[:count]
