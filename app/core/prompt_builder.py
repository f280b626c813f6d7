"""Build batched scoring prompts for Gemini.

Each prompt lists the candidates as a numbered block and asks for one
JSON object with parallel arrays, in candidate order.
"""

import logging

from ..models import CandidateVideo

logger = logging.getLogger(__name__)

DESCRIPTION_CHARS = 200

RELEVANCE_SYSTEM_INSTRUCTION = (
    "You are an expert at evaluating educational content relevance. "
    "Rate each video's relevance to the learning topic on a scale of 0.0 to 1.0, "
    "where 1.0 is perfectly relevant and 0.0 is completely unrelated. "
    "Be very strict: only rate 0.8 or higher if the video is specifically about the exact topic. "
    'Respond with JSON: {"scores": [0.9, 0.2, ...], "reasoning": ["reason1", "reason2", ...]}'
)

DIFFICULTY_SYSTEM_INSTRUCTION = (
    "You are an expert curriculum designer. Classify each video's difficulty for a learner:\n"
    "1 = beginner: assumes no prior knowledge, introduces fundamentals and vocabulary.\n"
    "2 = intermediate: assumes the basics, builds deeper concepts and worked examples.\n"
    "3 = advanced: assumes solid prior knowledge, covers complex, specialized or comprehensive material.\n"
    'Respond with JSON: {"difficulties": [1, 3, 2, ...], "reasoning": ["reason1", "reason2", ...]}'
)

TOPICS_SYSTEM_INSTRUCTION = (
    "You are an educational topic generator. Generate diverse learning topics from various fields "
    "that would be suitable for YouTube video searches. Topics should vary in scope: some broad "
    '(like "Economics"), some narrow (like "Supervised Learning"), and some skill-based '
    '(like "Conversation Skills").\n\n'
    "The topics should be:\n"
    "- Educational and learnable through videos\n"
    "- Diverse across different fields (science, technology, business, arts, personal development, etc.)\n"
    "- Suitable for a 3-level learning progression (beginner to advanced)\n"
    "- Specific enough to find quality educational content\n"
    "- Not too niche or obscure\n\n"
    'Respond with JSON in this exact format: {"topics": ["Topic 1", "Topic 2", ...]}'
)


class PromptBuilder:
    """Build prompts for relevance scoring, difficulty classification and topic suggestions."""

    @staticmethod
    def _format_candidates(candidates: list[CandidateVideo], include_duration: bool = False) -> str:
        blocks = []
        for i, video in enumerate(candidates, start=1):
            description = (video.description or "No description")[:DESCRIPTION_CHARS]
            block = f'{i}. Title: "{video.title}"\nDescription: "{description}"'
            if include_duration:
                block += f"\nDuration: {video.duration_seconds // 60} minutes"
            blocks.append(block)
        return "\n\n".join(blocks)

    def build_relevance_prompt(self, candidates: list[CandidateVideo], topic: str) -> str:
        """
        Create the batched relevance prompt.

        Args:
            candidates: Videos to score, in order
            topic: The learner's topic

        Returns:
            Prompt asking for exactly ``len(candidates)`` scores
        """
        return (
            f'Topic: "{topic}"\n\n'
            f"Videos:\n{self._format_candidates(candidates)}\n\n"
            f'Rate relevance for learning specifically about "{topic}". '
            f"Return exactly {len(candidates)} scores in the same order. "
            "Be strict: a neighbouring subject is not the topic "
            "(Singapore history is not Malaysia history, mysteries are not history)."
        )

    def build_difficulty_prompt(self, candidates: list[CandidateVideo], topic: str) -> str:
        """Create the batched difficulty prompt (1/2/3 rubric in the system instruction)."""
        return (
            f'Topic: "{topic}"\n\n'
            f"Videos:\n{self._format_candidates(candidates, include_duration=True)}\n\n"
            f'Classify each video\'s difficulty for someone learning "{topic}". '
            f"Return exactly {len(candidates)} integers (1, 2 or 3) in the same order."
        )

    def build_topics_prompt(self, count: int) -> str:
        return f"Generate {count} diverse educational topics for video-based learning."
