"""Relevance thresholding and beginner -> advanced path selection."""

import logging
import math

from ..models import ClassifiedCandidate, DifficultyTier, LearningPath, LearningPathVideo, ScoredCandidate
from .errors import NoRelevantResultsError

logger = logging.getLogger(__name__)

PATH_LENGTH = 3
DESCRIPTION_CHARS = 200

LEVEL_DESCRIPTIONS = [
    "Perfect introduction to {topic} fundamentals",
    "Building on {topic} basics with deeper concepts",
    "Advanced {topic} topics and comprehensive understanding",
]


def filter_by_relevance(
    scored: list[ScoredCandidate],
    strict_threshold: float = 0.8,
    relaxed_threshold: float = 0.6,
    minimum: int = PATH_LENGTH,
) -> list[ScoredCandidate]:
    """
    Keep the relevant candidates, relaxing the bar when too few pass.

    Tries >= strict, then >= relaxed; if fewer than ``minimum`` pass
    both, keeps every candidate above zero. Results are ordered by
    relevance, best first.

    Raises:
        NoRelevantResultsError: No candidate scored above zero
    """
    def by_relevance(candidates: list[ScoredCandidate]) -> list[ScoredCandidate]:
        return sorted(candidates, key=lambda c: c.relevance_score, reverse=True)

    for threshold in (strict_threshold, relaxed_threshold):
        passing = [c for c in scored if c.relevance_score >= threshold]
        if len(passing) >= minimum:
            logger.info(f"{len(passing)}/{len(scored)} candidates at relevance >= {threshold}")
            return by_relevance(passing)

    above_floor = [c for c in scored if c.relevance_score > 0.0]
    if not above_floor:
        raise NoRelevantResultsError()

    logger.info(
        f"Only {len(above_floor)}/{len(scored)} candidates above the relevance floor, "
        "taking the best regardless of threshold"
    )
    return by_relevance(above_floor)


class PathSelector:
    """
    Pick one video per difficulty tier, ordered easiest -> hardest.

    Candidates are ranked by a weighted composite of relevance, recency
    and (log-scaled) view count. Each tier takes its best-ranked untaken
    candidate; an empty tier is backfilled with the best remaining one.
    """

    def __init__(
        self,
        weight_relevance: float = 0.6,
        weight_recency: float = 0.25,
        weight_views: float = 0.15,
    ):
        self.weight_relevance = weight_relevance
        self.weight_recency = weight_recency
        self.weight_views = weight_views

    def composite_score(self, candidate: ScoredCandidate, max_log_views: float) -> float:
        view_score = math.log10(candidate.view_count + 1) / max_log_views if max_log_views > 0 else 0.0
        return (
            self.weight_relevance * candidate.relevance_score
            + self.weight_recency * candidate.recency_score
            + self.weight_views * view_score
        )

    def rank(self, candidates: list[ClassifiedCandidate]) -> list[ClassifiedCandidate]:
        """Best first. Ties fall back to relevance, recency, views, then ID."""
        max_log_views = max((math.log10(c.view_count + 1) for c in candidates), default=0.0)
        return sorted(
            candidates,
            key=lambda c: (
                -self.composite_score(c, max_log_views),
                -c.relevance_score,
                -c.recency_score,
                -c.view_count,
                c.video_id,
            ),
        )

    def select_path(self, candidates: list[ClassifiedCandidate], topic: str) -> LearningPath:
        """
        Build the 3-video learning path.

        Raises:
            NoRelevantResultsError: Fewer than 3 distinct candidates
        """
        unique = {c.video_id: c for c in reversed(candidates)}
        if len(unique) < PATH_LENGTH:
            raise NoRelevantResultsError(
                f"Only {len(unique)} relevant video(s) found for '{topic}', need {PATH_LENGTH}"
            )

        ranked = self.rank(list(unique.values()))
        taken: set[str] = set()
        slots: list[ClassifiedCandidate | None] = []

        for tier in DifficultyTier:
            pick = next(
                (c for c in ranked if c.difficulty_tier == tier and c.video_id not in taken),
                None,
            )
            slots.append(pick)
            if pick is not None:
                taken.add(pick.video_id)

        for slot, pick in enumerate(slots):
            if pick is None:
                backfill = next(c for c in ranked if c.video_id not in taken)
                logger.info(
                    f"No tier-{slot + 1} candidate for '{topic}', backfilling with {backfill.video_id} "
                    f"(tier {int(backfill.difficulty_tier)})"
                )
                slots[slot] = backfill
                taken.add(backfill.video_id)

        ordered = sorted(enumerate(slots), key=lambda item: (item[1].difficulty_tier, item[0]))
        videos = [
            self._to_path_video(candidate, position, topic)
            for position, (_, candidate) in enumerate(ordered)
        ]

        logger.info(
            f"Selected path for '{topic}': "
            + ", ".join(f"{v.level}={v.youtube_id} (tier {int(v.tier)})" for v in videos)
        )
        return LearningPath(topic=topic, videos=videos)

    @staticmethod
    def _to_path_video(candidate: ClassifiedCandidate, position: int, topic: str) -> LearningPathVideo:
        intro = LEVEL_DESCRIPTIONS[position].format(topic=topic)
        excerpt = (candidate.description or "Educational content")[:DESCRIPTION_CHARS]

        return LearningPathVideo(
            youtube_id=candidate.video_id,
            title=candidate.title,
            description=f"{intro}. {excerpt}...",
            channel_name=candidate.channel_name,
            duration=candidate.duration_seconds,
            thumbnail_url=candidate.thumbnail_url,
            level=f"level {position + 1}",
            tier=candidate.difficulty_tier,
            topic=topic,
            relevance_score=candidate.relevance_score,
            difficulty_score=int(candidate.difficulty_tier),
        )
