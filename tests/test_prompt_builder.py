"""Tests for PromptBuilder."""

from app.core.prompt_builder import PromptBuilder


def test_relevance_prompt(make_candidate):
    candidates = [
        make_candidate("v1", "Malaysia history", "d" * 500),
        make_candidate("v2", "Singapore history", ""),
    ]

    prompt = PromptBuilder().build_relevance_prompt(candidates, "Malaysia History")

    assert 'Topic: "Malaysia History"' in prompt
    assert '1. Title: "Malaysia history"' in prompt
    assert '2. Title: "Singapore history"' in prompt
    assert 'Description: "No description"' in prompt
    assert "d" * 201 not in prompt
    assert "Return exactly 2 scores" in prompt


def test_difficulty_prompt_includes_duration(make_candidate):
    prompt = PromptBuilder().build_difficulty_prompt(
        [make_candidate("v1", "Chess openings", duration_seconds=754)], "Chess"
    )

    assert "Duration: 12 minutes" in prompt
    assert "Return exactly 1 integers" in prompt


def test_topics_prompt():
    assert "Generate 5 diverse" in PromptBuilder().build_topics_prompt(5)
