"""Explicit per-stage results for AI scoring.

An AI stage returns a ``StageResult`` instead of raising, so the stage's
owner decides the fallback policy in one place.
"""

from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class ScoringError:
    """Why an AI scoring attempt produced no usable output."""

    stage: str
    reason: str
    exception_type: str | None = None


@dataclass(frozen=True)
class StageResult(Generic[T]):
    value: T | None = None
    error: ScoringError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "StageResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, stage: str, reason: str, exc: Exception | None = None) -> "StageResult[T]":
        return cls(error=ScoringError(
            stage=stage,
            reason=reason,
            exception_type=type(exc).__name__ if exc else None,
        ))


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))
