"""Error taxonomy raised by the probabilistic state store."""

from __future__ import annotations

from typing import Optional


class ProbStateError(Exception):
    """Base class for every store failure."""


class NotFoundError(ProbStateError, LookupError):
    def __init__(self, state_id: str) -> None:
        super().__init__(f"state not found: {state_id}")
        self.state_id = state_id


class InvalidWeightError(ProbStateError, ValueError):
    def __init__(self, outcome: str, weight: float) -> None:
        super().__init__(f"invalid weight {weight!r} for outcome: {outcome}")
        self.outcome = outcome
        self.weight = weight


class InvalidOutcomeError(ProbStateError, ValueError):
    def __init__(self, outcome: Optional[str], message: Optional[str] = None) -> None:
        super().__init__(message or f"outcome not in state vector: {outcome}")
        self.outcome = outcome


class NoCollapseRuleError(ProbStateError):
    def __init__(self, trigger: str) -> None:
        super().__init__(f"no collapse rule defined for trigger: {trigger}")
        self.trigger = trigger


class InvalidCorrelationError(ProbStateError, ValueError):
    def __init__(self, correlation: float) -> None:
        super().__init__(f"correlation must be between -1 and 1, got {correlation!r}")
        self.correlation = correlation


__all__ = [
    "ProbStateError",
    "NotFoundError",
    "InvalidWeightError",
    "InvalidOutcomeError",
    "NoCollapseRuleError",
    "InvalidCorrelationError",
]
