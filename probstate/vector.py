"""Weighted outcome vectors and the arithmetic the store applies to them."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional

import numpy as np

from .errors import InvalidOutcomeError, InvalidWeightError


@dataclass(frozen=True)
class StateVector:
    """Outcome name -> weight, in insertion order.

    Notes
    -----
    - ``weights`` is copied on construction, so a vector never aliases the
      mapping it was built from.
    - ``normalized`` stays ``True`` for an all-zero vector; the weights are
      left at zero rather than spread uniformly.
    """

    weights: Dict[str, float] = field(default_factory=dict)
    normalized: bool = True

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "weights",
            {str(name): float(weight) for name, weight in self.weights.items()},
        )

    def __contains__(self, outcome: object) -> bool:
        return outcome in self.weights

    def __len__(self) -> int:
        return len(self.weights)

    def copy(self) -> "StateVector":
        return StateVector(self.weights, normalized=self.normalized)

    def total(self) -> float:
        return float(sum(self.weights.values()))

    def most_likely(self) -> Optional[str]:
        # max() keeps the first of equal weights, i.e. insertion order wins ties
        if not self.weights:
            return None
        return max(self.weights, key=self.weights.__getitem__)

    def to_dict(self) -> Dict[str, float]:
        return dict(self.weights)


def normalize_weights(weights: Mapping[str, float]) -> StateVector:
    """Validate ``weights`` and scale them to sum to 1.0 when the sum is positive."""

    names = list(weights.keys())
    raw: list[float] = []
    for name in names:
        try:
            value = float(weights[name])
        except (TypeError, ValueError) as exc:
            raise InvalidWeightError(name, weights[name]) from exc
        if not math.isfinite(value) or value < 0:
            raise InvalidWeightError(name, weights[name])
        raw.append(value)

    values = np.asarray(raw, dtype=float)
    total = float(values.sum())
    if total > 0:
        values = values / total
    return StateVector(dict(zip(names, values.tolist())), normalized=True)


def merge_weights(vector: StateVector, updates: Mapping[str, float]) -> StateVector:
    """Overwrite/extend ``vector`` with ``updates`` and renormalize."""

    merged = vector.to_dict()
    merged.update(updates)
    return normalize_weights(merged)


def scale_weights(vector: StateVector, factor: float) -> StateVector:
    return normalize_weights({name: weight * factor for name, weight in vector.weights.items()})


def collapsed_vector(outcome: str) -> StateVector:
    return normalize_weights({outcome: 1.0})


def sample_outcome(vector: StateVector, rng: np.random.Generator) -> str:
    """Draw one outcome by walking the cumulative weights in insertion order."""

    if not vector.weights:
        raise InvalidOutcomeError(None, "cannot sample from an empty state vector")
    names = list(vector.weights)
    cumulative = np.cumsum(list(vector.weights.values()))
    draw = rng.random()
    idx = int(np.searchsorted(cumulative, draw, side="left"))
    if idx < len(names):
        return names[idx]
    # rounding (or an all-zero vector) left the draw above the last bucket
    return vector.most_likely()  # type: ignore[return-value]


__all__ = [
    "StateVector",
    "normalize_weights",
    "merge_weights",
    "scale_weights",
    "collapsed_vector",
    "sample_outcome",
]
