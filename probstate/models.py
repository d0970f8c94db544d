"""Containers for probabilistic states, their rules, edges and history."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Callable, List, Literal, Optional, get_args

from .errors import InvalidCorrelationError
from .vector import StateVector

CollapseTrigger = Literal[
    "ui_observation",
    "api_read",
    "timeout",
    "manual",
    "threshold",
]

CollapseMode = Literal["immediate", "eventual"]

EntanglementType = Literal["direct", "conditional"]

COLLAPSE_TRIGGERS: tuple[str, ...] = get_args(CollapseTrigger)
COLLAPSE_MODES: tuple[str, ...] = get_args(CollapseMode)
ENTANGLEMENT_TYPES: tuple[str, ...] = get_args(EntanglementType)

CollapseHandler = Callable[["ProbabilisticState"], str]


@dataclass(frozen=True)
class Entanglement:
    """One-directional influence edge; the target is referenced by id only."""

    target_state_id: str
    correlation: float
    type: EntanglementType = "direct"

    def __post_init__(self) -> None:
        if not -1.0 <= self.correlation <= 1.0:
            raise InvalidCorrelationError(self.correlation)
        if self.type not in ENTANGLEMENT_TYPES:
            raise ValueError(f"unknown entanglement type: {self.type}")


@dataclass(frozen=True)
class CollapseRule:
    """Gate for ``collapse_state``.

    ``handler`` picks the outcome instead of weighted sampling. It should be a
    pure function of the state it is handed. ``mode`` is recorded but
    ``eventual`` collapses exactly like ``immediate``.
    """

    trigger: CollapseTrigger
    mode: CollapseMode = "immediate"
    handler: Optional[CollapseHandler] = None

    def __post_init__(self) -> None:
        if self.trigger not in COLLAPSE_TRIGGERS:
            raise ValueError(f"unknown collapse trigger: {self.trigger}")
        if self.mode not in COLLAPSE_MODES:
            raise ValueError(f"unknown collapse mode: {self.mode}")


@dataclass(frozen=True)
class StateSnapshot:
    timestamp: datetime
    vector: StateVector
    trigger: Optional[str] = None
    collapsed_to: Optional[str] = None

    def copy(self) -> "StateSnapshot":
        return replace(self, vector=self.vector.copy())


@dataclass
class StateMetadata:
    created: datetime
    last_collapsed: Optional[datetime] = None
    collapse_count: int = 0


@dataclass
class ProbabilisticState:
    id: str
    name: str
    vector: StateVector
    metadata: StateMetadata
    entanglements: List[Entanglement] = field(default_factory=list)
    collapse_rules: List[CollapseRule] = field(default_factory=list)
    history: List[StateSnapshot] = field(default_factory=list)

    def find_rule(self, trigger: str) -> Optional[CollapseRule]:
        for rule in self.collapse_rules:
            if rule.trigger == trigger:
                return rule
        return None

    def snapshot(
        self,
        timestamp: datetime,
        *,
        trigger: Optional[str] = None,
        collapsed_to: Optional[str] = None,
    ) -> None:
        self.history.append(
            StateSnapshot(
                timestamp=timestamp,
                vector=self.vector.copy(),
                trigger=trigger,
                collapsed_to=collapsed_to,
            )
        )

    def copy(self) -> "ProbabilisticState":
        """Detached copy; mutating it never reaches the owning store."""
        return ProbabilisticState(
            id=self.id,
            name=self.name,
            vector=self.vector.copy(),
            metadata=replace(self.metadata),
            entanglements=list(self.entanglements),
            collapse_rules=list(self.collapse_rules),
            history=[snap.copy() for snap in self.history],
        )


@dataclass(frozen=True)
class OutcomeProbability:
    name: str
    probability: float


@dataclass(frozen=True)
class EntanglementSummary:
    target: str
    correlation: float


@dataclass(frozen=True)
class StateExport:
    """Visualization-ready summary of one state."""

    id: str
    name: str
    outcomes: List[OutcomeProbability]
    entanglements: List[EntanglementSummary]
    collapsed: bool
    most_likely: Optional[str]


__all__ = [
    "CollapseTrigger",
    "CollapseMode",
    "EntanglementType",
    "COLLAPSE_TRIGGERS",
    "COLLAPSE_MODES",
    "ENTANGLEMENT_TYPES",
    "CollapseHandler",
    "Entanglement",
    "CollapseRule",
    "StateSnapshot",
    "StateMetadata",
    "ProbabilisticState",
    "OutcomeProbability",
    "EntanglementSummary",
    "StateExport",
]
