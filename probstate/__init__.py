"""Weighted multi-outcome state with collapse, history and entanglement."""

from .config import StoreCfg, load_store_cfg
from .errors import (
    InvalidCorrelationError,
    InvalidOutcomeError,
    InvalidWeightError,
    NoCollapseRuleError,
    NotFoundError,
    ProbStateError,
)
from .models import (
    COLLAPSE_MODES,
    COLLAPSE_TRIGGERS,
    CollapseRule,
    Entanglement,
    ProbabilisticState,
    StateExport,
    StateMetadata,
    StateSnapshot,
)
from .store import StateStore
from .vector import StateVector, normalize_weights

__all__ = [
    "StoreCfg",
    "load_store_cfg",
    "ProbStateError",
    "NotFoundError",
    "InvalidWeightError",
    "InvalidOutcomeError",
    "NoCollapseRuleError",
    "InvalidCorrelationError",
    "COLLAPSE_MODES",
    "COLLAPSE_TRIGGERS",
    "CollapseRule",
    "Entanglement",
    "ProbabilisticState",
    "StateExport",
    "StateMetadata",
    "StateSnapshot",
    "StateStore",
    "StateVector",
    "normalize_weights",
]
