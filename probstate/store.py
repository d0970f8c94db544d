"""In-memory store that owns every probabilistic state (create / observe / collapse)."""

from __future__ import annotations

import logging
import math
import uuid
from datetime import datetime, timezone
from pathlib import Path
from threading import RLock
from typing import Callable, Dict, Iterable, List, Mapping, Optional

import numpy as np

from .config import DEFAULT_CONFIG_PATH, StoreCfg, load_store_cfg
from .errors import InvalidOutcomeError, NoCollapseRuleError, NotFoundError
from .models import (
    CollapseRule,
    Entanglement,
    EntanglementSummary,
    OutcomeProbability,
    ProbabilisticState,
    StateExport,
    StateMetadata,
    StateSnapshot,
)
from .vector import (
    StateVector,
    collapsed_vector,
    merge_weights,
    normalize_weights,
    sample_outcome,
    scale_weights,
)

LOGGER = logging.getLogger(__name__)

ENTANGLEMENT_TRIGGER_PREFIX = "entanglement_from_"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StateStore:
    """Exclusive owner of probabilistic states, keyed by id.

    Every operation runs under one re-entrant lock, so two mutations never
    interleave and readers never see a half-written vector. Everything handed
    out (states, vectors, snapshots) is a copy; the store's own objects are
    only reachable through its methods.
    """

    def __init__(
        self,
        config: Optional[StoreCfg] = None,
        *,
        rng: Optional[np.random.Generator] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.config = config or StoreCfg()
        for name in ("positive_factor", "negative_factor"):
            factor = getattr(self.config, name)
            try:
                valid = math.isfinite(factor) and factor > 0
            except TypeError:
                valid = False
            if not valid:
                raise ValueError(f"{name} must be a positive finite number, got {factor!r}")
        self.rng = rng or np.random.default_rng(self.config.seed)
        self._clock = clock or _utcnow
        self._states: Dict[str, ProbabilisticState] = {}
        self._lock = RLock()

    @classmethod
    def from_config(cls, path: str | Path = DEFAULT_CONFIG_PATH, **kwargs) -> "StateStore":
        return cls(load_store_cfg(path), **kwargs)

    def __len__(self) -> int:
        with self._lock:
            return len(self._states)

    def __contains__(self, state_id: object) -> bool:
        with self._lock:
            return state_id in self._states

    # -- lookup -----------------------------------------------------------
    def _lookup(self, state_id: str) -> Optional[ProbabilisticState]:
        return self._states.get(state_id)

    def _require(self, state_id: str) -> ProbabilisticState:
        state = self._lookup(state_id)
        if state is None:
            raise NotFoundError(state_id)
        return state

    def _new_id(self) -> str:
        millis = int(self._clock().timestamp() * 1000)
        while True:
            candidate = f"{self.config.id_prefix}_{millis}_{uuid.uuid4().hex[:12]}"
            if candidate not in self._states:
                return candidate

    # -- lifecycle --------------------------------------------------------
    def create_state(
        self,
        name: str,
        initial_states: Mapping[str, float],
        collapse_rules: Optional[Iterable[CollapseRule]] = None,
        entanglements: Optional[Iterable[Entanglement]] = None,
    ) -> ProbabilisticState:
        vector = normalize_weights(initial_states)
        rules = list(collapse_rules or [])
        edges = list(entanglements or [])

        with self._lock:
            now = self._clock()
            state = ProbabilisticState(
                id=self._new_id(),
                name=name,
                vector=vector,
                metadata=StateMetadata(created=now),
                entanglements=edges,
                collapse_rules=rules,
            )
            state.snapshot(now)
            self._states[state.id] = state
            LOGGER.debug("created state %s (%s) with %d outcomes", state.id, name, len(vector))
            return state.copy()

    def delete_state(self, state_id: str) -> bool:
        with self._lock:
            existed = self._states.pop(state_id, None) is not None
        if existed:
            LOGGER.info("deleted state %s", state_id)
        return existed

    # -- reads ------------------------------------------------------------
    def get_state(self, state_id: str) -> ProbabilisticState:
        with self._lock:
            return self._require(state_id).copy()

    def list_states(self) -> List[ProbabilisticState]:
        with self._lock:
            return [state.copy() for state in self._states.values()]

    def observe_state(self, state_id: str) -> StateVector:
        """Current vector without collapsing, whatever rules the state carries."""
        with self._lock:
            return self._require(state_id).vector.copy()

    def get_most_likely_state(self, state_id: str) -> str:
        with self._lock:
            state = self._require(state_id)
            outcome = state.vector.most_likely()
        if outcome is None:
            raise InvalidOutcomeError(None, f"state {state_id} has no outcomes")
        return outcome

    def get_history(self, state_id: str) -> List[StateSnapshot]:
        with self._lock:
            return [snap.copy() for snap in self._require(state_id).history]

    def export_for_visualization(self, state_id: str) -> StateExport:
        with self._lock:
            state = self._require(state_id)
            outcomes = sorted(
                (OutcomeProbability(name, weight) for name, weight in state.vector.weights.items()),
                key=lambda item: item.probability,
                reverse=True,
            )
            edges = [
                EntanglementSummary(target=edge.target_state_id, correlation=edge.correlation)
                for edge in state.entanglements
            ]
            return StateExport(
                id=state.id,
                name=state.name,
                outcomes=outcomes,
                entanglements=edges,
                collapsed=len(outcomes) == 1 or (bool(outcomes) and outcomes[0].probability == 1.0),
                most_likely=outcomes[0].name if outcomes else None,
            )

    # -- mutation ---------------------------------------------------------
    def update_probabilities(self, state_id: str, updates: Mapping[str, float]) -> None:
        with self._lock:
            state = self._require(state_id)
            state.vector = merge_weights(state.vector, updates)
            state.snapshot(self._clock())

    def collapse_state(self, state_id: str, trigger: str, force: Optional[str] = None) -> str:
        with self._lock:
            state = self._require(state_id)
            outcome = self._choose_outcome(state, trigger, force)

            now = self._clock()
            state.vector = collapsed_vector(outcome)
            state.metadata.last_collapsed = now
            state.metadata.collapse_count += 1
            state.snapshot(now, trigger=trigger, collapsed_to=outcome)
            self._propagate_collapse(state, now)

        LOGGER.info("collapsed state %s to %s (trigger=%s)", state_id, outcome, trigger)
        return outcome

    def _choose_outcome(self, state: ProbabilisticState, trigger: str, force: Optional[str]) -> str:
        if force is not None:
            if force not in state.vector:
                raise InvalidOutcomeError(force)
            return force

        rule = state.find_rule(trigger)
        if rule is None:
            raise NoCollapseRuleError(trigger)
        if rule.handler is not None:
            outcome = rule.handler(state.copy())
            if outcome not in state.vector:
                raise InvalidOutcomeError(outcome, f"collapse handler returned unknown outcome: {outcome!r}")
            return outcome
        return sample_outcome(state.vector, self.rng)

    def _propagate_collapse(self, source: ProbabilisticState, now: datetime) -> None:
        # single hop; peers are reweighted but never collapsed
        for edge in source.entanglements:
            target = self._lookup(edge.target_state_id)
            if target is None:
                LOGGER.debug("entangled state %s is gone; skipped", edge.target_state_id)
                continue
            factor = self.config.positive_factor if edge.correlation > 0 else self.config.negative_factor
            target.vector = scale_weights(target.vector, factor)
            target.snapshot(now, trigger=f"{ENTANGLEMENT_TRIGGER_PREFIX}{source.id}")

    def entangle_states(self, state_a_id: str, state_b_id: str, correlation: float) -> None:
        with self._lock:
            state_a = self._require(state_a_id)
            state_b = self._require(state_b_id)
            edge_ab = Entanglement(target_state_id=state_b_id, correlation=correlation)
            edge_ba = Entanglement(target_state_id=state_a_id, correlation=correlation)
            state_a.entanglements.append(edge_ab)
            state_b.entanglements.append(edge_ba)
        LOGGER.debug("entangled %s <-> %s (correlation=%s)", state_a_id, state_b_id, correlation)


__all__ = ["ENTANGLEMENT_TRIGGER_PREFIX", "StateStore"]
