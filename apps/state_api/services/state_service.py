from __future__ import annotations

from dataclasses import asdict
from datetime import datetime
from typing import Any, Iterable, Mapping

from probstate import CollapseRule, ProbabilisticState, StateSnapshot, StateStore, StateVector


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _vector_payload(vector: StateVector) -> dict[str, Any]:
    return {"states": vector.to_dict(), "normalized": vector.normalized}


def _snapshot_payload(snapshot: StateSnapshot) -> dict[str, Any]:
    return {
        "timestamp": _iso(snapshot.timestamp),
        "vector": _vector_payload(snapshot.vector),
        "trigger": snapshot.trigger,
        "collapsed_to": snapshot.collapsed_to,
    }


def _state_payload(state: ProbabilisticState) -> dict[str, Any]:
    return {
        "id": state.id,
        "name": state.name,
        "vector": _vector_payload(state.vector),
        "entanglements": [
            {
                "target": edge.target_state_id,
                "correlation": edge.correlation,
                "type": edge.type,
            }
            for edge in state.entanglements
        ],
        "collapse_rules": [
            {
                "trigger": rule.trigger,
                "mode": rule.mode,
                "has_handler": rule.handler is not None,
            }
            for rule in state.collapse_rules
        ],
        "metadata": {
            "created": _iso(state.metadata.created),
            "last_collapsed": _iso(state.metadata.last_collapsed),
            "collapse_count": state.metadata.collapse_count,
        },
        "history_length": len(state.history),
    }


class StateService:
    """Facade that exposes JSON-ready payloads over a StateStore."""

    def __init__(self, store: StateStore) -> None:
        self.store = store

    def create(
        self,
        name: str,
        initial_states: Mapping[str, float],
        collapse_rules: Iterable[Mapping[str, str]] = (),
    ) -> dict[str, Any]:
        rules = [CollapseRule(trigger=rule["trigger"], mode=rule.get("mode", "immediate")) for rule in collapse_rules]
        state = self.store.create_state(name, initial_states, collapse_rules=rules)
        return _state_payload(state)

    def list_states(self) -> list[dict[str, Any]]:
        return [_state_payload(state) for state in self.store.list_states()]

    def get(self, state_id: str) -> dict[str, Any]:
        return _state_payload(self.store.get_state(state_id))

    def observe(self, state_id: str) -> dict[str, Any]:
        payload = _vector_payload(self.store.observe_state(state_id))
        payload["id"] = state_id
        return payload

    def most_likely(self, state_id: str) -> dict[str, Any]:
        return {"id": state_id, "most_likely": self.store.get_most_likely_state(state_id)}

    def update(self, state_id: str, updates: Mapping[str, float]) -> dict[str, Any]:
        self.store.update_probabilities(state_id, updates)
        return self.observe(state_id)

    def collapse(self, state_id: str, trigger: str, force: str | None = None) -> dict[str, Any]:
        outcome = self.store.collapse_state(state_id, trigger, force=force)
        state = self.store.get_state(state_id)
        return {
            "id": state_id,
            "collapsed_to": outcome,
            "collapse_count": state.metadata.collapse_count,
            "last_collapsed": _iso(state.metadata.last_collapsed),
        }

    def entangle(self, state_id: str, target_id: str, correlation: float) -> dict[str, Any]:
        self.store.entangle_states(state_id, target_id, correlation)
        return {"id": state_id, "target": target_id, "correlation": correlation}

    def history(self, state_id: str) -> list[dict[str, Any]]:
        return [_snapshot_payload(snap) for snap in self.store.get_history(state_id)]

    def visualization(self, state_id: str) -> dict[str, Any]:
        return asdict(self.store.export_for_visualization(state_id))

    def delete(self, state_id: str) -> bool:
        return self.store.delete_state(state_id)


__all__ = ["StateService"]
