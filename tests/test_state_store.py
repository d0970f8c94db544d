from __future__ import annotations

import threading
from datetime import datetime, timedelta, timezone

import pytest

from probstate import (
    CollapseRule,
    InvalidOutcomeError,
    InvalidWeightError,
    NotFoundError,
    StateStore,
    StoreCfg,
)


class _StepClock:
    def __init__(self) -> None:
        self.now = datetime(2025, 12, 13, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self.now += timedelta(seconds=1)
        return self.now


def test_create_state_normalizes_and_seeds_history() -> None:
    store = StateStore()
    state = store.create_state("weather", {"sunny": 3.0, "rain": 1.0})

    assert state.id in store
    assert state.vector.weights == pytest.approx({"sunny": 0.75, "rain": 0.25})
    assert len(state.history) == 1
    seed = state.history[0]
    assert seed.trigger is None and seed.collapsed_to is None
    assert seed.vector.weights == state.vector.weights
    assert state.metadata.collapse_count == 0
    assert state.metadata.last_collapsed is None


def test_create_state_with_negative_weight_leaves_store_untouched() -> None:
    store = StateStore()
    with pytest.raises(InvalidWeightError):
        store.create_state("broken", {"a": 1.0, "b": -0.5})
    assert len(store) == 0
    assert store.list_states() == []


def test_create_state_zero_sum_is_kept_as_is() -> None:
    store = StateStore()
    state = store.create_state("idle", {"a": 0.0, "b": 0.0})
    assert state.vector.weights == {"a": 0.0, "b": 0.0}
    assert state.vector.normalized is True


def test_state_ids_are_unique_and_prefixed() -> None:
    store = StateStore(StoreCfg(id_prefix="ctx"))
    ids = {store.create_state(f"s{i}", {"a": 1.0}).id for i in range(300)}
    assert len(ids) == 300
    assert all(state_id.startswith("ctx_") for state_id in ids)


def test_returned_state_is_detached_from_store() -> None:
    store = StateStore()
    state = store.create_state("weather", {"sunny": 1.0, "rain": 1.0})
    state.vector.weights["sunny"] = 42.0
    state.history.clear()

    assert store.observe_state(state.id).weights == pytest.approx({"sunny": 0.5, "rain": 0.5})
    assert len(store.get_history(state.id)) == 1


def test_observe_state_returns_copy_and_never_collapses() -> None:
    store = StateStore()
    state = store.create_state(
        "ui",
        {"active": 0.5, "idle": 0.5},
        collapse_rules=[CollapseRule(trigger="ui_observation"), CollapseRule(trigger="api_read")],
    )
    observed = store.observe_state(state.id)
    observed.weights["active"] = 1.0

    again = store.observe_state(state.id)
    assert again.weights == pytest.approx({"active": 0.5, "idle": 0.5})
    current = store.get_state(state.id)
    assert current.metadata.collapse_count == 0
    assert len(current.history) == 1


def test_unknown_id_raises_not_found_everywhere() -> None:
    store = StateStore()
    calls = [
        lambda: store.observe_state("nope"),
        lambda: store.get_most_likely_state("nope"),
        lambda: store.update_probabilities("nope", {"a": 1.0}),
        lambda: store.collapse_state("nope", "manual"),
        lambda: store.get_history("nope"),
        lambda: store.export_for_visualization("nope"),
        lambda: store.get_state("nope"),
    ]
    for call in calls:
        with pytest.raises(NotFoundError) as excinfo:
            call()
        assert excinfo.value.state_id == "nope"


def test_most_likely_uses_insertion_order_for_ties() -> None:
    store = StateStore()
    state = store.create_state("tie", {"first": 1.0, "second": 1.0, "third": 0.5})
    assert store.get_most_likely_state(state.id) == "first"

    empty = store.create_state("empty", {})
    with pytest.raises(InvalidOutcomeError):
        store.get_most_likely_state(empty.id)


def test_update_probabilities_merges_and_appends_history() -> None:
    store = StateStore()
    state = store.create_state("mood", {"calm": 1.0, "restless": 1.0})

    store.update_probabilities(state.id, {"restless": 3.0, "sleepy": 0.5})

    vector = store.observe_state(state.id)
    assert list(vector.weights) == ["calm", "restless", "sleepy"]
    assert vector.weights == pytest.approx({"calm": 0.125, "restless": 0.75, "sleepy": 0.125})
    history = store.get_history(state.id)
    assert len(history) == 2
    assert history[-1].trigger is None and history[-1].collapsed_to is None
    assert history[-1].vector.weights == vector.weights


def test_failed_update_leaves_state_unchanged() -> None:
    store = StateStore()
    state = store.create_state("mood", {"calm": 1.0, "restless": 1.0})
    with pytest.raises(InvalidWeightError):
        store.update_probabilities(state.id, {"calm": -1.0})
    assert store.observe_state(state.id).weights == pytest.approx({"calm": 0.5, "restless": 0.5})
    assert len(store.get_history(state.id)) == 1


def test_history_snapshots_are_not_aliased() -> None:
    store = StateStore()
    state = store.create_state("mood", {"calm": 1.0})
    store.update_probabilities(state.id, {"calm": 1.0, "tense": 1.0})

    history = store.get_history(state.id)
    history[0].vector.weights["calm"] = 0.0
    history.append(history[0])

    fresh = store.get_history(state.id)
    assert len(fresh) == 2
    assert fresh[0].vector.weights == {"calm": 1.0}


def test_delete_state_reports_existence() -> None:
    store = StateStore()
    state = store.create_state("gone", {"a": 1.0})
    assert store.delete_state(state.id) is True
    assert store.delete_state(state.id) is False
    assert state.id not in store


def test_list_states_in_creation_order() -> None:
    store = StateStore()
    names = ["one", "two", "three"]
    for name in names:
        store.create_state(name, {"a": 1.0})
    assert [state.name for state in store.list_states()] == names


def test_export_for_visualization_summary() -> None:
    store = StateStore()
    state = store.create_state("weather", {"rain": 1.0, "sunny": 3.0, "snow": 1.0})
    peer = store.create_state("mood", {"calm": 1.0})
    store.entangle_states(state.id, peer.id, -0.4)

    export = store.export_for_visualization(state.id)
    assert export.id == state.id
    assert export.name == "weather"
    assert [item.name for item in export.outcomes] == ["sunny", "rain", "snow"]
    assert export.outcomes[0].probability == pytest.approx(0.6)
    assert [(edge.target, edge.correlation) for edge in export.entanglements] == [(peer.id, -0.4)]
    assert export.collapsed is False
    assert export.most_likely == "sunny"

    single = store.export_for_visualization(peer.id)
    assert single.collapsed is True
    assert single.most_likely == "calm"

    empty = store.export_for_visualization(store.create_state("empty", {}).id)
    assert empty.collapsed is False
    assert empty.most_likely is None


def test_metadata_uses_injected_clock() -> None:
    clock = _StepClock()
    store = StateStore(clock=clock)
    state = store.create_state("timed", {"a": 1.0, "b": 1.0}, collapse_rules=[CollapseRule(trigger="timeout")])
    assert state.metadata.created == state.history[0].timestamp

    store.collapse_state(state.id, "timeout", force="a")
    first = store.get_state(state.id).metadata.last_collapsed
    store.collapse_state(state.id, "timeout", force="a")
    second = store.get_state(state.id).metadata.last_collapsed
    assert first is not None and second is not None
    assert second >= first


def test_concurrent_updates_keep_history_ordered() -> None:
    store = StateStore()
    state = store.create_state("busy", {"a": 1.0, "b": 1.0})
    workers = 8
    rounds = 50

    def worker(idx: int) -> None:
        for step in range(rounds):
            store.update_probabilities(state.id, {"a": float(idx + 1), "b": float(step + 1)})

    threads = [threading.Thread(target=worker, args=(idx,)) for idx in range(workers)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    history = store.get_history(state.id)
    assert len(history) == 1 + workers * rounds
    for snap in history:
        assert snap.vector.total() == pytest.approx(1.0)
