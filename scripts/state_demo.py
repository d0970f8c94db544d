#!/usr/bin/env python3
"""Seed a pair of entangled states, collapse one, and print what moved."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Iterable, Optional

from probstate import CollapseRule, StateStore
from probstate.config import DEFAULT_CONFIG_PATH


def parse_args(argv: Optional[Iterable[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Probabilistic state store demo")
    parser.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="store config YAML")
    parser.add_argument("--correlation", type=float, default=0.5, help="correlation between the two states")
    parser.add_argument("--force", type=str, default=None, help="force the weather state to this outcome")
    parser.add_argument("--log-level", type=str, default="INFO", help="logging level")
    return parser.parse_args(argv)


def main(argv: Optional[Iterable[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="[%(levelname)s] %(asctime)s %(name)s: %(message)s",
    )
    store = StateStore.from_config(args.config)
    weather = store.create_state(
        "weather",
        {"sunny": 0.6, "cloudy": 0.3, "rain": 0.1},
        collapse_rules=[CollapseRule(trigger="manual")],
    )
    mood = store.create_state("mood", {"calm": 2.0, "restless": 1.0})
    store.entangle_states(weather.id, mood.id, args.correlation)

    outcome = store.collapse_state(weather.id, "manual", force=args.force)
    summary = {
        "weather": outcome,
        "mood": store.observe_state(mood.id).to_dict(),
        "mood_history": [
            {"trigger": snap.trigger, "states": snap.vector.to_dict()}
            for snap in store.get_history(mood.id)
        ],
    }
    print(json.dumps(summary, ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
