from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

LOGGER = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config/state_store.yaml")


@dataclass
class StoreCfg:
    id_prefix: str = field(default="state")
    # weight multipliers applied to entangled peers when a state collapses
    positive_factor: float = field(default=1.2)
    negative_factor: float = field(default=0.8)
    seed: Optional[int] = field(default=None)


def load_store_cfg(path: str | Path = DEFAULT_CONFIG_PATH) -> StoreCfg:
    cfg_path = Path(path)
    if not cfg_path.exists():
        return StoreCfg()
    try:
        payload = yaml.safe_load(cfg_path.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError):
        LOGGER.warning("state store config unreadable: %s; using defaults", cfg_path, exc_info=True)
        return StoreCfg()
    if not isinstance(payload, dict):
        LOGGER.warning("state store config is not a mapping: %s; using defaults", cfg_path)
        return StoreCfg()
    section = payload.get("store", payload)
    if not isinstance(section, dict):
        LOGGER.warning("state store section is not a mapping: %s; using defaults", cfg_path)
        return StoreCfg()
    return _coerce_fields(_merge_dataclass(StoreCfg(), section), cfg_path)


def _coerce_fields(cfg: StoreCfg, cfg_path: Path) -> StoreCfg:
    defaults = StoreCfg()
    for name in ("positive_factor", "negative_factor"):
        value = getattr(cfg, name)
        try:
            setattr(cfg, name, float(value))
        except (TypeError, ValueError):
            LOGGER.warning("state store %s=%r is not a number in %s; using %s", name, value, cfg_path, getattr(defaults, name))
            setattr(cfg, name, getattr(defaults, name))
    if cfg.seed is not None:
        try:
            cfg.seed = int(cfg.seed)
        except (TypeError, ValueError):
            LOGGER.warning("state store seed=%r is not an integer in %s; seeding from entropy", cfg.seed, cfg_path)
            cfg.seed = None
    cfg.id_prefix = str(cfg.id_prefix)
    return cfg


def _merge_dataclass(instance, overrides: dict[str, Any]):
    data = instance.__dict__.copy()
    for key, value in (overrides or {}).items():
        if key not in data:
            continue
        data[key] = value
    return instance.__class__(**data)


__all__ = ["DEFAULT_CONFIG_PATH", "StoreCfg", "load_store_cfg"]
