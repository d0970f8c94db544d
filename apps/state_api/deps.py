from __future__ import annotations

from dataclasses import replace

from probstate import StateStore, load_store_cfg

from .config import StateApiSettings, settings
from .services.state_service import StateService


def build_store(api_settings: StateApiSettings) -> StateStore:
    cfg = load_store_cfg(api_settings.store_config)
    if api_settings.seed is not None:
        cfg = replace(cfg, seed=api_settings.seed)
    return StateStore(cfg)


_store = build_store(settings)
_service = StateService(_store)


def svc() -> StateService:
    return _service


__all__ = ["build_store", "svc"]
