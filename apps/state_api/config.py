from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class StateApiSettings(BaseSettings):
    store_config: Path = Path("config/state_store.yaml")
    seed: Optional[int] = None

    max_outcomes: int = 256

    model_config = SettingsConfigDict(
        env_prefix="PSTATE_",
        env_file=".env",
        extra="ignore",
    )


settings = StateApiSettings()
