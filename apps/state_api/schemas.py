from __future__ import annotations

from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

TriggerName = Literal["ui_observation", "api_read", "timeout", "manual", "threshold"]


class CollapseRuleIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    trigger: TriggerName
    mode: Literal["immediate", "eventual"] = "immediate"


class CreateStateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1)
    initial_states: Dict[str, float]
    collapse_rules: List[CollapseRuleIn] = Field(default_factory=list)


class UpdateProbabilitiesRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    updates: Dict[str, float]


class CollapseRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    trigger: TriggerName = "manual"
    force: Optional[str] = None


class EntangleRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    target_id: str
    # range is checked by the store
    correlation: float


__all__ = [
    "CollapseRuleIn",
    "CreateStateRequest",
    "UpdateProbabilitiesRequest",
    "CollapseRequest",
    "EntangleRequest",
]
