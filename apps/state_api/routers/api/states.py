from __future__ import annotations

from typing import Any, Mapping

from fastapi import APIRouter, HTTPException

from probstate import (
    InvalidCorrelationError,
    InvalidOutcomeError,
    InvalidWeightError,
    NoCollapseRuleError,
    NotFoundError,
    ProbStateError,
)

from ...config import settings
from ...deps import svc
from ...schemas import CollapseRequest, CreateStateRequest, EntangleRequest, UpdateProbabilitiesRequest

router = APIRouter()


def _http_error(exc: ProbStateError) -> HTTPException:
    if isinstance(exc, NotFoundError):
        code = 404
    elif isinstance(exc, NoCollapseRuleError):
        code = 409
    elif isinstance(exc, (InvalidWeightError, InvalidOutcomeError, InvalidCorrelationError)):
        code = 422
    else:  # pragma: no cover - every store error is mapped above
        code = 400
    return HTTPException(status_code=code, detail=str(exc))


def _check_outcome_count(weights: Mapping[str, float]) -> None:
    if len(weights) > settings.max_outcomes:
        raise HTTPException(
            status_code=422,
            detail=f"too many outcomes: {len(weights)} > {settings.max_outcomes}",
        )


@router.post("/states", status_code=201)
def create_state(payload: CreateStateRequest) -> dict[str, Any]:
    _check_outcome_count(payload.initial_states)
    try:
        return svc().create(
            payload.name,
            payload.initial_states,
            [rule.model_dump() for rule in payload.collapse_rules],
        )
    except ProbStateError as exc:
        raise _http_error(exc) from exc


@router.get("/states")
def list_states() -> list[dict]:
    return svc().list_states()


@router.get("/states/{state_id}")
def observe_state(state_id: str) -> dict[str, Any]:
    try:
        return svc().observe(state_id)
    except ProbStateError as exc:
        raise _http_error(exc) from exc


@router.get("/states/{state_id}/full")
def full_state(state_id: str) -> dict[str, Any]:
    try:
        return svc().get(state_id)
    except ProbStateError as exc:
        raise _http_error(exc) from exc


@router.get("/states/{state_id}/most-likely")
def most_likely_state(state_id: str) -> dict[str, Any]:
    try:
        return svc().most_likely(state_id)
    except ProbStateError as exc:
        raise _http_error(exc) from exc


@router.patch("/states/{state_id}/probabilities")
def update_probabilities(state_id: str, payload: UpdateProbabilitiesRequest) -> dict[str, Any]:
    try:
        current = svc().observe(state_id)["states"]
        # the cap applies to the merged vector, not just this request body
        _check_outcome_count({**current, **payload.updates})
        return svc().update(state_id, payload.updates)
    except ProbStateError as exc:
        raise _http_error(exc) from exc


@router.post("/states/{state_id}/collapse")
def collapse_state(state_id: str, payload: CollapseRequest) -> dict[str, Any]:
    try:
        return svc().collapse(state_id, payload.trigger, force=payload.force)
    except ProbStateError as exc:
        raise _http_error(exc) from exc


@router.post("/states/{state_id}/entangle")
def entangle_states(state_id: str, payload: EntangleRequest) -> dict[str, Any]:
    try:
        return svc().entangle(state_id, payload.target_id, payload.correlation)
    except ProbStateError as exc:
        raise _http_error(exc) from exc


@router.get("/states/{state_id}/history")
def state_history(state_id: str) -> list[dict]:
    try:
        return svc().history(state_id)
    except ProbStateError as exc:
        raise _http_error(exc) from exc


@router.get("/states/{state_id}/visualization")
def state_visualization(state_id: str) -> dict[str, Any]:
    try:
        return svc().visualization(state_id)
    except ProbStateError as exc:
        raise _http_error(exc) from exc


@router.delete("/states/{state_id}")
def delete_state(state_id: str) -> dict[str, Any]:
    if not svc().delete(state_id):
        raise HTTPException(status_code=404, detail=f"state not found: {state_id}")
    return {"id": state_id, "deleted": True}


__all__ = ["router"]
