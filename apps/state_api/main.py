from __future__ import annotations

from fastapi import FastAPI

from .routers.api import states as api_states

app = FastAPI(title="Probabilistic State API", version="0.1.0")

app.include_router(api_states.router, prefix="/api", tags=["api"])


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


__all__ = ["app"]
