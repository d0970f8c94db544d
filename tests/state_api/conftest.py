from __future__ import annotations

import numpy as np
import pytest
from fastapi.testclient import TestClient


@pytest.fixture()
def client(monkeypatch: pytest.MonkeyPatch) -> TestClient:
    """Spin up the FastAPI app over a fresh, seeded store."""

    from probstate import StateStore
    from apps.state_api.services.state_service import StateService

    service = StateService(StateStore(rng=np.random.default_rng(0)))

    import apps.state_api.deps as deps

    monkeypatch.setattr(deps, "_service", service, raising=True)

    from apps.state_api.main import app

    return TestClient(app)
