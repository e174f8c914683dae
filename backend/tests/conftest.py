"""Shared test fixtures for backend tests.

Session and API fixtures use in-process fakes so tests run without any
platform location or compass service.
"""
from __future__ import annotations

import time

import pytest
from fastapi.testclient import TestClient

from navigation.reactor import DerivedStateReactor
from tests.fakes import StateRecorder


# ---------- Reactor fixtures ----------

@pytest.fixture()
def recorder() -> StateRecorder:
    return StateRecorder()


@pytest.fixture()
def reactor(recorder: StateRecorder) -> DerivedStateReactor:
    r = DerivedStateReactor(reset_continuity_on_heading_loss=False)
    r.subscribe(recorder)
    return r


@pytest.fixture()
def reactor_factory(recorder: StateRecorder):
    """Build a reactor with keyword overrides; all share the same recorder."""

    def _factory(**kwargs) -> DerivedStateReactor:
        defaults = dict(reset_continuity_on_heading_loss=False)
        defaults.update(kwargs)
        r = DerivedStateReactor(**defaults)
        r.subscribe(recorder)
        return r

    return _factory


# ---------- FastAPI test client ----------

@pytest.fixture()
def app_client():
    """TestClient for the full api.app; lifespan builds a fresh session per test."""
    import api

    with TestClient(api.app) as c:
        yield c


@pytest.fixture()
def wait_for_state(app_client):
    """Poll GET /api/state until predicate(payload) holds or the timeout expires."""

    def _wait(predicate, timeout: float = 2.0) -> dict:
        deadline = time.monotonic() + timeout
        payload = app_client.get("/api/state").json()
        while not predicate(payload):
            if time.monotonic() > deadline:
                raise AssertionError(f"State never satisfied predicate: {payload}")
            time.sleep(0.01)
            payload = app_client.get("/api/state").json()
        return payload

    return _wait
