"""Root conftest: shared fixtures for a printer-style socket protocol.

Invariants:
    - Every test gets fresh Settings, Validator, router and error sink
    - MSGGATE_* environment variables never leak in from the developer shell
"""

import os

import pytest
from pydantic import BaseModel, Field

from msggate.config import Settings, get_settings
from msggate.core.dispatch_router import DispatchRouter
from msggate.core.validator import Validator
from msggate.schemas.registry import SchemaRegistry

for _key in [k for k in os.environ if k.startswith("MSGGATE_")]:
    del os.environ[_key]


class PrintStart(BaseModel):
    job_id: str = Field(..., min_length=1)
    file: str
    layer_count: int = Field(..., ge=1)


class PrintProgress(BaseModel):
    job_id: str
    percent: float = Field(..., ge=0.0, le=100.0)
    layer: int = Field(..., ge=0)


class PrinterUser(BaseModel):
    uid: int
    name: str


class RecordingSink:
    """Error sink that keeps every reported error for assertions."""

    def __init__(self):
        self.errors = []

    def __call__(self, error) -> None:
        self.errors.append(error)

    @property
    def codes(self) -> list[str]:
        return [e.code for e in self.errors]


@pytest.fixture(autouse=True)
def _fresh_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None)


@pytest.fixture
def schemas() -> SchemaRegistry:
    return SchemaRegistry({
        ("print", "start"): PrintStart,
        ("print", "progress"): PrintProgress,
        ("printer", "user"): PrinterUser,
    })


@pytest.fixture
def validator(schemas, settings) -> Validator:
    return Validator(schemas, settings)


@pytest.fixture
def router() -> DispatchRouter:
    return DispatchRouter()


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def print_start():
    """Factory for a valid print/start raw message (as a dict)."""
    def _make(job_id: str = "job-1", **payload) -> dict:
        body = {"job_id": job_id, "file": "benchy.gcode", "layer_count": 240}
        body.update(payload)
        return {"type": "print", "subtype": "start", "id": f"m-{job_id}", "payload": body}
    return _make
