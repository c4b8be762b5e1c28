from __future__ import annotations

from pathlib import Path
import sys
from typing import Callable


import pytest


# Ensure the repository root (parent of ./tests) is importable during pytest collection.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from couchbase_binding.client import CouchbaseClient  # noqa: E402
from couchbase_binding.connections import ConnectionManager  # noqa: E402
from couchbase_binding.drivers.memory import MemoryDeployment, MemoryDriver  # noqa: E402

ENV_VARS = (
    "COUCHBASE_HOSTNAME",
    "COUCHBASE_BUCKET",
    "COUCHBASE_PASSWORD",
    "COUCHBASE_USERNAME",
    "COUCHBASE_PERSIST_TO",
    "COUCHBASE_REPLICATE_TO",
    "COUCHBASE_DRIVER",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """
    Keep a developer's COUCHBASE_* environment out of the tests.
    """
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def deployment() -> MemoryDeployment:
    return MemoryDeployment(buckets={"default": "", "secure": "s3cret"}, replicas=1)


@pytest.fixture
def driver(deployment: MemoryDeployment) -> MemoryDriver:
    return MemoryDriver(deployment)


@pytest.fixture
def manager(driver: MemoryDriver) -> ConnectionManager:
    return ConnectionManager({"memory": driver})


@pytest.fixture
def client_factory(manager: ConnectionManager) -> Callable[..., CouchbaseClient]:
    def _make(**properties: str) -> CouchbaseClient:
        props = {"couchbase.driver": "memory"}
        props.update({f"couchbase.{k}": v for k, v in properties.items()})
        return CouchbaseClient(props, manager=manager, env_file=None)

    return _make


@pytest.fixture
def client(client_factory: Callable[..., CouchbaseClient]):
    c = client_factory()
    c.init()
    yield c
    if not c.handle.released:
        c.cleanup()
