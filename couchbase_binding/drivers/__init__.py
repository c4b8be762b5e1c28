from __future__ import annotations

from ..errors import ConnectionFault
from ..interfaces import StoreDriver
from .memory import MemoryDeployment, MemoryDriver

DRIVER_NAMES = ("couchbase", "memory")


def load_driver(name: str) -> StoreDriver:
    """
    Return a fresh driver for `name`. The SDK driver is imported on demand so the
    binding stays importable without the couchbase package.
    """
    key = (name or "").strip().lower()
    if key == "memory":
        return MemoryDriver()
    if key == "couchbase":
        try:
            from .couchbase_sdk import CouchbaseSdkDriver
        except ImportError as exc:
            raise ConnectionFault(
                "the couchbase driver requires the `couchbase` package "
                "(pip install 'couchbase-binding[couchbase]')",
                details={"driver": key},
            ) from exc
        return CouchbaseSdkDriver()
    raise ConnectionFault(
        f"unknown driver {name!r}; expected one of {list(DRIVER_NAMES)}",
        details={"driver": name},
    )


__all__ = ["DRIVER_NAMES", "MemoryDeployment", "MemoryDriver", "load_driver"]
