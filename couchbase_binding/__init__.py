from __future__ import annotations

from .async_client import AsyncCouchbaseClient
from .client import CouchbaseClient
from .codec import Document, compose_id, decode, encode
from .connections import GLOBAL_CONNECTIONS, ConnectionHandle, ConnectionManager, ConnectionTarget
from .durability import DurabilityRequirement, PersistenceLevel, ReplicationLevel, resolve
from .errors import (
    BindingError,
    ConnectionFault,
    DocumentExistsError,
    DocumentNotFoundError,
    DoubleReleaseError,
    DurabilityTimeoutFault,
    EncodingError,
    ErrorKind,
    FieldNotFoundError,
)
from .results import OperationResult, Status
from .settings import BindingSettings, get_settings, load_settings

__all__ = [
    "AsyncCouchbaseClient",
    "CouchbaseClient",
    "Document",
    "compose_id",
    "decode",
    "encode",
    "GLOBAL_CONNECTIONS",
    "ConnectionHandle",
    "ConnectionManager",
    "ConnectionTarget",
    "DurabilityRequirement",
    "PersistenceLevel",
    "ReplicationLevel",
    "resolve",
    "BindingError",
    "ConnectionFault",
    "DocumentExistsError",
    "DocumentNotFoundError",
    "DoubleReleaseError",
    "DurabilityTimeoutFault",
    "EncodingError",
    "ErrorKind",
    "FieldNotFoundError",
    "OperationResult",
    "Status",
    "BindingSettings",
    "get_settings",
    "load_settings",
]
