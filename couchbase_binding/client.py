from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping

from .codec import compose_id, decode, encode
from .connections import GLOBAL_CONNECTIONS, ConnectionHandle, ConnectionManager
from .durability import DurabilityRequirement, resolve
from .errors import BindingError, ConnectionFault, DoubleReleaseError, ErrorKind
from .interfaces import BucketHandle
from .results import NOT_IMPLEMENTED, OK, OperationResult, Status, failed
from .settings import BindingSettings, load_settings

logger = logging.getLogger(__name__)

_BENIGN = (ErrorKind.NOT_FOUND, ErrorKind.ALREADY_EXISTS)


class CouchbaseClient:
    """
    CRUD binding for a load-generating benchmark, one instance per worker.

    Every operation is a single blocking attempt against the bucket using the
    instance's durability requirement. Operation-level faults are logged with the
    key and returned as an OperationResult; nothing is retried here.
    """

    def __init__(
        self,
        properties: Mapping[str, str] | None = None,
        *,
        manager: ConnectionManager | None = None,
        env_file: str | None = "local.env",
    ) -> None:
        self._properties = dict(properties or {})
        self._manager = manager if manager is not None else GLOBAL_CONNECTIONS
        self._env_file = env_file
        self._settings: BindingSettings | None = None
        self._durability: DurabilityRequirement | None = None
        self._handle: ConnectionHandle | None = None

    @property
    def settings(self) -> BindingSettings | None:
        return self._settings

    @property
    def durability(self) -> DurabilityRequirement | None:
        return self._durability

    @property
    def handle(self) -> ConnectionHandle | None:
        return self._handle

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def init(self) -> None:
        """Read settings, resolve durability, and lease a connection. ConnectionFault propagates."""
        if self._handle is not None and not self._handle.released:
            raise ConnectionFault(
                "client is already initialized; call cleanup() first",
                details={"lease_id": self._handle.lease_id},
            )
        settings = load_settings(self._properties, env_file=self._env_file)
        durability = resolve(settings.persist_to, settings.replicate_to)
        self._handle = self._manager.acquire(settings)
        self._settings = settings
        self._durability = durability
        logger.debug(
            "Initialized client for %s (persist_to=%s, replicate_to=%s)",
            self._handle.target,
            durability.persist_to.value,
            durability.replicate_to.value,
        )

    def cleanup(self) -> None:
        if self._handle is None:
            raise DoubleReleaseError("client was never initialized")
        self._manager.release(self._handle)

    def __enter__(self) -> "CouchbaseClient":
        self.init()
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.cleanup()

    def _bucket(self) -> BucketHandle:
        if self._handle is None or self._handle.released:
            raise ConnectionFault("client is not initialized")
        return self._handle.bucket

    def _required_durability(self) -> DurabilityRequirement:
        if self._durability is None:
            raise ConnectionFault("client is not initialized")
        return self._durability

    def _failure(self, action: str, key: str, exc: Exception) -> OperationResult:
        if isinstance(exc, BindingError):
            if exc.kind in _BENIGN:
                logger.warning("Error %s key: %s (%s)", action, key, exc.message)
            else:
                logger.error("Error %s key: %s (%s)", action, key, exc.message)
            return failed(exc.kind)
        logger.exception("Error %s key: %s", action, key)
        return failed(ErrorKind.UNEXPECTED)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def read(self, table: str, key: str, fields: Iterable[str] | None = None) -> OperationResult:
        """
        Fetch `table-key`; `fields=None` returns every stored field.
        A bare string is taken as a single field name.
        """
        try:
            document = self._bucket().get(compose_id(table, key))
            if document is None:
                logger.warning("Key not found, please check loaded data: %s", key)
                return failed(ErrorKind.NOT_FOUND)
            return OperationResult(Status.OK, record=decode(document, fields))
        except Exception as exc:
            return self._failure("reading", key, exc)

    def update(self, table: str, key: str, values: Mapping[str, Any]) -> OperationResult:
        try:
            document = encode(compose_id(table, key), values)
            self._bucket().replace(document, self._required_durability())
            return OK
        except Exception as exc:
            return self._failure("updating", key, exc)

    def update_field(self, table: str, key: str, field: str, value: Any) -> OperationResult:
        return self.update(table, key, {field: value})

    def insert(self, table: str, key: str, values: Mapping[str, Any]) -> OperationResult:
        try:
            document = encode(compose_id(table, key), values)
            self._bucket().insert(document, self._required_durability())
            return OK
        except Exception as exc:
            return self._failure("inserting", key, exc)

    def delete(self, table: str, key: str) -> OperationResult:
        try:
            self._bucket().remove(compose_id(table, key), self._required_durability())
            return OK
        except Exception as exc:
            return self._failure("deleting", key, exc)

    def scan(
        self,
        table: str,
        start_key: str,
        record_count: int,
        fields: Iterable[str] | None = None,
    ) -> OperationResult:
        logger.warning("Range scan is not supported (table=%s, start_key=%s)", table, start_key)
        return NOT_IMPLEMENTED

    def scan_field(self, table: str, start_key: str, record_count: int, field: str) -> OperationResult:
        return self.scan(table, start_key, record_count, [field])
