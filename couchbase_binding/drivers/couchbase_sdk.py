"""
Couchbase Server driver built on the Couchbase Python SDK (4.x).

Usage
-----
    pip install "couchbase-binding[couchbase]"

    client = CouchbaseClient({"couchbase.driver": "couchbase", "couchbase.hostname": "10.0.0.5"})
    client.init()

The SDK has no separate environment object; the environment here only carries
credentials and closes any session still open at shutdown.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, TypeVar

from couchbase.auth import PasswordAuthenticator
from couchbase.cluster import Cluster
from couchbase.durability import ClientDurability, PersistToExtended, ReplicateTo
from couchbase.exceptions import (
    AmbiguousTimeoutException,
    CouchbaseException,
    DocumentExistsException,
    DocumentNotFoundException,
    DurabilityImpossibleException,
    DurabilitySyncWriteAmbiguousException,
    UnAmbiguousTimeoutException,
)
from couchbase.options import ClusterOptions, InsertOptions, RemoveOptions, ReplaceOptions

from ..codec import Document
from ..durability import DurabilityRequirement, PersistenceLevel, ReplicationLevel
from ..errors import ConnectionFault, DocumentExistsError, DocumentNotFoundError, DurabilityTimeoutFault
from ..settings import BindingSettings

logger = logging.getLogger(__name__)

T = TypeVar("T")

_PERSIST_TO = {
    PersistenceLevel.NONE: PersistToExtended.NONE,
    PersistenceLevel.MASTER: PersistToExtended.ACTIVE,
    PersistenceLevel.ONE: PersistToExtended.ONE,
    PersistenceLevel.TWO: PersistToExtended.TWO,
    PersistenceLevel.THREE: PersistToExtended.THREE,
    PersistenceLevel.FOUR: PersistToExtended.FOUR,
}

_REPLICATE_TO = {
    ReplicationLevel.NONE: ReplicateTo.NONE,
    ReplicationLevel.ONE: ReplicateTo.ONE,
    ReplicationLevel.TWO: ReplicateTo.TWO,
    ReplicationLevel.THREE: ReplicateTo.THREE,
}

_DURABILITY_FAULTS = (
    DurabilityImpossibleException,
    DurabilitySyncWriteAmbiguousException,
    AmbiguousTimeoutException,
    UnAmbiguousTimeoutException,
)


def client_durability(durability: DurabilityRequirement) -> ClientDurability | None:
    if durability.is_none:
        return None
    return ClientDurability(
        replicate_to=_REPLICATE_TO[durability.replicate_to],
        persist_to=_PERSIST_TO[durability.persist_to],
    )


def _options(options_cls: Callable[..., Any], durability: DurabilityRequirement) -> tuple[Any, ...]:
    durable = client_durability(durability)
    return () if durable is None else (options_cls(durability=durable),)


def _mutate(doc_id: str, call: Callable[[], T]) -> T:
    try:
        return call()
    except DocumentNotFoundException as exc:
        raise DocumentNotFoundError(f"document {doc_id!r} not found", details={"doc_id": doc_id}) from exc
    except DocumentExistsException as exc:
        raise DocumentExistsError(f"document {doc_id!r} already exists", details={"doc_id": doc_id}) from exc
    except _DURABILITY_FAULTS as exc:
        raise DurabilityTimeoutFault(
            f"durability not confirmed for {doc_id!r}: {exc}", details={"doc_id": doc_id}
        ) from exc


class CouchbaseBucket:
    def __init__(self, collection: Any):
        self._collection = collection

    def get(self, doc_id: str) -> Document | None:
        try:
            result = self._collection.get(doc_id)
        except DocumentNotFoundException:
            return None
        return Document(id=doc_id, content=result.content_as[dict])

    def insert(self, document: Document, durability: DurabilityRequirement) -> None:
        opts = _options(InsertOptions, durability)
        _mutate(document.id, lambda: self._collection.insert(document.id, document.content, *opts))

    def replace(self, document: Document, durability: DurabilityRequirement) -> None:
        opts = _options(ReplaceOptions, durability)
        _mutate(document.id, lambda: self._collection.replace(document.id, document.content, *opts))

    def remove(self, doc_id: str, durability: DurabilityRequirement) -> None:
        opts = _options(RemoveOptions, durability)
        _mutate(doc_id, lambda: self._collection.remove(doc_id, *opts))


class CouchbaseSession:
    def __init__(self, environment: "CouchbaseEnvironment", hostname: str):
        self._environment = environment
        self._hostname = hostname
        self._cluster: Cluster | None = None

    def open_bucket(self, name: str, password: str) -> CouchbaseBucket:
        username = self._environment.username or name
        try:
            self._cluster = Cluster(
                f"couchbase://{self._hostname}",
                ClusterOptions(PasswordAuthenticator(username, password)),
            )
            bucket = self._cluster.bucket(name)
            collection = bucket.default_collection()
        except CouchbaseException as exc:
            raise ConnectionFault(
                f"could not open bucket {name!r} on {self._hostname!r}: {exc}",
                details={"hostname": self._hostname, "bucket": name},
            ) from exc
        return CouchbaseBucket(collection)

    def disconnect(self) -> None:
        cluster, self._cluster = self._cluster, None
        self._environment.forget(self)
        if cluster is not None:
            cluster.close()


class CouchbaseEnvironment:
    def __init__(self, settings: BindingSettings):
        self.username = settings.username
        self._lock = threading.Lock()
        self._sessions: list[CouchbaseSession] = []

    def connect(self, hostname: str) -> CouchbaseSession:
        session = CouchbaseSession(self, hostname)
        with self._lock:
            self._sessions.append(session)
        return session

    def forget(self, session: CouchbaseSession) -> None:
        with self._lock:
            if session in self._sessions:
                self._sessions.remove(session)

    def shutdown(self) -> None:
        with self._lock:
            leftover = list(self._sessions)
        for session in leftover:
            logger.warning("Closing session left open at environment shutdown")
            session.disconnect()


class CouchbaseSdkDriver:
    name = "couchbase"

    def create_environment(self, settings: BindingSettings) -> CouchbaseEnvironment:
        return CouchbaseEnvironment(settings)
