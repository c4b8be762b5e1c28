from __future__ import annotations

import threading
from typing import Iterable, Mapping

from ..codec import Document
from ..durability import PERSIST_NODE_COUNT, REPLICA_COUNT, DurabilityRequirement
from ..errors import ConnectionFault, DocumentExistsError, DocumentNotFoundError, DurabilityTimeoutFault
from ..settings import BindingSettings


class MemoryDeployment:
    """
    An in-process stand-in for a running cluster.

    - Holds bucket data independently of any environment, so documents survive
      environment shutdown and re-initialization.
    - `replicas` controls which durability requirements can be satisfied.
    - All access goes through a single lock; content is copied in and out.
    """

    def __init__(
        self,
        *,
        hosts: Iterable[str] = ("localhost",),
        buckets: Mapping[str, str] | None = None,
        replicas: int = 0,
    ):
        self.hosts = frozenset(hosts)
        self.replicas = int(replicas)
        self._passwords = dict(buckets if buckets is not None else {"default": ""})
        self._data: dict[str, dict[str, dict[str, str]]] = {name: {} for name in self._passwords}
        self._lock = threading.Lock()

    @property
    def nodes(self) -> int:
        return 1 + self.replicas

    def check_bucket(self, name: str, password: str) -> None:
        if name not in self._passwords:
            raise ConnectionFault(f"bucket {name!r} does not exist", details={"bucket": name})
        if self._passwords[name] != password:
            raise ConnectionFault(f"authentication failed for bucket {name!r}", details={"bucket": name})

    def check_durability(self, doc_id: str, durability: DurabilityRequirement) -> None:
        if PERSIST_NODE_COUNT[durability.persist_to] > self.nodes or REPLICA_COUNT[durability.replicate_to] > self.replicas:
            raise DurabilityTimeoutFault(
                f"durability {durability.persist_to.value}/{durability.replicate_to.value} "
                f"not met for {doc_id!r} with {self.replicas} replica(s)",
                details={"doc_id": doc_id},
            )

    def get(self, bucket: str, doc_id: str) -> Document | None:
        with self._lock:
            content = self._data[bucket].get(doc_id)
            if content is None:
                return None
            return Document(id=doc_id, content=dict(content))

    def insert(self, bucket: str, document: Document) -> None:
        with self._lock:
            docs = self._data[bucket]
            if document.id in docs:
                raise DocumentExistsError(f"document {document.id!r} already exists", details={"doc_id": document.id})
            docs[document.id] = dict(document.content)

    def replace(self, bucket: str, document: Document) -> None:
        with self._lock:
            docs = self._data[bucket]
            if document.id not in docs:
                raise DocumentNotFoundError(f"document {document.id!r} not found", details={"doc_id": document.id})
            docs[document.id] = dict(document.content)

    def remove(self, bucket: str, doc_id: str) -> None:
        with self._lock:
            docs = self._data[bucket]
            if doc_id not in docs:
                raise DocumentNotFoundError(f"document {doc_id!r} not found", details={"doc_id": doc_id})
            del docs[doc_id]

    def count(self, bucket: str) -> int:
        with self._lock:
            return len(self._data[bucket])


class MemoryBucket:
    def __init__(self, session: "MemorySession", name: str):
        self._session = session
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    def get(self, doc_id: str) -> Document | None:
        return self._session.deployment().get(self._name, doc_id)

    def insert(self, document: Document, durability: DurabilityRequirement) -> None:
        deployment = self._session.deployment()
        deployment.insert(self._name, document)
        # Mutation stays applied when durability is not met, as on a real cluster.
        deployment.check_durability(document.id, durability)

    def replace(self, document: Document, durability: DurabilityRequirement) -> None:
        deployment = self._session.deployment()
        deployment.replace(self._name, document)
        deployment.check_durability(document.id, durability)

    def remove(self, doc_id: str, durability: DurabilityRequirement) -> None:
        deployment = self._session.deployment()
        deployment.remove(self._name, doc_id)
        deployment.check_durability(doc_id, durability)


class MemorySession:
    def __init__(self, environment: "MemoryEnvironment", hostname: str):
        self._environment = environment
        self.hostname = hostname
        self.connected = True

    def deployment(self) -> MemoryDeployment:
        if not self.connected:
            raise ConnectionFault(f"session to {self.hostname!r} is disconnected")
        return self._environment.deployment()

    def open_bucket(self, name: str, password: str) -> MemoryBucket:
        self.deployment().check_bucket(name, password)
        return MemoryBucket(self, name)

    def disconnect(self) -> None:
        self.connected = False


class MemoryEnvironment:
    def __init__(self, deployment: MemoryDeployment):
        self._deployment = deployment
        self.shutdown_calls = 0

    @property
    def is_shutdown(self) -> bool:
        return self.shutdown_calls > 0

    def deployment(self) -> MemoryDeployment:
        if self.is_shutdown:
            raise ConnectionFault("environment has been shut down")
        return self._deployment

    def connect(self, hostname: str) -> MemorySession:
        if hostname not in self.deployment().hosts:
            raise ConnectionFault(f"cannot reach host {hostname!r}", details={"hostname": hostname})
        return MemorySession(self, hostname)

    def shutdown(self) -> None:
        self.shutdown_calls += 1


class MemoryDriver:
    name = "memory"

    def __init__(self, deployment: MemoryDeployment | None = None):
        self.deployment = deployment or MemoryDeployment()
        self.environments: list[MemoryEnvironment] = []

    def create_environment(self, settings: BindingSettings) -> MemoryEnvironment:
        env = MemoryEnvironment(self.deployment)
        self.environments.append(env)
        return env
