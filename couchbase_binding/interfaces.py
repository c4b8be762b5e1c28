from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

from .codec import Document
from .durability import DurabilityRequirement

if TYPE_CHECKING:
    from .settings import BindingSettings


class BucketHandle(Protocol):
    """
    Minimal document-store capability: whole documents addressed by id.

    Implementations raise DocumentNotFoundError / DocumentExistsError /
    DurabilityTimeoutFault from the binding's error taxonomy.
    """

    def get(self, doc_id: str) -> Document | None:
        """Return the stored document, or None when the id is absent."""
        ...

    def insert(self, document: Document, durability: DurabilityRequirement) -> None:
        """Create the document; fails if the id already exists."""
        ...

    def replace(self, document: Document, durability: DurabilityRequirement) -> None:
        """Overwrite an existing document; fails if the id is absent."""
        ...

    def remove(self, doc_id: str, durability: DurabilityRequirement) -> None:
        """Delete the document; fails if the id is absent."""
        ...


class ClusterSession(Protocol):
    def open_bucket(self, name: str, password: str) -> BucketHandle:
        ...

    def disconnect(self) -> None:
        ...


class StoreEnvironment(Protocol):
    """Heavy client-side resources shared by every session to one deployment."""

    def connect(self, hostname: str) -> ClusterSession:
        ...

    def shutdown(self) -> None:
        ...


class StoreDriver(Protocol):
    name: str

    def create_environment(self, settings: "BindingSettings") -> StoreEnvironment:
        ...
