from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


class PersistenceLevel(str, Enum):
    NONE = "none"
    MASTER = "master"
    ONE = "one"
    TWO = "two"
    THREE = "three"
    FOUR = "four"


class ReplicationLevel(str, Enum):
    NONE = "none"
    ONE = "one"
    TWO = "two"
    THREE = "three"


_PERSIST_BY_TEXT = {
    "master": PersistenceLevel.MASTER,
    "1": PersistenceLevel.ONE,
    "2": PersistenceLevel.TWO,
    "3": PersistenceLevel.THREE,
    "4": PersistenceLevel.FOUR,
}

_REPLICATE_BY_TEXT = {
    "1": ReplicationLevel.ONE,
    "2": ReplicationLevel.TWO,
    "3": ReplicationLevel.THREE,
}

# Nodes that must acknowledge persistence; the primary counts as one.
PERSIST_NODE_COUNT = {
    PersistenceLevel.NONE: 0,
    PersistenceLevel.MASTER: 1,
    PersistenceLevel.ONE: 1,
    PersistenceLevel.TWO: 2,
    PersistenceLevel.THREE: 3,
    PersistenceLevel.FOUR: 4,
}

REPLICA_COUNT = {
    ReplicationLevel.NONE: 0,
    ReplicationLevel.ONE: 1,
    ReplicationLevel.TWO: 2,
    ReplicationLevel.THREE: 3,
}


class DurabilityRequirement(BaseModel):
    model_config = ConfigDict(frozen=True)

    persist_to: PersistenceLevel = PersistenceLevel.NONE
    replicate_to: ReplicationLevel = ReplicationLevel.NONE

    @property
    def is_none(self) -> bool:
        return self.persist_to is PersistenceLevel.NONE and self.replicate_to is ReplicationLevel.NONE


def parse_persist_to(text: str | None) -> PersistenceLevel:
    if text is None:
        return PersistenceLevel.NONE
    return _PERSIST_BY_TEXT.get(str(text).strip().lower(), PersistenceLevel.NONE)


def parse_replicate_to(text: str | None) -> ReplicationLevel:
    if text is None:
        return ReplicationLevel.NONE
    return _REPLICATE_BY_TEXT.get(str(text).strip(), ReplicationLevel.NONE)


def resolve(persist_to: str | None, replicate_to: str | None) -> DurabilityRequirement:
    """
    Turn the two configuration strings into a DurabilityRequirement.

    Never raises: anything unrecognized (including "0") falls back to NONE.
    """
    return DurabilityRequirement(
        persist_to=parse_persist_to(persist_to),
        replicate_to=parse_replicate_to(replicate_to),
    )
