from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .errors import ErrorKind


class Status(str, Enum):
    OK = "OK"
    ERROR = "ERROR"
    NOT_FOUND = "NOT_FOUND"
    NOT_IMPLEMENTED = "NOT_IMPLEMENTED"


@dataclass(frozen=True)
class OperationResult:
    status: Status
    kind: ErrorKind | None = None
    # Populated for successful reads only.
    record: dict[str, bytes] | None = None

    @property
    def ok(self) -> bool:
        return self.status is Status.OK


OK = OperationResult(Status.OK)
NOT_IMPLEMENTED = OperationResult(Status.NOT_IMPLEMENTED, ErrorKind.NOT_IMPLEMENTED)


def failed(kind: ErrorKind) -> OperationResult:
    if kind is ErrorKind.NOT_FOUND:
        return OperationResult(Status.NOT_FOUND, kind)
    return OperationResult(Status.ERROR, kind)
