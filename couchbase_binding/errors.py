from __future__ import annotations

from enum import Enum
from typing import Any, Mapping


class ErrorKind(str, Enum):
    CONNECTION = "CONNECTION"
    DURABILITY_TIMEOUT = "DURABILITY_TIMEOUT"
    NOT_FOUND = "NOT_FOUND"
    ALREADY_EXISTS = "ALREADY_EXISTS"
    ENCODING = "ENCODING"
    FIELD_NOT_FOUND = "FIELD_NOT_FOUND"
    NOT_IMPLEMENTED = "NOT_IMPLEMENTED"
    DOUBLE_RELEASE = "DOUBLE_RELEASE"
    UNEXPECTED = "UNEXPECTED"


class BindingError(Exception):
    """
    Base exception for everything the binding raises on purpose.

    Attributes:
        message: Human-readable description
        kind: Machine-readable tag, also carried on OperationResult
        details: Extra context for logs (document id, field name, ...)
    """

    def __init__(
        self,
        message: str = "",
        *,
        kind: ErrorKind = ErrorKind.UNEXPECTED,
        details: Mapping[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.details = dict(details or {})

    def asdict(self) -> dict[str, Any]:
        return {
            "message": self.message,
            "kind": self.kind.value,
            "details": {k: self.details[k] for k in sorted(self.details)},
        }


# Subclasses set their default `kind` where the caller does not pass one.


class ConnectionFault(BindingError):
    """Connecting to the cluster or opening the bucket failed. Fatal at init."""

    def __init__(self, message: str, **kwargs: Any):
        kwargs.setdefault("kind", ErrorKind.CONNECTION)
        super().__init__(message, **kwargs)


class DurabilityTimeoutFault(BindingError):
    """The store did not confirm the requested persistence/replication in time."""

    def __init__(self, message: str, **kwargs: Any):
        kwargs.setdefault("kind", ErrorKind.DURABILITY_TIMEOUT)
        super().__init__(message, **kwargs)


class DocumentNotFoundError(BindingError):
    def __init__(self, message: str, **kwargs: Any):
        kwargs.setdefault("kind", ErrorKind.NOT_FOUND)
        super().__init__(message, **kwargs)


class DocumentExistsError(BindingError):
    def __init__(self, message: str, **kwargs: Any):
        kwargs.setdefault("kind", ErrorKind.ALREADY_EXISTS)
        super().__init__(message, **kwargs)


class EncodingError(BindingError):
    """A record value has no string representation in the document format."""

    def __init__(self, message: str, **kwargs: Any):
        kwargs.setdefault("kind", ErrorKind.ENCODING)
        super().__init__(message, **kwargs)


class FieldNotFoundError(BindingError):
    """A projected field is missing from the stored document."""

    def __init__(self, message: str, **kwargs: Any):
        kwargs.setdefault("kind", ErrorKind.FIELD_NOT_FOUND)
        super().__init__(message, **kwargs)


class DoubleReleaseError(BindingError):
    def __init__(self, message: str, **kwargs: Any):
        kwargs.setdefault("kind", ErrorKind.DOUBLE_RELEASE)
        super().__init__(message, **kwargs)
