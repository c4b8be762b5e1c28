from __future__ import annotations

from typing import Any, Iterable, Mapping

from pydantic import BaseModel, Field

from .errors import EncodingError, FieldNotFoundError

ID_SEPARATOR = "-"


class Document(BaseModel):
    """
    A stored document: an id plus a flat field -> string mapping.

    The document format has no byte-string type, so every value is kept as text.
    """

    id: str
    content: dict[str, str] = Field(default_factory=dict)


def compose_id(table: str, key: str) -> str:
    return f"{table}{ID_SEPARATOR}{key}"


def _encode_value(field: str, value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, (bytes, bytearray, memoryview)):
        try:
            return bytes(value).decode("utf-8")
        except UnicodeDecodeError as exc:
            raise EncodingError(
                f"value of field {field!r} is not valid UTF-8",
                details={"field": field},
            ) from exc
    # bool is an int subclass; both become their str() form like any other scalar.
    if isinstance(value, (int, float)):
        return str(value)
    raise EncodingError(
        f"value of field {field!r} has unsupported type {type(value).__name__}",
        details={"field": field, "type": type(value).__name__},
    )


def encode(doc_id: str, record: Mapping[str, Any]) -> Document:
    content: dict[str, str] = {}
    for field, value in record.items():
        if not isinstance(field, str):
            raise EncodingError(
                f"field names must be strings, got {type(field).__name__}",
                details={"type": type(field).__name__},
            )
        content[field] = _encode_value(field, value)
    return Document(id=doc_id, content=content)


def decode(document: Document, fields: Iterable[str] | None = None) -> dict[str, bytes]:
    """
    Project a stored document back into a record of raw bytes.

    With `fields=None` every stored field is returned; otherwise exactly the
    requested ones, and a requested field that was never stored is an error.
    A bare string is one field name, not a sequence of characters.
    """
    content = document.content
    if isinstance(fields, str):
        fields = [fields]
    if fields is None:
        return {name: value.encode("utf-8") for name, value in content.items()}

    out: dict[str, bytes] = {}
    for name in fields:
        if name not in content:
            raise FieldNotFoundError(
                f"field {name!r} not present on document {document.id!r}",
                details={"field": name, "doc_id": document.id},
            )
        out[name] = content[name].encode("utf-8")
    return out
