from __future__ import annotations

import json
from typing import Any, Iterable, List, Optional
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
    ValidationInfo,
    model_validator,
)

_NAME_FIELDS = ("first_name", "second_name", "middle_name")

# Validation context marking data read back from storage
_DECODE = "decode"
_DECODE_CONTEXT = {_DECODE: True}


class MinutemenDecodeError(ValueError):
    """Raised when stored bytes cannot be decoded into minutemen."""


class MinutemenEncodeError(ValueError):
    """Raised when minutemen cannot be serialized for storage."""


class Minuteman(BaseModel):
    """
    A person that can be picked from the minutemen list.

    Fields
    - id: unique identifier, issued at construction and kept verbatim on decode.
    - first_name: first name (JSON: "firstName").
    - second_name: family name / surname (JSON: "secondName").
    - middle_name: optional middle name (JSON: "middleName", omitted when absent).

    Notes
    - Equality and hashing use `id` only: two records with the same names but
      different ids are different minutemen.
    - Name fields are frozen; `id` may be reassigned so a record can be made to
      match an existing stored one. Assigned ids are validated and coerced to UUID.
    - Names may be given positionally: `Minuteman("Harry", "Potter", "James")`.
    - Decoded records must carry their stored `id`; a fresh one is never issued.
    """

    model_config = ConfigDict(populate_by_name=True, validate_assignment=True)

    id: UUID = Field(default_factory=uuid4, description="Unique identifier")
    first_name: str = Field(alias="firstName", min_length=1, frozen=True)
    second_name: str = Field(alias="secondName", min_length=1, frozen=True)
    middle_name: Optional[str] = Field(default=None, alias="middleName", frozen=True)

    def __init__(self, *names: Optional[str], **data: Any) -> None:
        if len(names) > len(_NAME_FIELDS):
            raise TypeError(f"Minuteman takes at most {len(_NAME_FIELDS)} positional names")
        data.update(zip(_NAME_FIELDS, names))
        super().__init__(**data)

    @model_validator(mode="before")
    @classmethod
    def _require_stored_id(cls, data: Any, info: ValidationInfo) -> Any:
        if info.context and info.context.get(_DECODE) and isinstance(data, dict) and "id" not in data:
            raise ValueError("stored minuteman record has no id")
        return data

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Minuteman):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    @property
    def display_name(self) -> str:
        parts = [self.first_name, self.middle_name, self.second_name]
        return " ".join(p for p in parts if p)


_LIST_ADAPTER = TypeAdapter(List[Minuteman])


def _dump_json(payload: Any) -> bytes:
    # Deterministic JSON: stable key order, no extra whitespace
    return json.dumps(payload, separators=(",", ":"), sort_keys=True).encode("utf-8")


def _load_json(data: bytes) -> Any:
    try:
        return json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as ex:
        raise MinutemenDecodeError("Stored minutemen data is not valid JSON") from ex


def _record(minuteman: Minuteman) -> dict:
    return minuteman.model_dump(mode="json", by_alias=True, exclude_none=True)


def encode_minuteman(minuteman: Optional[Minuteman]) -> bytes:
    """Encode a single record; `None` encodes as JSON `null`."""
    try:
        return _dump_json(None if minuteman is None else _record(minuteman))
    except (TypeError, ValueError) as ex:
        raise MinutemenEncodeError("Failed to encode minuteman") from ex


def decode_minuteman(data: bytes) -> Optional[Minuteman]:
    if not data:
        return None
    raw = _load_json(data)
    if raw is None:
        return None
    try:
        return Minuteman.model_validate(raw, context=_DECODE_CONTEXT)
    except ValidationError as ex:
        raise MinutemenDecodeError("Stored minuteman record is invalid") from ex


def encode_minutemen(minutemen: Iterable[Minuteman]) -> bytes:
    try:
        return _dump_json([_record(m) for m in minutemen])
    except (TypeError, ValueError) as ex:
        raise MinutemenEncodeError("Failed to encode minutemen list") from ex


def decode_minutemen(data: bytes) -> List[Minuteman]:
    """Decode a stored list. Empty bytes and JSON `null` decode to `[]`."""
    if not data:
        return []
    raw = _load_json(data)
    if raw is None:
        return []
    try:
        return _LIST_ADAPTER.validate_python(raw, context=_DECODE_CONTEXT)
    except ValidationError as ex:
        raise MinutemenDecodeError("Stored minutemen list is invalid") from ex
