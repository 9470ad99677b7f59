"""
Input record helpers.

Records are plain JSON objects in the Blue Button CCDA shape. They are never
mutated; these helpers only read from them.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from ccdagen.errors import InvalidRecordError


class Identifier(BaseModel):
    """A single instance identifier (root OID plus optional extension)."""

    identifier: str | None = None
    extension: str | None = None


class RecordMeta(BaseModel):
    """Document-level metadata carried next to the clinical data."""

    identifiers: list[Identifier] = Field(default_factory=list)


def parse_identifiers(value: Any) -> list[Identifier]:
    """Turn a raw ``identifiers`` value into models, ignoring unusable members."""
    if not isinstance(value, list):
        return []
    identifiers = []
    for raw in value:
        if isinstance(raw, Identifier):
            identifiers.append(raw)
            continue
        if not isinstance(raw, Mapping):
            continue
        try:
            identifiers.append(Identifier.model_validate(raw))
        except ValidationError:
            continue
    return identifiers


def unwrap_record(record: Any) -> tuple[Mapping[str, Any], RecordMeta | None]:
    """
    Split a record into its section mapping and its metadata.

    When the record nests its sections under ``data``, every section lookup
    uses the nested object. ``meta`` is always read from the outer object.
    """
    if not isinstance(record, Mapping):
        raise InvalidRecordError(
            f"Expected a JSON object, got {type(record).__name__}"
        )

    meta = None
    raw_meta = record.get("meta")
    if isinstance(raw_meta, Mapping):
        meta = RecordMeta(identifiers=parse_identifiers(raw_meta.get("identifiers")))

    data = record.get("data")
    if data is not None:
        if not isinstance(data, Mapping):
            raise InvalidRecordError(
                f"Expected 'data' to be a JSON object, got {type(data).__name__}"
            )
        return data, meta
    return record, meta
