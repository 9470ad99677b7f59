"""
Data models for ccdagen.
"""

from .record import Identifier, RecordMeta, parse_identifiers, unwrap_record
from .result import ConversionResult
from .template import AttributeValue, ElementRule, FieldRef, SectionTemplate

__all__ = [
    "Identifier",
    "RecordMeta",
    "parse_identifiers",
    "unwrap_record",
    "ConversionResult",
    "AttributeValue",
    "ElementRule",
    "FieldRef",
    "SectionTemplate",
]
