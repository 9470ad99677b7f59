"""
Conversion results.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal
from xml.etree import ElementTree as ET

from ccdagen.errors import TemplateMismatch


@dataclass
class ConversionResult:
    """
    Outcome of a whole-document conversion.

    ``kind`` is ``"document"`` when at least one body section was present and
    ``body`` holds the serialized XML. ``"header_only"`` means the record had
    nothing beyond demographics; the header is still available on ``tree``.
    """

    kind: Literal["document", "header_only"]
    tree: ET.Element
    body: str | None = None
    issues: list[TemplateMismatch] = field(default_factory=list)

    @property
    def is_document(self) -> bool:
        return self.kind == "document"
