"""
Section registry.

Fixed, ordered list of the C-CDA sections this package knows how to emit.
Position 0 is reserved; demographics (1) lives in the document header and
the body sections follow in positions 2-12, in the order the document
requires.
"""

from __future__ import annotations

from enum import Enum


class SectionName(str, Enum):
    DEMOGRAPHICS = "demographics"
    ALLERGIES = "allergies"
    ENCOUNTERS = "encounters"
    IMMUNIZATIONS = "immunizations"
    MEDICATIONS = "medications"
    PAYERS = "payers"
    PLAN_OF_CARE = "plan_of_care"
    PROBLEMS = "problems"
    PROCEDURES = "procedures"
    RESULTS = "results"
    SOCIAL_HISTORY = "social_history"
    VITALS = "vitals"


# Index -> name; slot 0 is the unused "null" section
_SECTIONS: tuple[SectionName | None, ...] = (None, *SectionName)
_INDEX = {section.value: index for index, section in enumerate(_SECTIONS) if section}


def name_of(index: int) -> SectionName | None:
    """Name of the section at ``index`` (``None`` for the reserved slot 0)."""
    return _SECTIONS[index]


def index_of(name: str) -> int:
    """Position of a section name. Raises ``KeyError`` for unknown names."""
    return _INDEX[name]


def is_section(name: str) -> bool:
    return name in _INDEX


def ordered_names() -> tuple[SectionName, ...]:
    """All twelve sections in document order, starting at demographics."""
    return tuple(_SECTIONS[1:])


def body_sections() -> tuple[SectionName, ...]:
    """Sections emitted under ``structuredBody`` (everything but demographics)."""
    return tuple(_SECTIONS[2:])
