"""
Exceptions raised while generating C-CDA documents.
"""

from __future__ import annotations


class CCDAGenerationError(Exception):
    """Base class for all conversion failures."""


class InvalidRecordError(CCDAGenerationError):
    """The input record is not a JSON object."""


class TemplateMismatch(CCDAGenerationError):
    """
    A data item does not have the shape a template rule expects.

    Raised and recovered per item: the offending item is left out of the
    section and the mismatch is reported back to the caller.
    """

    def __init__(self, section: str, index: int | None, detail: str):
        self.section = section
        self.index = index
        self.detail = detail
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.index is None:
            return f"{self.section}: {self.detail}"
        return f"{self.section}[{self.index}]: {self.detail}"

    def to_dict(self) -> dict:
        return {"section": self.section, "index": self.index, "detail": self.detail}


class SectionGeneratorError(CCDAGenerationError):
    """A bespoke section generator failed; the partial tree is unusable."""

    def __init__(self, section: str):
        self.section = section
        super().__init__(f"Failed to generate section '{section}'")
