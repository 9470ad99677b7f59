"""
Template descriptions for the declaratively generated sections.

A section template is an ordered list of element rules. Every rule names the
markup emitted for each data item, including placeholders for values the
C-CDA standard requires even when the source record leaves them out.
"""

from __future__ import annotations

from typing import Literal, Union

from pydantic import BaseModel, ConfigDict, Field

Transform = Literal["code_system", "timestamp", "lower", "upper", "boolean"]


class FieldRef(BaseModel):
    """Reference to a value inside the current data context."""

    model_config = ConfigDict(frozen=True)

    field: str = Field(..., description="Dotted path, or '.' for the context itself")
    transform: Transform | None = None
    default: str | None = None


AttributeValue = Union[FieldRef, str]


class ElementRule(BaseModel):
    """One element of a section entry."""

    model_config = ConfigDict(frozen=True)

    key: str = Field(..., description="Element tag name")
    attributes: dict[str, AttributeValue] = Field(default_factory=dict)
    text: AttributeValue | None = None
    data_key: str | None = Field(
        None, description="Dotted path that re-scopes the context for this element"
    )
    required: bool = False
    null_flavor: str = "UNK"
    exists_when: str | None = None
    content: list[ElementRule] = Field(default_factory=list)


class SectionTemplate(BaseModel):
    """Fixed description of a C-CDA section and its required entries."""

    model_config = ConfigDict(frozen=True)

    name: str
    template_ids: list[str]
    code: str
    display_name: str
    title: str
    narrative: str | None = None
    entries: list[ElementRule]


ElementRule.model_rebuild()
