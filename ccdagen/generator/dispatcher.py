"""
Section dispatch.

Routes a section name to its handler. Template-driven sections receive only
their own slice of the record; bespoke generators receive the whole record
so they can reference sibling sections (payers reads demographics).
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Any, Callable, Union
from xml.etree import ElementTree as ET

from ccdagen.errors import SectionGeneratorError, TemplateMismatch
from ccdagen.generator.filler import TemplateFiller
from ccdagen.generator.loader import load_code_systems, load_section_templates
from ccdagen.generator.markup import is_empty_slice
from ccdagen.generator.registry import SectionName, is_section
from ccdagen.models import SectionTemplate
from ccdagen.sections import GENERATORS

logger = logging.getLogger(__name__)

SectionGenerator = Callable[
    [Mapping[str, Any], Mapping[str, str], bool, Union[ET.Element, None]], ET.Element
]


@dataclass(frozen=True)
class NeedsWholeRecord:
    """Handled by a bespoke generator that is given the entire record."""

    generator: SectionGenerator


@dataclass(frozen=True)
class NeedsOwnSlice:
    """Handled by the template filler with the section's own data."""

    template: SectionTemplate


SectionHandler = Union[NeedsWholeRecord, NeedsOwnSlice]


def build_handlers(
    templates: Mapping[str, SectionTemplate],
    generators: Mapping[str, SectionGenerator] = GENERATORS,
) -> Mapping[str, SectionHandler]:
    """Build the fixed section -> handler table."""
    handlers: dict[str, SectionHandler] = {}
    for section in SectionName:
        if section.value in generators:
            handlers[section.value] = NeedsWholeRecord(generators[section.value])
        elif section.value in templates:
            handlers[section.value] = NeedsOwnSlice(templates[section.value])
        else:
            raise ValueError(f"No handler available for section '{section.value}'")
    return MappingProxyType(handlers)


class SectionDispatcher:
    """
    Dispatches section conversion to the template filler or a bespoke
    generator. Holds only read-only state, so one instance can serve any
    number of conversions.
    """

    def __init__(
        self,
        code_systems: Mapping[str, str] | None = None,
        templates: Mapping[str, SectionTemplate] | None = None,
        generators: Mapping[str, SectionGenerator] | None = None,
    ):
        self.code_systems = code_systems if code_systems is not None else load_code_systems()
        if templates is None:
            templates = load_section_templates()
        if generators is None:
            generators = GENERATORS
        self.handlers = build_handlers(templates, generators)
        self.filler = TemplateFiller(self.code_systems)

    def handler_for(self, section_name: str) -> SectionHandler | None:
        if not is_section(section_name):
            return None
        return self.handlers[section_name]

    def dispatch(
        self,
        section_name: str,
        data: Mapping[str, Any],
        is_whole_document: bool,
        parent: ET.Element | None,
        issues: list[TemplateMismatch] | None = None,
    ) -> ET.Element | None:
        """
        Convert one section of ``data`` into ``parent``.

        Returns the node the section was written to, or ``None`` when the
        section is unknown or has no data.
        """
        handler = self.handler_for(section_name)
        if handler is None:
            logger.debug("Ignoring unrecognized section %r", section_name)
            return None

        section_data = data.get(section_name)
        if is_empty_slice(section_data):
            logger.debug("No data for section %r, skipping", section_name)
            return None

        if isinstance(handler, NeedsOwnSlice):
            if parent is None:
                raise ValueError(f"A parent node is required for section '{section_name}'")
            logger.debug("Filling section %r from template", section_name)
            self.filler.fill(parent, section_data, handler.template, issues)
            return parent

        logger.debug("Generating section %r", section_name)
        try:
            return handler.generator(data, self.code_systems, is_whole_document, parent)
        except Exception as e:
            raise SectionGeneratorError(section_name) from e


@lru_cache
def get_dispatcher(knowledge_dir: Path | None = None) -> SectionDispatcher:
    """Shared dispatcher for a knowledge directory (the configured one by default)."""
    return SectionDispatcher(
        load_code_systems(knowledge_dir),
        load_section_templates(knowledge_dir),
    )
