"""
Generic template filler.

Renders a declarative section template once per data item. Missing values
that the standard requires become ``nullFlavor`` placeholders; items whose
shape does not fit the template are reported and left out, without
affecting their siblings.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Callable
from xml.etree import ElementTree as ET

from ccdagen.errors import TemplateMismatch
from ccdagen.generator.markup import add_section, as_items, code_system_oid, format_timestamp
from ccdagen.models import AttributeValue, ElementRule, SectionTemplate

logger = logging.getLogger(__name__)


class _ShapeError(Exception):
    """An item value has the wrong type for the rule reading it."""


def _scalar(value: Any) -> str | None:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (str, int, float)):
        return str(value)
    return None


def _boolean(value: Any, code_systems: Mapping[str, str]) -> str | None:
    if value is None:
        return None
    return "true" if value else "false"


def _lower(value: Any, code_systems: Mapping[str, str]) -> str | None:
    text = _scalar(value)
    return text.lower() if text is not None else None


def _upper(value: Any, code_systems: Mapping[str, str]) -> str | None:
    text = _scalar(value)
    return text.upper() if text is not None else None


TRANSFORMS: dict[str, Callable[[Any, Mapping[str, str]], str | None]] = {
    "code_system": lambda value, code_systems: code_system_oid(value, code_systems),
    "timestamp": lambda value, code_systems: format_timestamp(value),
    "lower": _lower,
    "upper": _upper,
    "boolean": _boolean,
}


def _is_empty(value: Any) -> bool:
    return value is None or value == "" or value == [] or value == {}


def resolve_path(context: Any, path: str) -> Any:
    """
    Walk a dotted path through nested objects.

    Returns ``None`` when a key is absent. Raises ``_ShapeError`` when the
    walk reaches a value that is not an object.
    """
    if path == ".":
        return context

    current = context
    for part in path.split("."):
        if current is None:
            return None
        if not isinstance(current, Mapping):
            raise _ShapeError(
                f"expected an object for '{path}', got {type(current).__name__}"
            )
        current = current.get(part)
    return current


class TemplateFiller:
    """Fills section templates with record data."""

    def __init__(self, code_systems: Mapping[str, str]):
        self.code_systems = code_systems

    def fill(
        self,
        parent: ET.Element,
        data_slice: Any,
        template: SectionTemplate,
        issues: list[TemplateMismatch] | None = None,
    ) -> None:
        """
        Append the section for ``data_slice`` to ``parent``.

        An absent or empty slice emits nothing. Items are rendered in input
        order, entries in template order.
        """
        items = as_items(data_slice)
        if not items:
            return

        section = add_section(
            parent,
            template.template_ids,
            template.code,
            template.display_name,
            template.title,
        )
        text = ET.SubElement(section, "text")
        narrative = ET.SubElement(text, "list") if template.narrative else None

        for index, item in enumerate(items):
            holder = ET.Element("entries")
            try:
                if not isinstance(item, Mapping):
                    raise _ShapeError(f"expected an object, got {type(item).__name__}")
                for rule in template.entries:
                    self._render(holder, rule, item)
                label = (
                    _scalar(resolve_path(item, template.narrative))
                    if template.narrative else None
                )
            except _ShapeError as e:
                mismatch = TemplateMismatch(template.name, index, str(e))
                logger.warning("Skipping entry that does not fit template: %s", mismatch)
                if issues is not None:
                    issues.append(mismatch)
                continue

            section.extend(list(holder))
            if narrative is not None:
                li = ET.SubElement(narrative, "item")
                li.set("ID", f"{template.name}{index}")
                li.text = label or ""

    def _render(self, parent: ET.Element, rule: ElementRule, context: Any) -> None:
        if rule.exists_when and _is_empty(resolve_path(context, rule.exists_when)):
            return

        if rule.data_key is None:
            self._emit(parent, rule, context)
            return

        value = resolve_path(context, rule.data_key)
        if _is_empty(value):
            if rule.required:
                ET.SubElement(parent, rule.key).set("nullFlavor", rule.null_flavor)
            return

        for member in as_items(value):
            self._emit(parent, rule, member)

    def _emit(self, parent: ET.Element, rule: ElementRule, context: Any) -> None:
        el = ET.SubElement(parent, rule.key)
        for name, ref in rule.attributes.items():
            value = self._value(ref, context)
            if value is not None:
                el.set(name, value)

        if rule.text is not None:
            el.text = self._value(rule.text, context)

        for child in rule.content:
            self._render(el, child, context)

    def _value(self, ref: AttributeValue, context: Any) -> str | None:
        if isinstance(ref, str):
            return ref

        raw = resolve_path(context, ref.field)
        if ref.transform:
            value = TRANSFORMS[ref.transform](raw, self.code_systems)
        elif raw is None:
            value = None
        else:
            value = _scalar(raw)
            if value is None:
                raise _ShapeError(
                    f"expected a plain value for '{ref.field}', got {type(raw).__name__}"
                )
        return value if value is not None else ref.default
