"""
Vital signs section generator.

Vitals are grouped into one Vital Signs Organizer per distinct
``date_time``, in the order each time first appears in the record.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any
from xml.etree import ElementTree as ET

from ccdagen.generator.markup import (
    SNOMED_OID,
    XSI_TYPE,
    add_code,
    add_effective_time,
    add_entry,
    add_fixed_code,
    add_id,
    add_section,
    add_status,
    add_template_id,
    as_items,
    ensure_container,
    format_timestamp,
    section_slice,
)

TEMPLATE_IDS = [
    "2.16.840.1.113883.10.20.22.2.4",
    "2.16.840.1.113883.10.20.22.2.4.1",
]
SECTION_CODE = "8716-3"
SECTION_DISPLAY_NAME = "Vital signs"
SECTION_TITLE = "Vital Signs"

VITAL_SIGNS_ORGANIZER = "2.16.840.1.113883.10.20.22.4.26"
VITAL_SIGN_OBSERVATION = "2.16.840.1.113883.10.20.22.4.27"


def group_by_time(vitals: list[Mapping[str, Any]]) -> list[tuple[Any, list[Mapping[str, Any]]]]:
    """Group vitals sharing a ``date_time``, keeping first-appearance order."""
    groups: dict[str, tuple[Any, list[Mapping[str, Any]]]] = {}
    for vital in vitals:
        date_time = vital.get("date_time")
        key = json.dumps(date_time, sort_keys=True, default=str)
        if key not in groups:
            groups[key] = (date_time, [])
        groups[key][1].append(vital)
    return list(groups.values())


def _add_vital(organizer: ET.Element, vital: Mapping[str, Any],
               code_systems: Mapping[str, str]) -> None:
    component = ET.SubElement(organizer, "component")
    obs = ET.SubElement(component, "observation")
    obs.set("classCode", "OBS")
    obs.set("moodCode", "EVN")

    add_template_id(obs, VITAL_SIGN_OBSERVATION)
    add_id(obs, vital.get("identifiers"))
    add_code(obs, "code", vital.get("vital"), code_systems)
    add_status(obs, str(vital.get("status") or "completed").lower())
    add_effective_time(obs, vital.get("date_time"))

    val = ET.SubElement(obs, "value")
    val.set(XSI_TYPE, "PQ")
    if vital.get("value") is not None:
        val.set("value", str(vital["value"]))
        val.set("unit", str(vital.get("unit") or "1"))
    else:
        val.set("nullFlavor", "UNK")

    for interpretation in as_items(vital.get("interpretations")):
        if isinstance(interpretation, Mapping):
            add_code(obs, "interpretationCode", interpretation, code_systems)


def generate(data: Any, code_systems: Mapping[str, str], is_whole_document: bool,
             parent: ET.Element | None) -> ET.Element:
    """Generate the vital signs section from the record's ``vitals`` slice."""
    container = ensure_container(parent, is_whole_document)
    vitals = [v for v in as_items(section_slice(data, "vitals")) if isinstance(v, Mapping)]
    if not vitals:
        return container

    groups = group_by_time(vitals)
    section = add_section(container, TEMPLATE_IDS, SECTION_CODE, SECTION_DISPLAY_NAME,
                          SECTION_TITLE)

    # Narrative table
    text = ET.SubElement(section, "text")
    table = ET.SubElement(text, "table")
    thead = ET.SubElement(table, "thead")
    tr = ET.SubElement(thead, "tr")
    for header in ["Date", "Vital", "Value"]:
        ET.SubElement(tr, "th").text = header
    tbody = ET.SubElement(table, "tbody")
    for date_time, members in groups:
        when = ""
        if isinstance(date_time, Mapping):
            when = format_timestamp(date_time.get("point") or date_time.get("low")) or ""
        for vital in members:
            tr = ET.SubElement(tbody, "tr")
            name = vital.get("vital")
            ET.SubElement(tr, "td").text = when
            ET.SubElement(tr, "td").text = (
                str(name.get("name") or "") if isinstance(name, Mapping) else ""
            )
            value = vital.get("value")
            ET.SubElement(tr, "td").text = (
                f"{value} {vital.get('unit') or ''}".strip() if value is not None else ""
            )

    for date_time, members in groups:
        entry = add_entry(section)

        organizer = ET.SubElement(entry, "organizer")
        organizer.set("classCode", "CLUSTER")
        organizer.set("moodCode", "EVN")
        add_template_id(organizer, VITAL_SIGNS_ORGANIZER)
        add_id(organizer, None)
        add_fixed_code(organizer, "46680005", "Vital signs", SNOMED_OID, "SNOMED CT")
        add_status(organizer)
        add_effective_time(organizer, date_time)

        for vital in members:
            _add_vital(organizer, vital, code_systems)

    return container
