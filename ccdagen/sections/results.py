"""
Results section generator.

One Result Organizer per result set, each holding its Result Observations.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any
from xml.etree import ElementTree as ET

from ccdagen.generator.markup import (
    XSI_TYPE,
    add_code,
    add_effective_time,
    add_entry,
    add_id,
    add_section,
    add_status,
    add_template_id,
    as_items,
    ensure_container,
    section_slice,
)

TEMPLATE_IDS = [
    "2.16.840.1.113883.10.20.22.2.3",
    "2.16.840.1.113883.10.20.22.2.3.1",
]
SECTION_CODE = "30954-2"
SECTION_DISPLAY_NAME = "Relevant diagnostic tests and/or laboratory data"
SECTION_TITLE = "Results"

RESULT_ORGANIZER = "2.16.840.1.113883.10.20.22.4.1"
RESULT_OBSERVATION = "2.16.840.1.113883.10.20.22.4.2"


def _is_number(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return True
    try:
        float(str(value))
    except ValueError:
        return False
    return True


def _add_value(obs: ET.Element, result: Mapping[str, Any]) -> None:
    """Numeric values become PQ, anything else ST."""
    value = result.get("value")
    val = ET.SubElement(obs, "value")
    if value is None or value == "":
        val.set(XSI_TYPE, "PQ")
        val.set("nullFlavor", "UNK")
    elif _is_number(value):
        val.set(XSI_TYPE, "PQ")
        val.set("value", str(value))
        val.set("unit", str(result.get("unit") or "1"))
    else:
        val.set(XSI_TYPE, "ST")
        val.text = str(value)


def _add_reference_range(obs: ET.Element, reference_range: Mapping[str, Any]) -> None:
    ref = ET.SubElement(obs, "referenceRange")
    obs_range = ET.SubElement(ref, "observationRange")

    if reference_range.get("range"):
        ET.SubElement(obs_range, "text").text = str(reference_range["range"])

    low = reference_range.get("low")
    high = reference_range.get("high")
    if low is not None or high is not None:
        val = ET.SubElement(obs_range, "value")
        val.set(XSI_TYPE, "IVL_PQ")
        unit = str(reference_range.get("unit") or "1")
        for tag, bound in (("low", low), ("high", high)):
            if bound is None:
                continue
            el = ET.SubElement(val, tag)
            el.set("value", str(bound))
            el.set("unit", unit)


def _add_observation(organizer: ET.Element, result: Mapping[str, Any],
                     code_systems: Mapping[str, str]) -> None:
    component = ET.SubElement(organizer, "component")
    obs = ET.SubElement(component, "observation")
    obs.set("classCode", "OBS")
    obs.set("moodCode", "EVN")

    add_template_id(obs, RESULT_OBSERVATION)
    add_id(obs, result.get("identifiers"))
    add_code(obs, "code", result.get("result"), code_systems)
    if result.get("text"):
        ET.SubElement(obs, "text").text = str(result["text"])
    add_status(obs, str(result.get("status") or "completed").lower())
    add_effective_time(obs, result.get("date_time"))
    _add_value(obs, result)

    for interpretation in as_items(result.get("interpretations")):
        if isinstance(interpretation, Mapping):
            add_code(obs, "interpretationCode", interpretation, code_systems)
            continue
        code = ET.SubElement(obs, "interpretationCode")
        code.set("displayName", str(interpretation))
        code.set("codeSystem", code_systems.get("HL7 ObservationInterpretation",
                                                "2.16.840.1.113883.5.83"))
        code.set("codeSystemName", "ObservationInterpretation")

    reference_range = result.get("reference_range")
    if isinstance(reference_range, Mapping):
        _add_reference_range(obs, reference_range)


def generate(data: Any, code_systems: Mapping[str, str], is_whole_document: bool,
             parent: ET.Element | None) -> ET.Element:
    """Generate the results section from the record's ``results`` slice."""
    container = ensure_container(parent, is_whole_document)
    panels = [p for p in as_items(section_slice(data, "results")) if isinstance(p, Mapping)]
    if not panels:
        return container

    section = add_section(container, TEMPLATE_IDS, SECTION_CODE, SECTION_DISPLAY_NAME,
                          SECTION_TITLE)

    # Narrative table
    text = ET.SubElement(section, "text")
    table = ET.SubElement(text, "table")
    thead = ET.SubElement(table, "thead")
    tr = ET.SubElement(thead, "tr")
    for header in ["Test", "Result", "Units", "Reference Range"]:
        ET.SubElement(tr, "th").text = header
    tbody = ET.SubElement(table, "tbody")
    for panel in panels:
        for result in as_items(panel.get("results")):
            if not isinstance(result, Mapping):
                continue
            tr = ET.SubElement(tbody, "tr")
            test = result.get("result")
            reference_range = result.get("reference_range")
            cells = [
                test.get("name") if isinstance(test, Mapping) else None,
                result.get("value"),
                result.get("unit"),
                reference_range.get("range") if isinstance(reference_range, Mapping) else None,
            ]
            for cell in cells:
                ET.SubElement(tr, "td").text = "" if cell is None else str(cell)

    for panel in panels:
        entry = add_entry(section)

        organizer = ET.SubElement(entry, "organizer")
        organizer.set("classCode", "BATTERY")
        organizer.set("moodCode", "EVN")
        add_template_id(organizer, RESULT_ORGANIZER)
        add_id(organizer, panel.get("identifiers"))
        add_code(organizer, "code", panel.get("result_set"), code_systems)
        add_status(organizer)

        for result in as_items(panel.get("results")):
            if isinstance(result, Mapping):
                _add_observation(organizer, result, code_systems)

    return container
