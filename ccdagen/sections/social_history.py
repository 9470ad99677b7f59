"""
Social history section generator.

Smoking status entries (LOINC 72166-2) use the Smoking Status observation
with a SNOMED-coded value; everything else is a generic Social History
Observation with a text value.
"""

from __future__ import annotations

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
    section_slice,
)

TEMPLATE_IDS = ["2.16.840.1.113883.10.20.22.2.17"]
SECTION_CODE = "29762-2"
SECTION_DISPLAY_NAME = "Social history"
SECTION_TITLE = "Social History"

SMOKING_STATUS = "2.16.840.1.113883.10.20.22.4.78"
SOCIAL_HISTORY_OBSERVATION = "2.16.840.1.113883.10.20.22.4.38"
SMOKING_STATUS_CODE = "72166-2"

SMOKING_STATUS_VALUES = {
    "current every day smoker": "449868002",
    "current some day smoker": "428041000124106",
    "former smoker": "8517006",
    "never smoker": "266919005",
    "smoker, current status unknown": "77176002",
    "unknown if ever smoked": "266927001",
    "heavy tobacco smoker": "428071000124103",
    "light tobacco smoker": "428061000124105",
}


def _is_smoking_status(observation: Mapping[str, Any]) -> bool:
    code = observation.get("code")
    if isinstance(code, Mapping):
        if code.get("code") == SMOKING_STATUS_CODE:
            return True
        return str(code.get("name") or "").lower() == "smoking status"
    return False


def _add_smoking_status(entry: ET.Element, observation: Mapping[str, Any]) -> None:
    obs = ET.SubElement(entry, "observation")
    obs.set("classCode", "OBS")
    obs.set("moodCode", "EVN")
    add_template_id(obs, SMOKING_STATUS)
    add_id(obs, observation.get("identifiers"))
    add_fixed_code(obs, SMOKING_STATUS_CODE, "Tobacco smoking status NHIS")
    add_status(obs)
    add_effective_time(obs, observation.get("date_time"))

    value = ET.SubElement(obs, "value")
    value.set(XSI_TYPE, "CD")
    text = str(observation.get("value") or "")
    snomed = SMOKING_STATUS_VALUES.get(text.lower())
    if snomed:
        value.set("code", snomed)
        value.set("displayName", text)
        value.set("codeSystem", SNOMED_OID)
        value.set("codeSystemName", "SNOMED CT")
    else:
        value.set("nullFlavor", "UNK")


def _add_social_observation(entry: ET.Element, observation: Mapping[str, Any],
                            code_systems: Mapping[str, str]) -> None:
    obs = ET.SubElement(entry, "observation")
    obs.set("classCode", "OBS")
    obs.set("moodCode", "EVN")
    add_template_id(obs, SOCIAL_HISTORY_OBSERVATION)
    add_id(obs, observation.get("identifiers"))
    add_code(obs, "code", observation.get("code"), code_systems)
    add_status(obs)
    add_effective_time(obs, observation.get("date_time"))

    if observation.get("value") is not None:
        value = ET.SubElement(obs, "value")
        value.set(XSI_TYPE, "ST")
        value.text = str(observation["value"])


def generate(data: Any, code_systems: Mapping[str, str], is_whole_document: bool,
             parent: ET.Element | None) -> ET.Element:
    """Generate the social history section from the ``social_history`` slice."""
    container = ensure_container(parent, is_whole_document)
    observations = [
        o for o in as_items(section_slice(data, "social_history")) if isinstance(o, Mapping)
    ]
    if not observations:
        return container

    section = add_section(container, TEMPLATE_IDS, SECTION_CODE, SECTION_DISPLAY_NAME,
                          SECTION_TITLE)
    text = ET.SubElement(section, "text")
    narrative = ET.SubElement(text, "list")
    for idx, observation in enumerate(observations):
        code = observation.get("code")
        label = code.get("name") if isinstance(code, Mapping) else None
        li = ET.SubElement(narrative, "item")
        li.set("ID", f"social_history{idx}")
        li.text = f"{label or 'Observation'}: {observation.get('value') or ''}".strip()

    for observation in observations:
        entry = add_entry(section)
        if _is_smoking_status(observation):
            _add_smoking_status(entry, observation)
        else:
            _add_social_observation(entry, observation, code_systems)

    return container
