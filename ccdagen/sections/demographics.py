"""
Demographics (record target) generator.

Fills the ``patientRole`` of the document header: addresses, telecoms and
the ``patient`` element with name, gender, birth time and the coded
demographic attributes.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any
from xml.etree import ElementTree as ET

from ccdagen.generator.markup import (
    add_address,
    add_code,
    add_id,
    add_name,
    add_telecoms,
    as_items,
    ensure_container,
    format_timestamp,
    section_slice,
    set_coded,
)

ADMINISTRATIVE_GENDER_OID = "2.16.840.1.113883.5.1"
MARITAL_STATUS_OID = "2.16.840.1.113883.5.2"
RACE_ETHNICITY_OID = "2.16.840.1.113883.6.238"

GENDER_CODES = {
    "male": ("M", "Male"),
    "female": ("F", "Female"),
    "undifferentiated": ("UN", "Undifferentiated"),
}

MARITAL_STATUS_CODES = {
    "annulled": "A",
    "divorced": "D",
    "interlocutory": "I",
    "legally separated": "L",
    "married": "M",
    "polygamous": "P",
    "never married": "S",
    "domestic partner": "T",
    "widowed": "W",
}

RACE_CODES = {
    "american indian or alaska native": "1002-5",
    "asian": "2028-9",
    "black or african american": "2054-5",
    "native hawaiian or other pacific islander": "2076-8",
    "white": "2106-3",
    "other race": "2131-1",
}

ETHNICITY_CODES = {
    "hispanic or latino": "2135-2",
    "not hispanic or latino": "2186-5",
}


def _add_text_coded(parent: ET.Element, tag: str, value: Any, codes: dict[str, str],
                    code_system: str, code_system_name: str) -> ET.Element | None:
    """Add a coded element whose source value is a display string."""
    if not value:
        return None
    el = ET.SubElement(parent, tag)
    code = codes.get(str(value).lower())
    if code:
        el.set("code", code)
    el.set("displayName", str(value))
    el.set("codeSystem", code_system)
    el.set("codeSystemName", code_system_name)
    return el


def _add_guardian(patient: ET.Element, guardian: Mapping[str, Any],
                  code_systems: Mapping[str, str]) -> None:
    el = ET.SubElement(patient, "guardian")
    if guardian.get("relation"):
        relation = guardian["relation"]
        if isinstance(relation, Mapping):
            add_code(el, "code", relation, code_systems)
        else:
            code = ET.SubElement(el, "code")
            code.set("displayName", str(relation))
            code.set("codeSystem", code_systems.get("HL7 Role", "2.16.840.1.113883.5.111"))
            code.set("codeSystemName", "HL7 Role")

    for address in as_items(guardian.get("addresses")):
        add_address(el, address)
    add_telecoms(el, guardian.get("phone"), guardian.get("email"))

    guardian_person = ET.SubElement(el, "guardianPerson")
    for name in as_items(guardian.get("names")):
        add_name(guardian_person, name)


def _add_language(patient: ET.Element, language: Mapping[str, Any],
                  code_systems: Mapping[str, str]) -> None:
    comm = ET.SubElement(patient, "languageCommunication")
    ET.SubElement(comm, "languageCode").set("code", str(language.get("language") or "en"))

    if language.get("mode"):
        add_code(comm, "modeCode", language["mode"], code_systems)
    if language.get("proficiency"):
        add_code(comm, "proficiencyLevelCode", language["proficiency"], code_systems)
    if language.get("preferred") is not None:
        ET.SubElement(comm, "preferenceInd").set(
            "value", "true" if language["preferred"] else "false"
        )


def generate(data: Any, code_systems: Mapping[str, str], is_whole_document: bool,
             parent: ET.Element | None) -> ET.Element:
    """
    Generate the demographics subtree under ``patientRole``.

    In a whole document the header has already written the patientRole
    ``id`` block. Standalone calls create the patientRole (and its id block)
    themselves so both paths produce the same subtree.
    """
    demographics = section_slice(data, "demographics")
    if not isinstance(demographics, Mapping):
        demographics = {}

    standalone = parent is None
    patient_role = ensure_container(parent, is_whole_document, tag="patientRole")
    if standalone:
        add_id(patient_role, demographics.get("identifiers"))

    # Address and telecom
    for address in as_items(demographics.get("addresses")):
        add_address(patient_role, address)
    add_telecoms(patient_role, demographics.get("phone"), demographics.get("email"))

    patient = ET.SubElement(patient_role, "patient")

    # Name
    name = add_name(patient, demographics.get("name"), use="L")
    if name is None:
        ET.SubElement(patient, "name").set("nullFlavor", "UNK")

    # Gender
    gender = ET.SubElement(patient, "administrativeGenderCode")
    gender_code = GENDER_CODES.get(str(demographics.get("gender") or "").lower())
    if gender_code:
        gender.set("code", gender_code[0])
        gender.set("displayName", gender_code[1])
        gender.set("codeSystem", ADMINISTRATIVE_GENDER_OID)
        gender.set("codeSystemName", "HL7 AdministrativeGender")
    else:
        gender.set("nullFlavor", "UNK")

    # Birth time
    birth = ET.SubElement(patient, "birthTime")
    dob = demographics.get("dob")
    birth_time = format_timestamp(dob.get("point")) if isinstance(dob, Mapping) else None
    if birth_time:
        birth.set("value", birth_time)
    else:
        birth.set("nullFlavor", "UNK")

    _add_text_coded(patient, "maritalStatusCode", demographics.get("marital_status"),
                    MARITAL_STATUS_CODES, MARITAL_STATUS_OID, "HL7 Marital Status")

    religion = demographics.get("religion")
    if religion:
        el = ET.SubElement(patient, "religiousAffiliationCode")
        if isinstance(religion, Mapping):
            set_coded(el, religion, code_systems)
        else:
            el.set("displayName", str(religion))
            el.set("codeSystem", code_systems.get("HL7 Religious Affiliation",
                                                  "2.16.840.1.113883.5.1076"))
            el.set("codeSystemName", "HL7 Religious Affiliation")

    _add_text_coded(patient, "raceCode", demographics.get("race"),
                    RACE_CODES, RACE_ETHNICITY_OID, "Race & Ethnicity - CDC")
    _add_text_coded(patient, "ethnicGroupCode", demographics.get("ethnicity"),
                    ETHNICITY_CODES, RACE_ETHNICITY_OID, "Race & Ethnicity - CDC")

    for guardian in as_items(demographics.get("guardians")):
        if isinstance(guardian, Mapping):
            _add_guardian(patient, guardian, code_systems)

    birthplace = demographics.get("birthplace")
    if isinstance(birthplace, Mapping):
        place = ET.SubElement(ET.SubElement(patient, "birthplace"), "place")
        add_address(place, birthplace)

    for language in as_items(demographics.get("languages")):
        if isinstance(language, Mapping):
            _add_language(patient, language, code_systems)

    return patient_role
