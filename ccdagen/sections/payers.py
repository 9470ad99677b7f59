"""
Payers section generator.

Each payer entry becomes a Coverage Activity wrapping one Policy Activity.
The covered party falls back to the record's demographics for its id, name
and birth time, which is why this generator receives the whole record.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any
from xml.etree import ElementTree as ET

from ccdagen.generator.markup import (
    add_address,
    add_code,
    add_effective_time,
    add_entry,
    add_fixed_code,
    add_id,
    add_name,
    add_section,
    add_status,
    add_telecoms,
    add_template_id,
    as_items,
    ensure_container,
    format_timestamp,
    section_slice,
)

TEMPLATE_IDS = ["2.16.840.1.113883.10.20.22.2.18"]
SECTION_CODE = "48768-6"
SECTION_DISPLAY_NAME = "Payment sources"
SECTION_TITLE = "Insurance Providers"

COVERAGE_ACTIVITY = "2.16.840.1.113883.10.20.22.4.60"
POLICY_ACTIVITY = "2.16.840.1.113883.10.20.22.4.61"
PAYER_PERFORMER = "2.16.840.1.113883.10.20.22.4.87"
GUARANTOR_PERFORMER = "2.16.840.1.113883.10.20.22.4.88"
COVERED_PARTY = "2.16.840.1.113883.10.20.22.4.89"
POLICY_HOLDER = "2.16.840.1.113883.10.20.22.4.90"
AUTHORIZATION_ACTIVITY = "2.16.840.1.113883.10.20.1.19"

ROLE_CLASS_OID = "2.16.840.1.113883.5.110"


def _mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def _add_organization(parent: ET.Element, tag: str, organization: Any) -> None:
    for org in as_items(organization):
        if not isinstance(org, Mapping):
            continue
        org_el = ET.SubElement(parent, tag)
        if org.get("identifiers"):
            add_id(org_el, org["identifiers"])
        for name in as_items(org.get("name")):
            ET.SubElement(org_el, "name").text = str(name)
        add_telecoms(org_el, org.get("phone"), org.get("email"))
        for address in as_items(org.get("address")):
            add_address(org_el, address)


def _add_payer_performer(policy_act: ET.Element, insurance: Mapping[str, Any],
                         code_systems: Mapping[str, str]) -> None:
    performer = ET.SubElement(policy_act, "performer")
    performer.set("typeCode", "PRF")
    add_template_id(performer, PAYER_PERFORMER)

    payer = _mapping(insurance.get("performer"))
    entity = ET.SubElement(performer, "assignedEntity")
    add_id(entity, payer.get("identifiers"))
    if insurance.get("code"):
        add_code(entity, "code", insurance["code"], code_systems)
    for address in as_items(payer.get("address")):
        add_address(entity, address)
    add_telecoms(entity, payer.get("phone"), payer.get("email"))
    _add_organization(entity, "representedOrganization", payer.get("organization"))


def _add_guarantor(policy_act: ET.Element, guarantor: Mapping[str, Any],
                   code_systems: Mapping[str, str]) -> None:
    performer = ET.SubElement(policy_act, "performer")
    performer.set("typeCode", "PRF")
    add_template_id(performer, GUARANTOR_PERFORMER)

    if guarantor.get("date_time"):
        add_effective_time(performer, guarantor["date_time"], tag="time")

    entity = ET.SubElement(performer, "assignedEntity")
    add_id(entity, guarantor.get("identifiers"))
    if isinstance(guarantor.get("code"), Mapping):
        add_code(entity, "code", guarantor["code"], code_systems)
    else:
        code = ET.SubElement(entity, "code")
        code.set("code", "GUAR")
        code.set("codeSystem", ROLE_CLASS_OID)
        code.set("codeSystemName", "HL7 RoleClass")
    for address in as_items(guarantor.get("address")):
        add_address(entity, address)
    add_telecoms(entity, guarantor.get("phone"), guarantor.get("email"))

    names = as_items(guarantor.get("name"))
    if names:
        person = ET.SubElement(entity, "assignedPerson")
        for name in names:
            add_name(person, name)
    _add_organization(entity, "representedOrganization", guarantor.get("organization"))


def _add_covered_party(policy_act: ET.Element, participant: Mapping[str, Any],
                       demographics: Mapping[str, Any],
                       code_systems: Mapping[str, str]) -> None:
    """Covered party, defaulting to the record's patient."""
    part = ET.SubElement(policy_act, "participant")
    part.set("typeCode", "COV")
    add_template_id(part, COVERED_PARTY)

    if participant.get("date_time"):
        add_effective_time(part, participant["date_time"], tag="time")

    performer = _mapping(participant.get("performer"))
    role = ET.SubElement(part, "participantRole")
    add_id(role, performer.get("identifiers") or demographics.get("identifiers"))
    if participant.get("code"):
        add_code(role, "code", participant["code"], code_systems)
    for address in as_items(performer.get("address") or demographics.get("addresses")):
        add_address(role, address)

    names = as_items(participant.get("name")) or as_items(demographics.get("name"))
    dob = demographics.get("dob")
    birth_time = format_timestamp(dob.get("point")) if isinstance(dob, Mapping) else None
    if names or birth_time:
        entity = ET.SubElement(role, "playingEntity")
        for name in names:
            add_name(entity, name)
        if birth_time:
            ET.SubElement(entity, "sdtc:birthTime").set("value", birth_time)


def _add_policy_holder(policy_act: ET.Element, policy_holder: Mapping[str, Any]) -> None:
    holder = _mapping(policy_holder.get("performer"))
    part = ET.SubElement(policy_act, "participant")
    part.set("typeCode", "HLD")
    add_template_id(part, POLICY_HOLDER)

    role = ET.SubElement(part, "participantRole")
    add_id(role, holder.get("identifiers"))
    for address in as_items(holder.get("address")):
        add_address(role, address)


def _add_authorization(policy_act: ET.Element, authorization: Mapping[str, Any],
                       code_systems: Mapping[str, str]) -> None:
    rel = ET.SubElement(policy_act, "entryRelationship")
    rel.set("typeCode", "REFR")

    act = ET.SubElement(rel, "act")
    act.set("classCode", "ACT")
    act.set("moodCode", "EVN")
    add_template_id(act, AUTHORIZATION_ACTIVITY)
    add_id(act, authorization.get("identifiers"))

    for plan in as_items(authorization.get("procedures")):
        plan_rel = ET.SubElement(act, "entryRelationship")
        plan_rel.set("typeCode", "SUBJ")
        procedure = ET.SubElement(plan_rel, "procedure")
        procedure.set("classCode", "PROC")
        procedure.set("moodCode", "PRMS")
        add_code(procedure, "code", plan.get("code") if isinstance(plan, Mapping) else None,
                 code_systems)


def _add_payer_entry(section: ET.Element, payer: Mapping[str, Any],
                     demographics: Mapping[str, Any],
                     code_systems: Mapping[str, str]) -> None:
    entry = add_entry(section)

    # Coverage Activity
    coverage = ET.SubElement(entry, "act")
    coverage.set("classCode", "ACT")
    coverage.set("moodCode", "EVN")
    add_template_id(coverage, COVERAGE_ACTIVITY)
    add_id(coverage, payer.get("identifiers"))
    add_fixed_code(coverage, SECTION_CODE, SECTION_DISPLAY_NAME)
    add_status(coverage)

    rel = ET.SubElement(coverage, "entryRelationship")
    rel.set("typeCode", "COMP")
    if payer.get("sequence_number") is not None:
        ET.SubElement(rel, "sequenceNumber").set("value", str(payer["sequence_number"]))

    # Policy Activity
    policy = _mapping(payer.get("policy"))
    policy_act = ET.SubElement(rel, "act")
    policy_act.set("classCode", "ACT")
    policy_act.set("moodCode", "EVN")
    add_template_id(policy_act, POLICY_ACTIVITY)
    add_id(policy_act, policy.get("identifiers"))
    add_code(policy_act, "code", policy.get("code"), code_systems)
    add_status(policy_act)

    _add_payer_performer(policy_act, _mapping(policy.get("insurance")), code_systems)

    guarantor = payer.get("guarantor")
    if isinstance(guarantor, Mapping):
        _add_guarantor(policy_act, guarantor, code_systems)

    _add_covered_party(policy_act, _mapping(payer.get("participant")), demographics,
                       code_systems)

    policy_holder = payer.get("policy_holder")
    if isinstance(policy_holder, Mapping):
        _add_policy_holder(policy_act, policy_holder)

    authorization = payer.get("authorization")
    if isinstance(authorization, Mapping):
        _add_authorization(policy_act, authorization, code_systems)


def generate(data: Any, code_systems: Mapping[str, str], is_whole_document: bool,
             parent: ET.Element | None) -> ET.Element:
    """Generate the payers section from the record's ``payers`` slice."""
    container = ensure_container(parent, is_whole_document)
    payers = [p for p in as_items(section_slice(data, "payers")) if isinstance(p, Mapping)]
    if not payers:
        return container

    demographics = _mapping(section_slice(data, "demographics"))

    section = add_section(container, TEMPLATE_IDS, SECTION_CODE, SECTION_DISPLAY_NAME,
                          SECTION_TITLE)
    text = ET.SubElement(section, "text")
    narrative = ET.SubElement(text, "list")
    for idx, payer in enumerate(payers):
        li = ET.SubElement(narrative, "item")
        li.set("ID", f"payers{idx}")
        insurance = _mapping(_mapping(payer.get("policy")).get("insurance"))
        orgs = as_items(_mapping(insurance.get("performer")).get("organization"))
        org_names = [
            str(name)
            for org in orgs if isinstance(org, Mapping)
            for name in as_items(org.get("name"))
        ]
        li.text = ", ".join(org_names) or "Unknown payer"

    for payer in payers:
        _add_payer_entry(section, payer, demographics, code_systems)

    return container
