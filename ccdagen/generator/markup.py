"""
Low-level C-CDA markup helpers.

Shared by the template filler, the document header and the bespoke section
generators. Everything here is deterministic: ids come from the record and
missing values become ``nullFlavor`` placeholders.
"""

from __future__ import annotations

import copy
import re
from collections.abc import Mapping
from typing import Any
from xml.dom import minidom
from xml.etree import ElementTree as ET

from ccdagen.models import Identifier, parse_identifiers

LOINC_OID = "2.16.840.1.113883.6.1"
SNOMED_OID = "2.16.840.1.113883.6.96"

XSI_TYPE = "xsi:type"

# Characters XML 1.0 cannot carry, even escaped
_ILLEGAL_XML_CHARS = re.compile(
    "[^\x09\x0a\x0d\x20-\ud7ff\ue000-\ufffd\U00010000-\U0010ffff]"
)

_TIMESTAMP_PATTERN = re.compile(
    r"^(\d{4})(?:-(\d{2}))?(?:-(\d{2}))?"
    r"(?:[T ](\d{2}):(\d{2})(?::(\d{2}))?)?"
)

# Number of HL7 TS digits kept per precision
_PRECISION_DIGITS = {
    "year": 4,
    "month": 6,
    "day": 8,
    "hour": 10,
    "minute": 12,
    "second": 14,
    "subsecond": 14,
}


def format_timestamp(point: Any) -> str | None:
    """
    Format a Blue Button date point as an HL7 TS value (YYYYMMDDHHMMSS).

    ``point`` is either ``{"date": ISO-8601, "precision": ...}`` or a bare
    ISO-8601 string. The result is truncated to the point's precision.
    """
    if isinstance(point, Mapping):
        raw = point.get("date")
        precision = point.get("precision")
    else:
        raw = point
        precision = None

    if not isinstance(raw, str):
        return None
    match = _TIMESTAMP_PATTERN.match(raw.strip())
    if not match:
        return None

    digits = "".join(part for part in match.groups() if part)
    if precision in _PRECISION_DIGITS:
        return digits[:_PRECISION_DIGITS[precision]]
    return digits


def code_system_oid(name: Any, code_systems: Mapping[str, str]) -> str | None:
    """Look up the OID for a code system name."""
    if not isinstance(name, str):
        return None
    return code_systems.get(name)


def add_id(parent: ET.Element, identifiers: Any = None) -> None:
    """
    Add an ``id`` block: one ``<id>`` per identifier, or a single
    ``nullFlavor="NI"`` placeholder when there are none.
    """
    parsed: list[Identifier] = parse_identifiers(identifiers)
    if not parsed:
        ET.SubElement(parent, "id").set("nullFlavor", "NI")
        return

    for ident in parsed:
        el = ET.SubElement(parent, "id")
        if ident.identifier:
            el.set("root", ident.identifier)
        if ident.extension:
            el.set("extension", ident.extension)
        if not ident.identifier and not ident.extension:
            el.set("nullFlavor", "NI")


def set_coded(el: ET.Element, coded: Any, code_systems: Mapping[str, str]) -> ET.Element:
    """Set code/displayName/codeSystem/codeSystemName from a coded value."""
    if not isinstance(coded, Mapping) or not (coded.get("code") or coded.get("name")):
        el.set("nullFlavor", "UNK")
        return el

    if coded.get("code"):
        el.set("code", str(coded["code"]))
    if coded.get("name"):
        el.set("displayName", str(coded["name"]))
    oid = code_system_oid(coded.get("code_system_name"), code_systems)
    if oid:
        el.set("codeSystem", oid)
    if coded.get("code_system_name"):
        el.set("codeSystemName", str(coded["code_system_name"]))
    return el


def add_code(parent: ET.Element, tag: str, coded: Any,
             code_systems: Mapping[str, str]) -> ET.Element:
    """Add a coded element (``code``, ``value``, ``routeCode``...)."""
    return set_coded(ET.SubElement(parent, tag), coded, code_systems)


def add_fixed_code(parent: ET.Element, code: str, display_name: str,
                   code_system: str = LOINC_OID,
                   code_system_name: str = "LOINC") -> ET.Element:
    """Add a ``code`` element with fixed values."""
    el = ET.SubElement(parent, "code")
    el.set("code", code)
    el.set("codeSystem", code_system)
    el.set("codeSystemName", code_system_name)
    el.set("displayName", display_name)
    return el


def add_template_id(parent: ET.Element, root: str) -> ET.Element:
    el = ET.SubElement(parent, "templateId")
    el.set("root", root)
    return el


def add_status(parent: ET.Element, code: str = "completed") -> ET.Element:
    el = ET.SubElement(parent, "statusCode")
    el.set("code", code)
    return el


def add_effective_time(parent: ET.Element, date_time: Any,
                       tag: str = "effectiveTime") -> ET.Element:
    """
    Add an effective time from a Blue Button ``date_time`` object.

    A ``point`` becomes ``value``; ``low``/``high`` become child elements.
    Nothing usable means ``nullFlavor="UNK"``.
    """
    el = ET.SubElement(parent, tag)
    if not isinstance(date_time, Mapping):
        el.set("nullFlavor", "UNK")
        return el

    point = format_timestamp(date_time.get("point"))
    if point:
        el.set("value", point)
        return el

    low = format_timestamp(date_time.get("low"))
    high = format_timestamp(date_time.get("high"))
    if not low and not high:
        el.set("nullFlavor", "UNK")
        return el
    if low:
        ET.SubElement(el, "low").set("value", low)
    else:
        ET.SubElement(el, "low").set("nullFlavor", "UNK")
    if high:
        ET.SubElement(el, "high").set("value", high)
    return el


def add_address(parent: ET.Element, address: Any) -> ET.Element | None:
    """Add an ``addr`` element from a Blue Button address object."""
    if not isinstance(address, Mapping):
        return None

    addr = ET.SubElement(parent, "addr")
    use = address.get("use")
    if use:
        addr.set("use", _ADDRESS_USE.get(use, use))

    for line in address.get("street_lines") or []:
        ET.SubElement(addr, "streetAddressLine").text = str(line)
    for key, tag in (("city", "city"), ("state", "state"),
                     ("zip", "postalCode"), ("country", "country")):
        if address.get(key):
            ET.SubElement(addr, tag).text = str(address[key])
    return addr


_ADDRESS_USE = {
    "primary home": "HP",
    "home address": "H",
    "work place": "WP",
    "temporary": "TMP",
}


_TELECOM_USE = {
    "primary home": "HP",
    "home": "H",
    "work place": "WP",
    "primary mobile": "MC",
    "mobile contact": "MC",
}


def add_telecoms(parent: ET.Element, phones: Any = None, emails: Any = None) -> None:
    """Add ``telecom`` elements for phone numbers and email addresses."""
    for phone in as_items(phones):
        if not isinstance(phone, Mapping) or not phone.get("number"):
            continue
        telecom = ET.SubElement(parent, "telecom")
        telecom.set("value", f"tel:{phone['number']}")
        if phone.get("type"):
            telecom.set("use", _TELECOM_USE.get(phone["type"], phone["type"]))

    for email in as_items(emails):
        if not isinstance(email, Mapping) or not email.get("address"):
            continue
        telecom = ET.SubElement(parent, "telecom")
        telecom.set("value", f"mailto:{email['address']}")
        if email.get("type"):
            telecom.set("use", _TELECOM_USE.get(email["type"], email["type"]))


def add_name(parent: ET.Element, name: Any, use: str | None = None) -> ET.Element | None:
    """Add a person ``name`` element (prefix, given names, family, suffix)."""
    if not isinstance(name, Mapping):
        return None

    name_el = ET.SubElement(parent, "name")
    if use:
        name_el.set("use", use)
    if name.get("prefix"):
        ET.SubElement(name_el, "prefix").text = str(name["prefix"])
    if name.get("first"):
        ET.SubElement(name_el, "given").text = str(name["first"])
    for middle in as_items(name.get("middle")):
        ET.SubElement(name_el, "given").text = str(middle)
    if name.get("last"):
        ET.SubElement(name_el, "family").text = str(name["last"])
    if name.get("suffix"):
        ET.SubElement(name_el, "suffix").text = str(name["suffix"])
    return name_el


def add_section(parent: ET.Element, template_ids: list[str], code: str,
                display_name: str, title: str) -> ET.Element:
    """Add a ``component/section`` shell with template ids, code and title."""
    component = ET.SubElement(parent, "component")
    section = ET.SubElement(component, "section")

    for root in template_ids:
        add_template_id(section, root)
    add_fixed_code(section, code, display_name)
    ET.SubElement(section, "title").text = title
    return section


def add_entry(section: ET.Element) -> ET.Element:
    entry = ET.SubElement(section, "entry")
    entry.set("typeCode", "DRIV")
    return entry


def ensure_container(parent: ET.Element | None, is_whole_document: bool,
                     tag: str = "structuredBody") -> ET.Element:
    """
    Return the node a section generator appends to.

    Standalone (single-section) calls may omit the parent, in which case a
    fresh container is created.
    """
    if parent is not None:
        return parent
    if is_whole_document:
        raise ValueError("A parent node is required when generating a whole document")
    return ET.Element(tag)


def section_slice(data: Any, name: str) -> Any:
    """Get one section's data from a record mapping."""
    if isinstance(data, Mapping):
        return data.get(name)
    return None


def is_empty_slice(value: Any) -> bool:
    """An absent section, or one holding an empty list or object."""
    return value is None or value == [] or value == {}


def as_items(value: Any) -> list:
    """Treat a single object slice as a one-item sequence; empty slices have no items."""
    if is_empty_slice(value):
        return []
    if isinstance(value, list):
        return value
    return [value]


def xml_safe(value: str) -> str:
    """Drop characters that cannot appear in an XML 1.0 document."""
    return _ILLEGAL_XML_CHARS.sub("", value)


def clean_tree(element: ET.Element) -> ET.Element:
    """Copy of ``element`` with every text, tail and attribute value made XML-safe."""
    element = copy.deepcopy(element)
    for el in element.iter():
        if el.text:
            el.text = xml_safe(el.text)
        if el.tail:
            el.tail = xml_safe(el.tail)
        for name, value in el.attrib.items():
            el.set(name, xml_safe(value))
    return element


def to_xml(element: ET.Element, pretty: bool = True) -> str:
    """
    Serialize an element to text.

    A ``ClinicalDocument`` root gets an XML declaration; fragments do not.
    Fragments may use the ``xsi`` prefix without declaring it, so they are
    indented in place rather than reparsed. The element itself is left
    untouched.
    """
    element = clean_tree(element)
    is_document = element.tag == "ClinicalDocument"
    if pretty and is_document:
        dom = minidom.parseString(ET.tostring(element, encoding="unicode"))
        return dom.toprettyxml(indent="  ")

    if pretty:
        ET.indent(element, space="  ")
    xml_str = ET.tostring(element, encoding="unicode")
    if is_document:
        return '<?xml version="1.0" ?>\n' + xml_str
    return xml_str
