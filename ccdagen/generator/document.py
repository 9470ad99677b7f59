"""
C-CDA document assembly.

Builds the fixed CCD header, the record target, and then every body section
in registry order under a single ``component/structuredBody``.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any
from xml.etree import ElementTree as ET

from ccdagen.config import GeneratorConfig, get_config
from ccdagen.errors import TemplateMismatch
from ccdagen.generator.dispatcher import NeedsOwnSlice, SectionDispatcher, get_dispatcher
from ccdagen.generator.markup import add_id, is_empty_slice, section_slice, to_xml
from ccdagen.generator.registry import SectionName, body_sections, is_section
from ccdagen.models import ConversionResult, RecordMeta, unwrap_record

logger = logging.getLogger(__name__)

# Declared on the root in this order
NAMESPACES = (
    ("xmlns:xsi", "http://www.w3.org/2001/XMLSchema-instance"),
    ("xmlns", "urn:hl7-org:v3"),
    ("xmlns:cda", "urn:hl7-org:v3"),
    ("xmlns:sdtc", "urn:hl7-org:sdtc"),
)

CDA_TYPE_ID = ("2.16.840.1.113883.1.3", "POCD_HD000040")
US_REALM_HEADER = "2.16.840.1.113883.10.20.22.1.1"
CCD_DOCUMENT = "2.16.840.1.113883.10.20.22.1.2"
SET_ID = ("sTT988", "2.16.840.1.113883.19.5.99999.19")


class DocumentAssembler:
    """Assembles whole C-CDA documents from Blue Button records."""

    def __init__(self, dispatcher: SectionDispatcher | None = None,
                 config: GeneratorConfig | None = None):
        self.config = config or get_config()
        self.dispatcher = dispatcher or get_dispatcher(self.config.knowledge_dir)

    def build_header(self, meta: RecordMeta | None,
                     data: Mapping[str, Any]) -> tuple[ET.Element, ET.Element]:
        """
        Build the ``ClinicalDocument`` root and header.

        Returns the root and the ``patientRole`` node.
        """
        root = ET.Element("ClinicalDocument")
        for name, uri in NAMESPACES:
            root.set(name, uri)

        ET.SubElement(root, "realmCode").set("code", "US")

        type_id = ET.SubElement(root, "typeId")
        type_id.set("root", CDA_TYPE_ID[0])
        type_id.set("extension", CDA_TYPE_ID[1])

        ET.SubElement(root, "templateId").set("root", US_REALM_HEADER)
        ET.SubElement(root, "templateId").set("root", CCD_DOCUMENT)

        # Document ID
        add_id(root, meta.identifiers if meta else None)

        # Document code (CCD)
        code = ET.SubElement(root, "code")
        code.set("codeSystem", "2.16.840.1.113883.6.1")
        code.set("codeSystemName", "LOINC")
        code.set("code", "34133-9")
        code.set("displayName", "Summarization of Episode Note")

        ET.SubElement(root, "title").text = self.config.document_title
        ET.SubElement(root, "effectiveTime").set("value", self.config.effective_time)

        conf = ET.SubElement(root, "confidentialityCode")
        conf.set("code", "N")
        conf.set("codeSystem", "2.16.840.1.113883.5.25")

        ET.SubElement(root, "languageCode").set("code", "en-US")

        set_id = ET.SubElement(root, "setId")
        set_id.set("extension", SET_ID[0])
        set_id.set("root", SET_ID[1])

        ET.SubElement(root, "versionNumber").set("value", "1")

        # Record target
        record_target = ET.SubElement(root, "recordTarget")
        patient_role = ET.SubElement(record_target, "patientRole")
        demographics = section_slice(data, "demographics")
        add_id(patient_role,
               demographics.get("identifiers") if isinstance(demographics, Mapping) else None)

        return root, patient_role

    def count_sections(self, data: Mapping[str, Any]) -> int:
        """Count the body sections present in the record."""
        if self.config.count_all_section_keys:
            return sum(1 for key in data if key != SectionName.DEMOGRAPHICS.value)
        return sum(
            1 for key, value in data.items()
            if key != SectionName.DEMOGRAPHICS.value and is_section(key)
            and not is_empty_slice(value)
        )

    def assemble(self, record: Any) -> ConversionResult:
        """Convert a whole record into a C-CDA document."""
        data, meta = unwrap_record(record)
        issues: list[TemplateMismatch] = []

        root, patient_role = self.build_header(meta, data)
        self.dispatcher.dispatch(SectionName.DEMOGRAPHICS.value, data, True, patient_role, issues)

        if self.count_sections(data) == 0:
            logger.info("Record has no body sections; returning header only")
            return ConversionResult(kind="header_only", tree=root, issues=issues)

        structured_body = ET.SubElement(ET.SubElement(root, "component"), "structuredBody")
        for section in body_sections():
            self.dispatcher.dispatch(section.value, data, True, structured_body, issues)

        body = to_xml(root, pretty=self.config.pretty_print)
        logger.info(
            "Generated C-CDA document with %d section(s), %d issue(s)",
            len(structured_body), len(issues),
        )
        return ConversionResult(kind="document", tree=root, body=body, issues=issues)


def convert_whole_document(record: Any, config: GeneratorConfig | None = None) -> ConversionResult:
    """
    Convert a whole Blue Button record to C-CDA.

    Returns a ``"document"`` result with the serialized XML, or a
    ``"header_only"`` result when the record has nothing beyond demographics.
    """
    return DocumentAssembler(config=config).assemble(record)


def convert_section(
    section_name: str,
    section_data: Any,
    parent: ET.Element | None = None,
    *,
    is_whole_document: bool = False,
    record: Any = None,
    issues: list[TemplateMismatch] | None = None,
    dispatcher: SectionDispatcher | None = None,
    config: GeneratorConfig | None = None,
) -> ET.Element | None:
    """
    Convert a single section.

    ``section_data`` is the section's own slice; ``None`` returns ``parent``
    unchanged. ``record`` may supply sibling sections for generators that
    cross-reference them. Without a ``parent`` a fresh container is created.
    Templates come from ``config``'s knowledge directory, as they do for
    whole documents. Returns the node holding the generated fragment.
    """
    if section_data is None:
        return parent

    if dispatcher is None:
        dispatcher = get_dispatcher((config or get_config()).knowledge_dir)
    handler = dispatcher.handler_for(section_name)
    if handler is None:
        logger.debug("Ignoring unrecognized section %r", section_name)
        return parent

    data: dict[str, Any] = {}
    if record is not None:
        data.update(unwrap_record(record)[0])
    data[section_name] = section_data

    if parent is None and isinstance(handler, NeedsOwnSlice):
        parent = ET.Element("structuredBody")

    result = dispatcher.dispatch(section_name, data, is_whole_document, parent, issues)
    return result if result is not None else parent


def export_to_ccda(record: Any, output_path: Path | None = None,
                   config: GeneratorConfig | None = None) -> str | None:
    """
    Export a record to C-CDA XML.

    Args:
        record: Blue Button JSON record
        output_path: Optional path to write the XML file

    Returns:
        C-CDA XML string, or None when the record has no body sections
    """
    result = convert_whole_document(record, config=config)
    if not result.is_document:
        return None

    if output_path:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(result.body)

    return result.body
