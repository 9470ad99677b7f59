"""
Section dispatch and document assembly.
"""

from .dispatcher import (
    NeedsOwnSlice,
    NeedsWholeRecord,
    SectionDispatcher,
    get_dispatcher,
)
from .document import (
    DocumentAssembler,
    convert_section,
    convert_whole_document,
    export_to_ccda,
)
from .filler import TemplateFiller
from .loader import load_code_systems, load_section_templates
from .markup import to_xml
from .registry import (
    SectionName,
    body_sections,
    index_of,
    is_section,
    name_of,
    ordered_names,
)

__all__ = [
    "NeedsOwnSlice",
    "NeedsWholeRecord",
    "SectionDispatcher",
    "get_dispatcher",
    "DocumentAssembler",
    "convert_section",
    "convert_whole_document",
    "export_to_ccda",
    "TemplateFiller",
    "load_code_systems",
    "load_section_templates",
    "to_xml",
    "SectionName",
    "body_sections",
    "index_of",
    "is_section",
    "name_of",
    "ordered_names",
]
