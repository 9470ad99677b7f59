"""
ccdagen - Blue Button JSON to C-CDA XML generator.
"""

from .errors import (
    CCDAGenerationError,
    InvalidRecordError,
    SectionGeneratorError,
    TemplateMismatch,
)
from .generator import (
    SectionName,
    convert_section,
    convert_whole_document,
    export_to_ccda,
    to_xml,
)
from .models import ConversionResult

__version__ = "0.1.0"

__all__ = [
    "CCDAGenerationError",
    "InvalidRecordError",
    "SectionGeneratorError",
    "TemplateMismatch",
    "SectionName",
    "convert_section",
    "convert_whole_document",
    "export_to_ccda",
    "to_xml",
    "ConversionResult",
]
