"""
Bespoke section generators.

Each generator has the signature
``generate(data, code_systems, is_whole_document, parent) -> Element``
where ``data`` is the whole record mapping.
"""

from . import demographics, payers, results, social_history, vitals

GENERATORS = {
    "demographics": demographics.generate,
    "payers": payers.generate,
    "results": results.generate,
    "social_history": social_history.generate,
    "vitals": vitals.generate,
}

__all__ = [
    "GENERATORS",
    "demographics",
    "payers",
    "results",
    "social_history",
    "vitals",
]
