"""
Runtime configuration for the C-CDA generator.

Values come from environment variables unless overridden explicitly.
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path

DEFAULT_KNOWLEDGE_DIR = Path(__file__).resolve().parent.parent / "knowledge"
DEFAULT_TITLE = "Community Health and Hospitals: Health Summary"
DEFAULT_EFFECTIVE_TIME = "TODO"

_TRUTHY = {"1", "true", "yes", "on"}


def _env_flag(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in _TRUTHY


class GeneratorConfig:
    """Configuration for document generation."""

    def __init__(
        self,
        *,
        effective_time: str | None = None,
        document_title: str | None = None,
        count_all_section_keys: bool | None = None,
        pretty_print: bool | None = None,
        knowledge_dir: Path | str | None = None,
    ):
        self.effective_time = effective_time or os.environ.get(
            "CCDA_EFFECTIVE_TIME", DEFAULT_EFFECTIVE_TIME
        )
        self.document_title = document_title or os.environ.get(
            "CCDA_DOCUMENT_TITLE", DEFAULT_TITLE
        )
        if count_all_section_keys is None:
            count_all_section_keys = _env_flag("CCDA_COUNT_ALL_SECTION_KEYS", False)
        self.count_all_section_keys = count_all_section_keys
        if pretty_print is None:
            pretty_print = _env_flag("CCDA_PRETTY_PRINT", True)
        self.pretty_print = pretty_print
        knowledge_dir = knowledge_dir or os.environ.get("CCDA_KNOWLEDGE_DIR")
        self.knowledge_dir = Path(knowledge_dir) if knowledge_dir else DEFAULT_KNOWLEDGE_DIR

    def validate(self) -> None:
        """Raise error if the knowledge directory cannot be used."""
        if not self.knowledge_dir.is_dir():
            raise ValueError(f"Knowledge directory not found: {self.knowledge_dir}")
        if not (self.knowledge_dir / "code_systems.yaml").is_file():
            raise ValueError(f"code_systems.yaml missing from {self.knowledge_dir}")


@lru_cache
def get_config() -> GeneratorConfig:
    """Get the process-wide configuration (read once from the environment)."""
    return GeneratorConfig()
