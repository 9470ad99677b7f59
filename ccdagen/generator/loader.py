"""
Loading of the bundled knowledge files (code systems and section templates).

Both are read once per knowledge directory and cached for the life of the
process. The returned mappings are read-only.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Mapping

import yaml

from ccdagen.config import get_config
from ccdagen.models import SectionTemplate

logger = logging.getLogger(__name__)


def _resolve_dir(knowledge_dir: Path | str | None) -> Path:
    if knowledge_dir is None:
        return get_config().knowledge_dir
    return Path(knowledge_dir)


@lru_cache
def _load_code_systems(knowledge_dir: Path) -> Mapping[str, str]:
    path = knowledge_dir / "code_systems.yaml"
    with open(path, "r") as f:
        raw = yaml.safe_load(f) or {}

    code_systems = {str(name): str(oid) for name, oid in raw.items()}
    logger.debug("Loaded %d code systems from %s", len(code_systems), path)
    return MappingProxyType(code_systems)


@lru_cache
def _load_section_templates(knowledge_dir: Path) -> Mapping[str, SectionTemplate]:
    templates = {}
    for path in sorted((knowledge_dir / "sections").glob("*.yaml")):
        with open(path, "r") as f:
            template = SectionTemplate.model_validate(yaml.safe_load(f))
        templates[template.name] = template

    logger.debug("Loaded %d section templates from %s", len(templates), knowledge_dir)
    return MappingProxyType(templates)


def load_code_systems(knowledge_dir: Path | str | None = None) -> Mapping[str, str]:
    """Get the code system name -> OID mapping."""
    return _load_code_systems(_resolve_dir(knowledge_dir))


def load_section_templates(
    knowledge_dir: Path | str | None = None,
) -> Mapping[str, SectionTemplate]:
    """Get the section templates keyed by section name."""
    return _load_section_templates(_resolve_dir(knowledge_dir))
