# utils/config.py
"""
Run configuration: category rules, credential mappings and the schema contract.

Defaults live in code; a YAML or JSON file can override any of them:

    default_category: automation
    sticky_note_type: n8n-nodes-base.stickyNote
    categories:
      alerts:
        keywords: [telegram, alert]
        description: Alert workflows
    credentials:
      "8400587790": TELEGRAM_CHAT_ID
    schema: ./workflow-schema.json     # relative to the config file
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Tuple

from flowarchive.organize.rules import (
    CategoryRule,
    CredentialMapping,
    DEFAULT_CATEGORIES,
    DEFAULT_CATEGORY,
    DEFAULT_CREDENTIAL_MAPPINGS,
    STICKY_NOTE_TYPE,
    categories_from_mapping,
    mappings_from_pairs,
)
from flowarchive.structural.schema import WORKFLOW_SCHEMA, load_schema
from flowarchive.utils.io import PathLike, load_any, to_path

KNOWN_KEYS = ("categories", "credentials", "default_category", "sticky_note_type", "schema")


@dataclass(frozen=True)
class ArchiveConfig:
    categories: Tuple[CategoryRule, ...] = DEFAULT_CATEGORIES
    credential_mappings: Tuple[CredentialMapping, ...] = DEFAULT_CREDENTIAL_MAPPINGS
    default_category: str = DEFAULT_CATEGORY
    sticky_note_type: str = STICKY_NOTE_TYPE
    schema: Dict[str, Any] = field(default_factory=lambda: WORKFLOW_SCHEMA)

    @property
    def category_names(self) -> Tuple[str, ...]:
        return tuple(r.name for r in self.categories)


def default_config() -> ArchiveConfig:
    return ArchiveConfig()


def load_config(path: PathLike) -> ArchiveConfig:
    """Overlay a YAML/JSON config file on top of the defaults."""
    p = to_path(path)
    raw = load_any(p) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"{p}: config must be a mapping")
    unknown = sorted(set(raw) - set(KNOWN_KEYS))
    if unknown:
        raise ValueError(f"{p}: unknown config keys: {', '.join(unknown)}")

    cfg = default_config()
    if "categories" in raw:
        cfg = replace(cfg, categories=categories_from_mapping(raw["categories"]))
    if "credentials" in raw:
        cfg = replace(cfg, credential_mappings=mappings_from_pairs(raw["credentials"]))
    if "default_category" in raw:
        cfg = replace(cfg, default_category=str(raw["default_category"]))
    if "sticky_note_type" in raw:
        cfg = replace(cfg, sticky_note_type=str(raw["sticky_note_type"]))
    if "schema" in raw:
        schema_path = to_path(raw["schema"])
        if not schema_path.is_absolute():
            schema_path = p.parent / schema_path
        cfg = replace(cfg, schema=load_schema(schema_path))

    if cfg.default_category not in cfg.category_names:
        raise ValueError(f"{p}: default_category '{cfg.default_category}' is not a configured category")
    return cfg
