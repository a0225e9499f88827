# flowarchive/organize/rules.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Tuple

STICKY_NOTE_TYPE = "n8n-nodes-base.stickyNote"
DEFAULT_CATEGORY = "automation"


@dataclass(frozen=True)
class CategoryRule:
    """A named bucket scored by keyword frequency."""
    name: str
    keywords: Tuple[str, ...]
    description: str = ""


@dataclass(frozen=True)
class CredentialMapping:
    """A sensitive literal and the ${NAME} placeholder that replaces it."""
    literal: str
    placeholder: str

    @property
    def env_name(self) -> str:
        return self.placeholder[2:-1] if self.placeholder.startswith("${") else self.placeholder


# Enumeration order matters: ties go to the earlier category.
DEFAULT_CATEGORIES: Tuple[CategoryRule, ...] = (
    CategoryRule(
        "alerts",
        ("telegram", "notification", "alert", "monitor", "cron", "price", "threshold"),
        "Alert and notification workflows",
    ),
    CategoryRule(
        "analytics",
        ("openai", "analysis", "ai", "news", "data", "growth", "report"),
        "Data analysis and reporting workflows",
    ),
    CategoryRule(
        "automation",
        ("http", "api", "schedule", "trigger", "webhook", "integration"),
        "System automation and integration workflows",
    ),
    CategoryRule(
        "backup",
        ("backup", "github", "n8n", "workflow", "export", "sync"),
        "Backup and recovery workflows",
    ),
)

DEFAULT_CREDENTIAL_MAPPINGS: Tuple[CredentialMapping, ...] = (
    CredentialMapping("PKU0NRQDJV8J14GKYDGO", "${ALPACA_API_KEY_ID}"),
    CredentialMapping("38LahGNwNJa0yq6RFy8OxXv3VgS1gYGzxR3gYCiv", "${ALPACA_API_SECRET_KEY}"),
    CredentialMapping("8400587790", "${TELEGRAM_CHAT_ID}"),
    CredentialMapping("marcoippel", "${GITHUB_REPO_OWNER}"),
    CredentialMapping("datproto-backup-n8n", "${GITHUB_REPO_NAME}"),
)


def categories_from_mapping(raw: Mapping[str, Any]) -> Tuple[CategoryRule, ...]:
    """
    Build category rules from a config mapping shaped like:
      {"alerts": {"keywords": [...], "description": "..."}, ...}
    Mapping order is kept as the tie-break order.
    """
    rules = []
    for name, body in raw.items():
        if not isinstance(body, Mapping):
            raise ValueError(f"category '{name}' must be a mapping with 'keywords'")
        keywords = body.get("keywords") or []
        if isinstance(keywords, str) or not all(isinstance(k, str) and k for k in keywords):
            raise ValueError(f"category '{name}' keywords must be a list of non-empty strings")
        rules.append(CategoryRule(str(name), tuple(keywords), str(body.get("description", ""))))
    return tuple(rules)


def mappings_from_pairs(raw: Iterable[Any]) -> Tuple[CredentialMapping, ...]:
    """Accept either {literal: placeholder} or a list of [literal, placeholder] pairs."""
    items = raw.items() if isinstance(raw, Mapping) else raw
    out = []
    for item in items:
        literal, placeholder = item
        if not literal:
            raise ValueError("credential literal must be a non-empty string")
        placeholder = str(placeholder)
        if not placeholder.startswith("${"):
            placeholder = "${" + placeholder + "}"
        out.append(CredentialMapping(str(literal), placeholder))
    return tuple(out)

