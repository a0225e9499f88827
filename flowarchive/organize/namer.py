# flowarchive/organize/namer.py

import re
from typing import Dict, Any, List, Optional

from flowarchive.organize.rules import STICKY_NOTE_TYPE

MAX_NAME_LEN = 50
UNNAMED = "unnamed-workflow"

_DISALLOWED = re.compile(r"[^a-z0-9\s-]")
_WHITESPACE = re.compile(r"\s+")
_HYPHENS = re.compile(r"-+")


def sanitize_name(name: str) -> str:
    """Lowercase, keep [a-z0-9 -], hyphenate whitespace, cap at 50 chars, trim hyphens."""
    s = name.lower()
    s = _DISALLOWED.sub("", s)
    s = _WHITESPACE.sub("-", s)
    s = _HYPHENS.sub("-", s)
    s = s[:MAX_NAME_LEN]
    return s.strip("-")


def _nodes(workflow: Dict[str, Any]) -> List[dict]:
    nodes = workflow.get("nodes") if isinstance(workflow, dict) else None
    if not isinstance(nodes, list):
        return []
    return [n for n in nodes if isinstance(n, dict)]


def _text(n: dict, field: str) -> str:
    v = n.get(field)
    return v if isinstance(v, str) else ""


def trigger_candidate(workflow: Dict[str, Any]) -> Optional[str]:
    for n in _nodes(workflow):
        ntype, nname = _text(n, "type"), _text(n, "name")
        if "trigger" in ntype.lower() or "trigger" in nname.lower():
            return nname or ntype
    return None


def sticky_note_candidate(workflow: Dict[str, Any], sticky_note_type: str = STICKY_NOTE_TYPE) -> Optional[str]:
    for n in _nodes(workflow):
        if n.get("type") != sticky_note_type:
            continue
        params = n.get("parameters") or {}
        content = params.get("content") if isinstance(params, dict) else None
        if not isinstance(content, str):
            content = ""
        # first line, with every '#' and whitespace char removed
        title = re.sub(r"[#\s]", "", content.split("\n")[0])
        return title or None
    return None


def derive_name(
    workflow: Dict[str, Any],
    fallback: str = "",
    sticky_note_type: str = STICKY_NOTE_TYPE,
) -> str:
    """
    Filesystem-safe slug for a workflow. First applicable source wins:
      1) first trigger-like node (name, else type)
      2) first line of the first sticky note
      3) the fallback id, else "unnamed-workflow"
    A candidate that sanitizes to "" falls through to the next source.
    """
    for candidate in (
        trigger_candidate(workflow),
        sticky_note_candidate(workflow, sticky_note_type),
        fallback,
    ):
        if candidate:
            name = sanitize_name(candidate)
            if name:
                return name
    return UNNAMED
