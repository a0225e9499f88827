# flowarchive/organize/docs.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple

from flowarchive.organize.redactor import find_placeholders
from flowarchive.utils.graph import execution_order, trigger_nodes


@dataclass
class WorkflowSummary:
    """Everything the companion .md file needs; produced from the redacted workflow."""
    name: str
    category: str
    description: str = ""
    nodes: List[Tuple[str, str]] = field(default_factory=list)      # (name, type)
    triggers: List[Tuple[str, str]] = field(default_factory=list)   # (name, type)
    placeholders: List[str] = field(default_factory=list)
    order: List[str] = field(default_factory=list)
    source: str = ""


def _pair(n: dict) -> Tuple[str, str]:
    return str(n.get("name") or ""), str(n.get("type") or "")


def summarize(workflow: Dict[str, Any], name: str, category: str, description: str = "", source: str = "") -> WorkflowSummary:
    nodes = [n for n in (workflow.get("nodes") or []) if isinstance(n, dict)]
    return WorkflowSummary(
        name=name,
        category=category,
        description=description,
        nodes=[_pair(n) for n in nodes],
        triggers=[_pair(n) for n in trigger_nodes(workflow)],
        placeholders=find_placeholders(workflow),
        order=execution_order(workflow),
        source=source,
    )


def _title(slug: str) -> str:
    return " ".join(w[:1].upper() + w[1:] for w in slug.replace("-", " ").split())


def _bullets(pairs: List[Tuple[str, str]], empty: str) -> str:
    if not pairs:
        return empty
    return "\n".join(f"- **{n}** ({t})" for n, t in pairs)


def render_markdown(s: WorkflowSummary) -> str:
    if s.placeholders:
        env = "\n".join(f"- `${{{p}}}`" for p in s.placeholders)
    else:
        env = "- None detected"
    flow = " -> ".join(s.order) if s.order else "No connections found"

    return f"""# {_title(s.name)}

## Overview
Category: **{s.category}**
Nodes: **{len(s.nodes)}**
Triggers: **{len(s.triggers)}**

## Description
{s.description}

## Nodes
{_bullets(s.nodes, "No nodes found")}

## Triggers
{_bullets(s.triggers, "No triggers found")}

## Flow
{flow}

## Configuration
This workflow requires the following environment variables:
{env}

Configure these variables in your `.env` file before importing.

## Usage
1. Import this workflow into your n8n instance
2. Configure the required credentials and environment variables
3. Activate the workflow

## Notes
- Workflow name: `{s.name}`
- Source file: `{s.source}`
- All known sensitive credentials have been replaced with environment variables

---
*Generated automatically during workflow categorization*
"""
