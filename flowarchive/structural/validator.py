# flowarchive/structural/validator.py

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from flowarchive.organize.rules import STICKY_NOTE_TYPE
from flowarchive.structural.schema import WORKFLOW_SCHEMA, check_schema
from flowarchive.utils.io import PathLike, read_json, to_path
from flowarchive.utils.logger import get_logger

logger = get_logger(__name__)

WARN_CREDENTIALS = "Potential hardcoded credentials detected"
WARN_NO_ERROR_HANDLING = "No error handling configured"
WARN_NO_DOCUMENTATION = "No documentation nodes found"

# (label, pattern, group holding the suspicious value)
SUSPICIOUS_PATTERNS = (
    ("api-key", re.compile(r"[A-Za-z0-9]{32,}"), 0),
    ("email", re.compile(r"@[\w.-]+\.[A-Za-z]{2,}"), 0),
    ("password", re.compile(r"password[\"\s]*:[\"\s]*([^\"]+)", re.IGNORECASE), 1),
)
_PLACEHOLDER_SPAN = re.compile(r"\$\{[^}]*\}")


@dataclass(frozen=True)
class StructuralViolation:
    path: str
    message: str

    def __str__(self) -> str:
        return f"{self.path or '/'}: {self.message}"


@dataclass
class ValidationOutcome:
    valid: bool
    errors: List[StructuralViolation] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    source: Optional[Path] = None
    malformed: bool = False


@dataclass
class ValidationSummary:
    outcomes: Dict[Path, ValidationOutcome] = field(default_factory=dict)

    @property
    def valid_count(self) -> int:
        return sum(1 for o in self.outcomes.values() if o.valid)

    @property
    def invalid_count(self) -> int:
        return sum(1 for o in self.outcomes.values() if not o.valid)

    @property
    def warnings(self) -> Dict[Path, List[str]]:
        """Only files that produced at least one warning."""
        return {p: list(o.warnings) for p, o in self.outcomes.items() if o.warnings}

    @property
    def passed(self) -> bool:
        # warnings never fail a run
        return self.invalid_count == 0


def _pointer(parts: Iterable[Any]) -> str:
    return "".join(f"/{p}" for p in parts)


def _is_wrapped(span, placeholders) -> bool:
    start, end = span
    return any(ps <= start and end <= pe for ps, pe in placeholders)


def find_suspicious(text: str) -> List[str]:
    """Labels of the credential pattern families with at least one unwrapped hit in `text`."""
    placeholders = [m.span() for m in _PLACEHOLDER_SPAN.finditer(text)]
    hits = []
    for label, pattern, group in SUSPICIOUS_PATTERNS:
        for m in pattern.finditer(text):
            if not _is_wrapped(m.span(group), placeholders):
                hits.append(label)
                break
    return hits


class WorkflowValidator:
    """
    Two-phase workflow validation:
      1) structural: JSON Schema conformance, every violation reported with its path;
      2) quality: heuristic warnings, only computed for structurally valid documents.
    """

    def __init__(self, schema: Optional[Dict[str, Any]] = None, sticky_note_type: str = STICKY_NOTE_TYPE):
        self.schema = schema if schema is not None else WORKFLOW_SCHEMA
        # draft picked from the schema's own $schema, draft-07 otherwise
        self._validator = check_schema(self.schema)(self.schema)
        self.sticky_note_type = sticky_note_type

    def check_structure(self, workflow: Any) -> List[StructuralViolation]:
        errors = sorted(self._validator.iter_errors(workflow), key=lambda e: list(map(str, e.absolute_path)))
        return [StructuralViolation(_pointer(e.absolute_path), e.message) for e in errors]

    def check_quality(self, workflow: Dict[str, Any]) -> List[str]:
        warnings: List[str] = []

        text = json.dumps(workflow, ensure_ascii=False, separators=(",", ":"))
        for label in find_suspicious(text):
            warnings.append(f"{WARN_CREDENTIALS} ({label})")

        raw_nodes = workflow.get("nodes") if isinstance(workflow, dict) else None
        if not isinstance(raw_nodes, list):
            raw_nodes = []
        nodes = [n for n in raw_nodes if isinstance(n, dict)]
        if not any(n.get("continueOnFail") or n.get("onError") for n in nodes):
            warnings.append(WARN_NO_ERROR_HANDLING)

        if not any(n.get("type") == self.sticky_note_type for n in nodes):
            warnings.append(WARN_NO_DOCUMENTATION)

        return warnings

    def validate(self, workflow: Any, source: Optional[Path] = None) -> ValidationOutcome:
        errors = self.check_structure(workflow)
        if errors:
            return ValidationOutcome(valid=False, errors=errors, source=source)
        return ValidationOutcome(valid=True, warnings=self.check_quality(workflow), source=source)

    def validate_file(self, path: PathLike) -> ValidationOutcome:
        p = to_path(path)
        try:
            workflow = read_json(p)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            return ValidationOutcome(
                valid=False,
                errors=[StructuralViolation("", f"Malformed JSON: {e}")],
                source=p,
                malformed=True,
            )
        except OSError as e:
            return ValidationOutcome(
                valid=False,
                errors=[StructuralViolation("", f"Cannot read file: {e}")],
                source=p,
                malformed=True,
            )
        return self.validate(workflow, source=p)

    def validate_tree(self, paths: Iterable[PathLike]) -> ValidationSummary:
        summary = ValidationSummary()
        for path in paths:
            p = to_path(path)
            outcome = self.validate_file(p)
            summary.outcomes[p] = outcome
            if outcome.valid:
                logger.debug(f"valid: {p}")
                for w in outcome.warnings:
                    logger.debug(f"  warning: {w}")
            else:
                logger.warning(f"invalid: {p} ({len(outcome.errors)} errors)")
        logger.info(
            f"Validated {len(summary.outcomes)} files: "
            f"{summary.valid_count} valid, {summary.invalid_count} invalid, "
            f"{len(summary.warnings)} with warnings"
        )
        return summary
