# flowarchive/health/checker.py

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Sequence, Tuple

from flowarchive.organize.rules import DEFAULT_CATEGORIES
from flowarchive.utils.io import PathLike, read_text, to_path
from flowarchive.utils.logger import get_logger

logger = get_logger(__name__)

SECRET_PATTERNS = (
    re.compile(r"sk-[A-Za-z0-9]{32,}"),     # OpenAI keys
    re.compile(r"xoxb-[A-Za-z0-9-]+"),      # Slack bot tokens
    re.compile(r"[A-Za-z0-9]{32,}"),        # generic API keys
)
_PLACEHOLDER = re.compile(r"\$\{[^}]*\}")


@dataclass
class HealthReport:
    passed: int = 0
    failed: int = 0
    warnings: int = 0
    details: List[Tuple[str, str]] = field(default_factory=list)   # (kind, message)

    @property
    def healthy(self) -> bool:
        return self.failed == 0

    @property
    def success_rate(self) -> float:
        total = self.passed + self.failed + self.warnings
        return round(100.0 * self.passed / total, 1) if total else 0.0


def has_hardcoded_secret(text: str) -> bool:
    """True if any secret-looking token sits outside a ${...} placeholder."""
    stripped = _PLACEHOLDER.sub(" ", text)
    return any(p.search(stripped) for p in SECRET_PATTERNS)


class HealthChecker:
    """Sanity checks over an organized archive (<root>/<category>/<name>.json|.md)."""

    def __init__(self, root: PathLike, categories: Sequence[str] = tuple(r.name for r in DEFAULT_CATEGORIES)):
        self.root = to_path(root)
        self.categories = tuple(categories)
        self.report = HealthReport()

    def run(self) -> HealthReport:
        self.report = HealthReport()
        files = self.check_workflow_files()
        self.check_security(files)
        logger.info(
            f"Health check: {self.report.passed} passed, {self.report.failed} failed, "
            f"{self.report.warnings} warnings"
        )
        return self.report

    def check_workflow_files(self) -> List[Path]:
        found: List[Path] = []
        for category in self.categories:
            d = self.root / category
            if not d.is_dir():
                self._fail(f"Missing directory: {category}")
                continue
            jsons = sorted(d.glob("*.json"))
            if jsons:
                self._pass(f"{category}: {len(jsons)} workflows")
            else:
                self._warn(f"{category}: No workflows found")
            for j in jsons:
                if not j.with_suffix(".md").is_file():
                    self._warn(f"Missing documentation: {category}/{j.stem}.md")
            found.extend(jsons)

        if found:
            self._pass(f"Total workflows found: {len(found)}")
        else:
            self._fail("No workflows found in organized structure")
        return found

    def check_security(self, files: Sequence[Path]) -> None:
        if (self.root / ".env").exists():
            self._fail(".env file found in archive (security risk)")
        else:
            self._pass("No .env file in archive")

        flagged = 0
        for f in files:
            try:
                text = read_text(f)
            except OSError as e:
                self._fail(f"Cannot read {f}: {e}")
                continue
            if has_hardcoded_secret(text):
                flagged += 1
                self._warn(f"Potential hardcoded secret in: {f.relative_to(self.root)}")
        if flagged == 0:
            self._pass("No hardcoded secrets detected")

    def _pass(self, msg: str) -> None:
        self.report.passed += 1
        self.report.details.append(("pass", msg))
        logger.debug(msg)

    def _fail(self, msg: str) -> None:
        self.report.failed += 1
        self.report.details.append(("fail", msg))
        logger.error(msg)

    def _warn(self, msg: str) -> None:
        self.report.warnings += 1
        self.report.details.append(("warn", msg))
        logger.warning(msg)
