# flowarchive/organize/pipeline.py
"""
Batch driver: raw workflow tree -> <out>/<category>/<name>.json + <name>.md

Per workflow, in order: pick the surviving copy, categorize, redact, name, write.
A failing file is recorded in the report and the batch moves on.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from flowarchive.errors import FilesystemError, FlowArchiveError, MalformedInputError
from flowarchive.organize.categorizer import Categorizer
from flowarchive.organize.dedupe import FileEntry, scan_tree, unique_workflows
from flowarchive.organize.docs import WorkflowSummary, render_markdown, summarize
from flowarchive.organize.namer import derive_name
from flowarchive.organize.redactor import Redactor
from flowarchive.utils.config import ArchiveConfig, default_config
from flowarchive.utils.io import PathLike, to_path, write_json, write_text
from flowarchive.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class OrganizedWorkflow:
    identity: str
    category: str
    name: str
    source: Path
    json_path: Path
    doc_path: Path
    summary: WorkflowSummary


@dataclass
class OrganizeReport:
    scanned: int = 0
    organized: List[OrganizedWorkflow] = field(default_factory=list)
    errors: List[FlowArchiveError] = field(default_factory=list)
    collisions: int = 0

    @property
    def by_category(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for w in self.organized:
            counts[w.category] = counts.get(w.category, 0) + 1
        return counts


class WorkflowOrganizer:
    def __init__(self, out_dir: PathLike, config: Optional[ArchiveConfig] = None):
        self.out_dir = to_path(out_dir)
        self.config = config or default_config()
        self.categorizer = Categorizer(self.config.categories, self.config.default_category)
        self.redactor = Redactor(self.config.credential_mappings)
        self._taken: Dict[Path, str] = {}

    def organize(self, input_dir: PathLike) -> OrganizeReport:
        report = OrganizeReport()
        input_dir = to_path(input_dir)
        if not input_dir.is_dir():
            logger.warning(f"No workflow directory found at {input_dir}")
            return report

        self.prepare_layout(report)

        entries = scan_tree(input_dir)
        report.scanned = len(entries)
        if not entries:
            logger.warning(f"No workflow files found under {input_dir}")
            return report

        uniques = unique_workflows(entries, on_error=report.errors.append)
        logger.info(f"Found {len(uniques)} unique workflows in {len(entries)} files")

        for identity, entry in uniques.items():
            try:
                report.organized.append(self.process(identity, entry, report))
            except FlowArchiveError as e:
                logger.error(f"Skipping {entry.path}: {e}")
                report.errors.append(e)

        logger.info(f"Workflow categorization completed: {len(report.organized)} written")
        return report

    def prepare_layout(self, report: OrganizeReport) -> None:
        """Create <out>/<category>/ for every configured category, even ones left empty."""
        for category in self.config.category_names:
            d = self.out_dir / category
            try:
                d.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                err = FilesystemError(d, f"cannot create directory: {e}")
                logger.error(str(err))
                report.errors.append(err)

    def _target(self, category: str, name: str, identity: str, report: OrganizeReport) -> str:
        """
        Resolve <category>/<name> collisions inside one run by suffixing -2, -3, ...
        Re-running over an existing archive overwrites files from the previous run.
        """
        candidate, n = name, 1
        while self._taken.get(self.out_dir / category / candidate, identity) != identity:
            n += 1
            candidate = f"{name}-{n}"
        if candidate != name:
            report.collisions += 1
            logger.warning(f"Name collision for '{category}/{name}' ({identity}); using '{candidate}'")
        self._taken[self.out_dir / category / candidate] = identity
        return candidate

    def process(self, identity: str, entry: FileEntry, report: Optional[OrganizeReport] = None) -> OrganizedWorkflow:
        workflow = entry.load()
        if not isinstance(workflow, dict):
            raise MalformedInputError(entry.path, "workflow must be a JSON object")

        category = self.categorizer.categorize(workflow)
        cleaned = self.redactor.redact(workflow)
        # named from the scrubbed copy so mapped literals never reach file names
        name = derive_name(cleaned, identity, self.config.sticky_note_type)
        name = self._target(category, name, identity, report or OrganizeReport())

        target_dir = self.out_dir / category
        json_path = target_dir / f"{name}.json"
        doc_path = target_dir / f"{name}.md"

        summary = summarize(
            cleaned,
            name=name,
            category=category,
            description=self.categorizer.description(category),
            source=str(entry.path),
        )
        try:
            write_json(json_path, cleaned)
            write_text(doc_path, render_markdown(summary))
        except OSError as e:
            raise FilesystemError(json_path, f"cannot write: {e}") from e

        logger.info(f"{category}/{name}.json <- {entry.path}")
        return OrganizedWorkflow(identity, category, name, entry.path, json_path, doc_path, summary)
