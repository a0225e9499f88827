# flowarchive/organize/dedupe.py
"""
Duplicate resolution by logical identity + recency.

A workflow's identity is its filename stem, so `2025/01/abc.json` and
`2025/03/abc.json` are two copies of the same workflow. For every identity the most
recently modified copy survives; on equal mtimes the copy discovered first wins
(discovery order is a sorted depth-first walk, so the choice is stable across runs).
"""
from __future__ import annotations

import json
import os
from collections import OrderedDict
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence

from flowarchive.errors import FilesystemError, MalformedInputError
from flowarchive.utils.io import PathLike, read_json, to_path
from flowarchive.utils.logger import get_logger

logger = get_logger(__name__)

_UNSET = object()


@dataclass
class FileEntry:
    identity: str
    path: Path
    mtime: float
    _content: Any = field(default=_UNSET, repr=False, compare=False)

    @classmethod
    def from_path(cls, path: PathLike) -> "FileEntry":
        p = to_path(path)
        try:
            mtime = p.stat().st_mtime
        except OSError as e:
            raise FilesystemError(p, f"cannot stat: {e}") from e
        return cls(identity=p.stem, path=p, mtime=mtime)

    def load(self) -> Any:
        """Parse the file on first use and cache the result."""
        if self._content is _UNSET:
            try:
                self._content = read_json(self.path)
            except (json.JSONDecodeError, UnicodeDecodeError) as e:
                raise MalformedInputError(self.path, f"invalid JSON: {e}") from e
            except OSError as e:
                raise FilesystemError(self.path, f"cannot read: {e}") from e
        return self._content


def scan_tree(root: PathLike, suffix: str = ".json") -> List[FileEntry]:
    """
    Walk `root` with an explicit stack and collect every `*<suffix>` file.
    Within a directory files come first (sorted by name), then subdirectories (sorted).
    """
    root = to_path(root)
    entries: List[FileEntry] = []
    stack = [root]
    while stack:
        cur = stack.pop()
        try:
            children = sorted(cur.iterdir(), key=lambda p: p.name)
        except OSError as e:
            logger.warning(f"cannot list {cur}: {e}")
            continue
        subdirs = []
        for child in children:
            if child.is_dir() and not child.is_symlink():
                subdirs.append(child)
            elif child.is_file() and child.name.endswith(suffix):
                try:
                    entries.append(FileEntry.from_path(child))
                except FilesystemError as e:
                    logger.warning(str(e))
        # reversed so the alphabetically first subdirectory is visited next
        stack.extend(reversed(subdirs))
    return entries


def group_entries(entries: Sequence[FileEntry]) -> "OrderedDict[str, List[FileEntry]]":
    """identity -> entries, both in discovery order"""
    groups: "OrderedDict[str, List[FileEntry]]" = OrderedDict()
    for e in entries:
        groups.setdefault(e.identity, []).append(e)
    return groups


def pick_survivor(group: Sequence[FileEntry]) -> FileEntry:
    """Newest mtime wins; max() keeps the first of equal keys, i.e. the first discovered."""
    if not group:
        raise ValueError("empty duplicate group")
    return max(group, key=lambda e: e.mtime)


def _by_preference(group: Sequence[FileEntry]) -> List[FileEntry]:
    survivor = pick_survivor(group)
    rest = sorted((e for e in group if e is not survivor), key=lambda e: -e.mtime)
    return [survivor] + rest


def unique_workflows(
    entries: Sequence[FileEntry],
    on_error: Optional[Callable[[Exception], None]] = None,
) -> "OrderedDict[str, FileEntry]":
    """
    identity -> surviving entry with its content loaded.

    Copies that fail to parse are reported through `on_error` and skipped, so the
    newest *readable* copy of an identity is the one returned. An identity with no
    readable copy is left out.
    """
    out: "OrderedDict[str, FileEntry]" = OrderedDict()
    for identity, group in group_entries(entries).items():
        for e in _by_preference(group):
            try:
                e.load()
            except (MalformedInputError, FilesystemError) as err:
                logger.warning(f"Skipping invalid file: {err}")
                if on_error is not None:
                    on_error(err)
                continue
            out[identity] = e
            break
    return out


@dataclass
class DedupeReport:
    duplicate_groups: int = 0
    duplicate_files: int = 0
    files_removed: int = 0
    survivors: List[Path] = field(default_factory=list)
    removed: List[Path] = field(default_factory=list)
    directories_removed: List[Path] = field(default_factory=list)
    errors: List[FilesystemError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


class Deduplicator:
    def __init__(self, root: PathLike, suffix: str = ".json"):
        self.root = to_path(root)
        self.suffix = suffix

    def plan(self, entries: Optional[Sequence[FileEntry]] = None) -> Dict[str, Dict[str, Any]]:
        """identity -> {"keep": FileEntry, "remove": [FileEntry, ...]} for duplicated identities only."""
        if entries is None:
            entries = scan_tree(self.root, self.suffix)
        plan: Dict[str, Dict[str, Any]] = {}
        for identity, group in group_entries(entries).items():
            if len(group) < 2:
                continue
            keep = pick_survivor(group)
            plan[identity] = {"keep": keep, "remove": [e for e in group if e is not keep]}
        return plan

    def run(self, dry_run: bool = False) -> DedupeReport:
        report = DedupeReport()
        if not self.root.is_dir():
            logger.warning(f"No directory to deduplicate: {self.root}")
            return report

        plan = self.plan()
        report.duplicate_groups = len(plan)
        report.duplicate_files = sum(len(p["remove"]) for p in plan.values())
        if not plan:
            logger.info("No duplicate files found")
            return report

        logger.info(
            f"Found {report.duplicate_groups} duplicated workflows "
            f"({report.duplicate_files} extra copies); keeping the latest of each"
        )

        touched_dirs = set()
        for identity, p in plan.items():
            keep: FileEntry = p["keep"]
            report.survivors.append(keep.path)
            logger.info(f"Keeping: {keep.path}")
            for e in p["remove"]:
                if e.path == keep.path:
                    continue
                if dry_run:
                    logger.info(f"  would remove: {e.path}")
                    report.removed.append(e.path)
                    continue
                try:
                    e.path.unlink()
                except OSError as err:
                    fe = FilesystemError(e.path, f"cannot remove: {err}")
                    logger.error(str(fe))
                    report.errors.append(fe)
                    continue
                report.removed.append(e.path)
                report.files_removed += 1
                touched_dirs.add(e.path.parent)
                logger.info(f"  removed: {e.path}")

        if not dry_run:
            report.directories_removed = self._prune_empty(touched_dirs, report)
        logger.info(f"Cleanup completed. Removed {report.files_removed} duplicate files.")
        return report

    def _prune_empty(self, touched_dirs, report: DedupeReport) -> List[Path]:
        """
        Remove directories that removals left empty, deepest first, walking up towards
        (but never including) the root.
        """
        root = self.root.resolve()
        candidates = set()
        for d in touched_dirs:
            cur = d.resolve()
            while cur != root and root in cur.parents:
                candidates.add(cur)
                cur = cur.parent

        removed: List[Path] = []
        for d in sorted(candidates, key=lambda p: len(p.parts), reverse=True):
            try:
                if not d.is_dir() or any(d.iterdir()):
                    continue
                os.rmdir(d)
            except OSError as err:
                fe = FilesystemError(d, f"cannot remove directory: {err}")
                logger.error(str(fe))
                report.errors.append(fe)
                continue
            removed.append(d)
            logger.info(f"  removed empty directory: {d}")
        return removed
