# flowarchive/errors.py
"""Error kinds shared by the dedupe, organize and validate passes.

Per-file errors (malformed JSON, filesystem failures) are caught by the batch
drivers and recorded in their reports. Only SchemaLoadError is fatal to a run.
"""
from __future__ import annotations

from pathlib import Path
from typing import Union


class FlowArchiveError(Exception):
    """Base class for all flowarchive errors."""


class _PathError(FlowArchiveError):
    def __init__(self, path: Union[str, Path], reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"{self.path}: {reason}")


class MalformedInputError(_PathError):
    """A workflow file could not be parsed as JSON."""


class FilesystemError(_PathError):
    """Reading, writing or removing a file failed."""


class SchemaLoadError(_PathError):
    """The schema contract is missing or unusable. Aborts the whole run."""
