#!/usr/bin/env python3
# flowarchive/cli.py

import logging
from pathlib import Path
from typing import List, Optional

import typer

from flowarchive.errors import SchemaLoadError
from flowarchive.health.checker import HealthChecker
from flowarchive.organize.dedupe import Deduplicator
from flowarchive.organize.pipeline import WorkflowOrganizer
from flowarchive.structural.schema import load_schema
from flowarchive.structural.validator import WorkflowValidator
from flowarchive.utils.config import ArchiveConfig, default_config, load_config
from flowarchive.utils.io import list_json_files
from flowarchive.utils.logger import init_logger

app = typer.Typer(help="flowarchive CLI - dedupe, categorize, scrub and validate n8n workflow backups")

EXIT_SCHEMA_ERROR = 2


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logs"),
    log_dir: Optional[Path] = typer.Option(None, "--log-dir", help="Also write a rotating log file here"),
):
    """Configure logging for every sub-command."""
    init_logger(level=logging.DEBUG if verbose else None, log_dir=log_dir)


def _config(config: Optional[Path]) -> ArchiveConfig:
    if config is None:
        return default_config()
    try:
        return load_config(config)
    except SchemaLoadError as e:
        print(f"[error] {e}")
        raise typer.Exit(code=EXIT_SCHEMA_ERROR)
    except (ValueError, OSError) as e:
        raise typer.BadParameter(str(e), param_hint="--config")


@app.command()
def dedupe(
    input: Path = typer.Option(..., "--input", "-i", exists=True, file_okay=False, help="Legacy backup tree to clean"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Only report what would be removed"),
):
    """
    Remove duplicate workflow files, keeping the most recently modified copy of each.
    """
    report = Deduplicator(input).run(dry_run=dry_run)

    print(f"Duplicate workflows: {report.duplicate_groups}")
    if dry_run:
        print(f"Would remove:        {len(report.removed)}")
    else:
        print(f"Files removed:       {report.files_removed}")
        print(f"Empty dirs removed:  {len(report.directories_removed)}")
    for err in report.errors:
        print(f"- {err}")
    if report.errors:
        raise typer.Exit(code=1)


@app.command()
def categorize(
    input: Path = typer.Option(..., "--input", "-i", exists=True, file_okay=False, help="Legacy backup tree"),
    out: Path = typer.Option(Path("workflows"), "--out", "-o", help="Archive root to write <category>/<name>.json"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", exists=True, dir_okay=False, help="YAML/JSON config override"),
    clean: bool = typer.Option(False, "--dedupe", help="Delete duplicate copies from the input tree first"),
):
    """
    Categorize unique workflows, scrub credentials and write them with companion docs.
    """
    cfg = _config(config)
    cleanup = Deduplicator(input).run() if clean else None

    report = WorkflowOrganizer(out, cfg).organize(input)

    for w in report.organized:
        print(f"[ok] {w.category}/{w.name}.json")
    print(f"Unique workflows: {len(report.organized)} (scanned {report.scanned} files)")
    for category, n in report.by_category.items():
        print(f"  {category}: {n}")
    if report.collisions:
        print(f"Name collisions resolved: {report.collisions}")
    if report.errors:
        print("Skipped files:")
        for err in report.errors:
            print(f"- {err}")
    if cleanup is not None:
        print(f"Duplicate files removed: {cleanup.files_removed}")
        for err in cleanup.errors:
            print(f"- {err}")
        if not cleanup.ok:
            raise typer.Exit(code=1)


@app.command()
def validate(
    input: List[Path] = typer.Option(..., "--input", "-i", exists=True, help="Workflow file(s) or directories"),
    schema: Optional[Path] = typer.Option(None, "--schema", "-s", help="JSON Schema file (default: bundled schema)"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", exists=True, dir_okay=False, help="YAML/JSON config override"),
    report: Optional[Path] = typer.Option(None, "--report", help="Write a CSV report to this path"),
):
    """
    Validate workflows against the schema and report quality warnings.
    Exit code 0 when every file passes structurally, 1 otherwise, 2 on schema errors.
    """
    cfg = _config(config)
    try:
        schema_doc = load_schema(schema) if schema is not None else cfg.schema
        validator = WorkflowValidator(schema_doc, sticky_note_type=cfg.sticky_note_type)
    except SchemaLoadError as e:
        print(f"[error] Failed to load schema: {e}")
        raise typer.Exit(code=EXIT_SCHEMA_ERROR)

    files = [f for root in input for f in list_json_files(root)]
    if not files:
        print("No workflow files found")
        return

    print(f"Validating {len(files)} workflow files...")
    summary = validator.validate_tree(files)

    rows = []
    for path, outcome in summary.outcomes.items():
        if outcome.valid:
            print(f"[ok] {path}")
            for w in outcome.warnings:
                print(f"    - warning: {w}")
        else:
            print(f"[fail] {path}")
            for e in outcome.errors:
                print(f"    - {e}")
        rows.append({
            "file": str(path),
            "valid": outcome.valid,
            "errors": len(outcome.errors),
            "warnings": len(outcome.warnings),
            "details": "; ".join([str(e) for e in outcome.errors] + outcome.warnings),
        })

    print("=" * 50)
    print(f"Valid workflows:         {summary.valid_count}")
    print(f"Invalid workflows:       {summary.invalid_count}")
    print(f"Workflows with warnings: {len(summary.warnings)}")

    if report is not None:
        import pandas as pd

        report.parent.mkdir(parents=True, exist_ok=True)
        pd.DataFrame(rows).to_csv(report, index=False)
        print(f"[ok] wrote {report}")

    if not summary.passed:
        raise typer.Exit(code=1)


@app.command()
def health(
    root: Path = typer.Option(Path("workflows"), "--root", "-r", help="Archive root"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", exists=True, dir_okay=False, help="YAML/JSON config override"),
):
    """
    Check the organized archive: category folders, docs, stray .env, leaked secrets.
    """
    cfg = _config(config)
    result = HealthChecker(root, cfg.category_names).run()

    for kind, msg in result.details:
        print(f"[{kind}] {msg}")
    print("=" * 50)
    print(f"Passed:   {result.passed}")
    print(f"Failed:   {result.failed}")
    print(f"Warnings: {result.warnings}")
    print(f"Success rate: {result.success_rate}%")
    if not result.healthy:
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
