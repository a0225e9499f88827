# tests/test_pipeline.py

import json
import os
from pathlib import Path

import pytest

from flowarchive.errors import FilesystemError
from flowarchive.organize import pipeline
from flowarchive.organize.dedupe import Deduplicator
from flowarchive.organize.pipeline import WorkflowOrganizer
from flowarchive.structural.validator import WorkflowValidator


def _node(i, name, ntype, **params):
    return {
        "id": f"12345678-1234-1234-1234-{i:012d}",
        "name": name,
        "type": ntype,
        "typeVersion": 1,
        "position": [100 * i, 200],
        "parameters": params,
    }


def _write(path: Path, doc, mtime: float) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    text = doc if isinstance(doc, str) else json.dumps(doc)
    path.write_text(text, encoding="utf-8")
    os.utime(path, (mtime, mtime))
    return path


def _alert(version: str):
    return {
        "nodes": [
            _node(1, "Price Check Trigger", "n8n-nodes-base.cron"),
            _node(2, "Send Telegram", "n8n-nodes-base.telegram", chatId="8400587790", text=version),
        ],
        "connections": {"Price Check Trigger": {"main": [[{"node": "Send Telegram", "type": "main", "index": 0}]]}},
    }


def _backup():
    return {
        "nodes": [
            _node(1, "Note", "n8n-nodes-base.stickyNote", content="# GitHub Backup\nexports workflows"),
            _node(2, "Push", "n8n-nodes-base.github", owner="marcoippel", repository="datproto-backup-n8n"),
        ],
        "connections": {},
    }


@pytest.fixture
def legacy(tmp_path: Path) -> Path:
    root = tmp_path / "2025"
    _write(root / "01" / "a.json", _alert("old copy"), 1_000)
    _write(root / "02" / "a.json", _alert("new copy"), 2_000)
    _write(root / "02" / "b.json", _backup(), 1_500)
    return root


def test_end_to_end(legacy: Path, tmp_path: Path):
    out = tmp_path / "workflows"
    report = WorkflowOrganizer(out).organize(legacy)

    assert report.scanned == 3
    assert len(report.organized) == 2
    assert report.errors == []

    by_id = {w.identity: w for w in report.organized}
    a, b = by_id["a"], by_id["b"]
    assert a.source == legacy / "02" / "a.json"
    assert (a.category, a.name) == ("alerts", "price-check-trigger")
    assert (b.category, b.name) == ("backup", "githubbackup")

    for w in (a, b):
        assert w.json_path.is_file()
        assert w.doc_path.is_file()
        assert w.json_path.parent.parent == out
        assert w.doc_path == w.json_path.with_suffix(".md")

    written = json.loads(a.json_path.read_text(encoding="utf-8"))
    params = written["nodes"][1]["parameters"]
    assert params == {"chatId": "${TELEGRAM_CHAT_ID}", "text": "new copy"}

    doc = a.doc_path.read_text(encoding="utf-8")
    assert "Category: **alerts**" in doc
    assert "- **Price Check Trigger** (n8n-nodes-base.cron)" in doc
    assert "`${TELEGRAM_CHAT_ID}`" in doc
    assert "Price Check Trigger -> Send Telegram" in doc

    assert b.summary.placeholders == ["GITHUB_REPO_NAME", "GITHUB_REPO_OWNER"]
    assert b.summary.triggers == []

    # source tree is only read, never modified
    assert (legacy / "01" / "a.json").exists()


def test_output_passes_structural_validation(legacy: Path, tmp_path: Path):
    report = WorkflowOrganizer(tmp_path / "out").organize(legacy)
    summary = WorkflowValidator().validate_tree(w.json_path for w in report.organized)
    assert summary.passed
    assert summary.valid_count == 2


def test_dedupe_then_organize(legacy: Path, tmp_path: Path):
    Deduplicator(legacy).run()
    assert not (legacy / "01").exists()
    report = WorkflowOrganizer(tmp_path / "out").organize(legacy)
    assert sorted(w.identity for w in report.organized) == ["a", "b"]


def test_malformed_file_does_not_abort(legacy: Path, tmp_path: Path):
    _write(legacy / "03" / "broken.json", "{oops", 3_000)
    _write(legacy / "03" / "list.json", [1, 2, 3], 3_000)
    report = WorkflowOrganizer(tmp_path / "out").organize(legacy)
    assert sorted(w.identity for w in report.organized) == ["a", "b"]
    assert len(report.errors) == 2


def test_name_collisions_get_suffix(tmp_path: Path):
    src = tmp_path / "src"
    _write(src / "x.json", _alert("one"), 1_000)
    _write(src / "y.json", _alert("two"), 1_000)
    report = WorkflowOrganizer(tmp_path / "out").organize(src)

    names = sorted(w.name for w in report.organized)
    assert names == ["price-check-trigger", "price-check-trigger-2"]
    assert report.collisions == 1
    assert len(list((tmp_path / "out" / "alerts").glob("*.json"))) == 2


def test_missing_input_dir(tmp_path: Path):
    report = WorkflowOrganizer(tmp_path / "out").organize(tmp_path / "missing")
    assert report.organized == [] and report.scanned == 0


def test_name_is_derived_from_redacted_workflow(tmp_path: Path):
    doc = {
        "nodes": [
            _node(1, "marcoippel 8400587790 Trigger", "n8n-nodes-base.cron"),
            _node(2, "Send Telegram", "n8n-nodes-base.telegram", chatId="8400587790"),
        ],
        "connections": {},
    }
    _write(tmp_path / "src" / "leaky.json", doc, 1_000)
    report = WorkflowOrganizer(tmp_path / "out").organize(tmp_path / "src")

    (w,) = report.organized
    assert w.name == "githubrepoowner-telegramchatid-trigger"
    for text in (w.json_path.name, w.doc_path.read_text(encoding="utf-8"), w.json_path.read_text(encoding="utf-8")):
        assert "marcoippel" not in text
        assert "8400587790" not in text


def test_write_failure_is_recorded_and_batch_continues(legacy: Path, tmp_path: Path, monkeypatch):
    real_write_json = pipeline.write_json

    def write_json(path, data, indent=2):
        if Path(path).parent.name == "alerts":
            raise PermissionError(13, "Permission denied", str(path))
        return real_write_json(path, data, indent)

    monkeypatch.setattr(pipeline, "write_json", write_json)
    out = tmp_path / "out"
    report = WorkflowOrganizer(out).organize(legacy)

    assert [w.identity for w in report.organized] == ["b"]
    assert len(report.errors) == 1
    assert isinstance(report.errors[0], FilesystemError)
    assert report.errors[0].path.parent == out / "alerts"
    assert (out / "backup" / "githubbackup.json").is_file()


def test_every_category_directory_is_created(legacy: Path, tmp_path: Path):
    out = tmp_path / "out"
    WorkflowOrganizer(out).organize(legacy)
    assert sorted(p.name for p in out.iterdir()) == ["alerts", "analytics", "automation", "backup"]
    assert list((out / "analytics").iterdir()) == []
