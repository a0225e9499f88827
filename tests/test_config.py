# tests/test_config.py

import json
from pathlib import Path

import pytest

from flowarchive.errors import SchemaLoadError
from flowarchive.organize.rules import DEFAULT_CATEGORIES, CredentialMapping
from flowarchive.structural.schema import WORKFLOW_SCHEMA
from flowarchive.utils.config import default_config, load_config


def test_defaults():
    cfg = default_config()
    assert cfg.categories == DEFAULT_CATEGORIES
    assert cfg.category_names == ("alerts", "analytics", "automation", "backup")
    assert cfg.default_category == "automation"
    assert cfg.schema is WORKFLOW_SCHEMA


def test_yaml_override(tmp_path: Path):
    (tmp_path / "schema.json").write_text(json.dumps({"type": "object"}), encoding="utf-8")
    p = tmp_path / "archive.yaml"
    p.write_text(
        "default_category: misc\n"
        "categories:\n"
        "  finance:\n"
        "    keywords: [stock, price]\n"
        "    description: Finance\n"
        "  misc:\n"
        "    keywords: [zzz]\n"
        "credentials:\n"
        "  hunter2: DB_PASSWORD\n"
        "schema: schema.json\n",
        encoding="utf-8",
    )
    cfg = load_config(p)
    assert cfg.category_names == ("finance", "misc")
    assert cfg.categories[0].keywords == ("stock", "price")
    assert cfg.credential_mappings == (CredentialMapping("hunter2", "${DB_PASSWORD}"),)
    assert cfg.default_category == "misc"
    assert cfg.schema == {"type": "object"}


def test_json_pairs_override(tmp_path: Path):
    p = tmp_path / "archive.json"
    p.write_text(json.dumps({"credentials": [["abc", "${ABC}"]]}), encoding="utf-8")
    cfg = load_config(p)
    assert cfg.credential_mappings[0].env_name == "ABC"
    assert cfg.categories == DEFAULT_CATEGORIES


@pytest.mark.parametrize("body", [
    {"colour": "blue"},
    {"default_category": "nope"},
    {"categories": {"x": {"keywords": "notalist"}}},
])
def test_bad_config_raises(tmp_path: Path, body):
    p = tmp_path / "archive.json"
    p.write_text(json.dumps(body), encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(p)


def test_missing_schema_is_fatal(tmp_path: Path):
    p = tmp_path / "archive.json"
    p.write_text(json.dumps({"schema": "missing.json"}), encoding="utf-8")
    with pytest.raises(SchemaLoadError):
        load_config(p)
