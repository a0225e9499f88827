# tests/test_redactor.py

import copy

import pytest

from flowarchive.organize.redactor import Redactor, find_placeholders, redact
from flowarchive.organize.rules import CredentialMapping, DEFAULT_CREDENTIAL_MAPPINGS


SECRET_32 = "A1b2C3d4E5f6G7h8I9j0K1l2M3n4O5p6"


def _workflow():
    return {
        "nodes": [
            {
                "name": "Telegram",
                "type": "n8n-nodes-base.telegram",
                "position": [100, 200],
                "typeVersion": 1,
                "disabled": False,
                "parameters": {
                    "chatId": "8400587790",
                    "text": "repo marcoippel/datproto-backup-n8n updated",
                    "apiKey": SECRET_32,
                    "accessToken": "short-token",
                    "retries": None,
                },
            }
        ],
        "connections": {},
    }


def test_known_literals_are_replaced_everywhere():
    out = redact(_workflow())
    params = out["nodes"][0]["parameters"]
    assert params["chatId"] == "${TELEGRAM_CHAT_ID}"
    # both literals in one string are replaced, not just the first
    assert params["text"] == "repo ${GITHUB_REPO_OWNER}/${GITHUB_REPO_NAME} updated"


def test_repeated_literal_in_one_string():
    out = redact({"msg": "8400587790 and again 8400587790"})
    assert out["msg"] == "${TELEGRAM_CHAT_ID} and again ${TELEGRAM_CHAT_ID}"


def test_key_like_fields_with_long_tokens_are_replaced():
    params = redact(_workflow())["nodes"][0]["parameters"]
    assert params["apiKey"] == "${APIKEY}"
    # too short / not alphanumeric: left alone
    assert params["accessToken"] == "short-token"


def test_long_value_under_unrelated_key_is_kept():
    out = redact({"description": SECRET_32})
    assert out["description"] == SECRET_32


def test_non_string_leaves_pass_through():
    out = redact(_workflow())
    node = out["nodes"][0]
    assert node["position"] == [100, 200]
    assert node["typeVersion"] == 1
    assert node["disabled"] is False
    assert node["parameters"]["retries"] is None


def test_input_is_not_mutated():
    wf = _workflow()
    before = copy.deepcopy(wf)
    redact(wf)
    assert wf == before


def test_strings_inside_arrays_are_scrubbed():
    out = redact({"values": ["8400587790", {"token": SECRET_32}]})
    assert out["values"] == ["${TELEGRAM_CHAT_ID}", {"token": "${TOKEN}"}]


@pytest.mark.parametrize("doc", [
    _workflow(),
    {"a": [{"apiKey": SECRET_32, "x": "PKU0NRQDJV8J14GKYDGO"}]},
    ["marcoippel", 1, True, None],
    "8400587790",
])
def test_idempotent(doc):
    once = redact(doc)
    assert redact(once) == once


def test_no_mapped_literal_survives():
    out = redact(_workflow())
    text = repr(out)
    for m in DEFAULT_CREDENTIAL_MAPPINGS:
        assert m.literal not in text


def test_custom_mappings():
    r = Redactor((CredentialMapping("hunter2", "${DB_PASSWORD}"),))
    assert r.redact({"dsn": "postgres://u:hunter2@db"}) == {"dsn": "postgres://u:${DB_PASSWORD}@db"}
    # defaults are not applied when a custom table is given
    assert r.redact({"chat": "8400587790"}) == {"chat": "8400587790"}


def test_find_placeholders():
    out = redact(_workflow())
    assert find_placeholders(out) == ["APIKEY", "GITHUB_REPO_NAME", "GITHUB_REPO_OWNER", "TELEGRAM_CHAT_ID"]
    assert find_placeholders({"n": 1}) == []
