# tests/test_categorizer.py

from flowarchive.organize.categorizer import Categorizer, searchable_text
from flowarchive.organize.rules import CategoryRule


FIXTURE_RULES = (
    CategoryRule("fruit", ("apple", "pear"), "Fruit"),
    CategoryRule("veg", ("carrot", "leek"), "Vegetables"),
    CategoryRule("misc", ("zzz",), "Other"),
)


def test_alert_workflow_detection():
    wf = {
        "nodes": [
            {"name": "Telegram Alert", "type": "n8n-nodes-base.telegram"},
            {"name": "Monitor Price", "type": "n8n-nodes-base.cron"},
        ]
    }
    assert Categorizer().categorize(wf) == "alerts"


def test_single_category_keywords_score_zero_elsewhere():
    c = Categorizer(FIXTURE_RULES, default_category="misc")
    wf = {"nodes": [{"name": "Carrot soup", "notes": "LEEK and carrot"}]}
    scores = c.score(wf)
    assert scores == {"fruit": 0, "veg": 3, "misc": 0}
    assert c.categorize(wf) == "veg"


def test_all_zero_returns_default():
    c = Categorizer(FIXTURE_RULES, default_category="misc")
    assert c.categorize({"nodes": [{"name": "nothing relevant"}]}) == "misc"
    assert Categorizer().categorize({"x": 1}) == "automation"


def test_tie_keeps_first_category():
    c = Categorizer(FIXTURE_RULES, default_category="misc")
    wf = {"a": "apple", "b": "carrot"}
    assert c.score(wf)["fruit"] == c.score(wf)["veg"] == 1
    assert c.categorize(wf) == "fruit"


def test_matches_are_non_overlapping():
    c = Categorizer((CategoryRule("aa", ("aa",)),), default_category="aa")
    # "aaaa" holds two non-overlapping hits, not three
    assert c.score({"k": "aaaa"}) == {"aa": 2}


def test_keywords_match_inside_keys_and_types():
    # substring matching is deliberately loose: "ai" hits "main" and "email"
    wf = {"connections": {"A": {"main": []}}, "nodes": [{"type": "n8n-nodes-base.emailSend"}]}
    assert Categorizer().score(wf)["analytics"] >= 2


def test_searchable_text_is_lowercase_compact():
    assert searchable_text({"A": [1, "B"]}) == '{"a":[1,"b"]}'


def test_description_lookup():
    c = Categorizer(FIXTURE_RULES, default_category="misc")
    assert c.description("veg") == "Vegetables"
    assert c.description("unknown") == ""
