# flowarchive/organize/categorizer.py

import json
import re
from typing import Dict, Any, Sequence

from flowarchive.organize.rules import CategoryRule, DEFAULT_CATEGORIES, DEFAULT_CATEGORY


def searchable_text(workflow: Any) -> str:
    """Compact, lowercased JSON rendering used for keyword matching."""
    return json.dumps(workflow, ensure_ascii=False, separators=(",", ":")).lower()


class Categorizer:
    """
    Keyword-frequency categorizer.

    Each rule scores the total number of non-overlapping, case-insensitive hits of its
    keywords in the serialized workflow. The highest score wins; on a tie the rule that
    comes first keeps the win; with no hits at all the default category is returned.
    This is a heuristic: a workflow that merely mentions "price" in a URL will lean
    towards alerts.
    """

    def __init__(self, rules: Sequence[CategoryRule] = DEFAULT_CATEGORIES, default_category: str = DEFAULT_CATEGORY):
        self.rules = tuple(rules)
        self.default_category = default_category
        self._patterns = {
            r.name: [re.compile(re.escape(k), re.IGNORECASE) for k in r.keywords]
            for r in self.rules
        }

    def score(self, workflow: Any) -> Dict[str, int]:
        text = searchable_text(workflow)
        return {
            r.name: sum(len(p.findall(text)) for p in self._patterns[r.name])
            for r in self.rules
        }

    def categorize(self, workflow: Any) -> str:
        best, best_score = self.default_category, 0
        for name, s in self.score(workflow).items():
            if s > best_score:
                best, best_score = name, s
        return best

    def description(self, category: str) -> str:
        for r in self.rules:
            if r.name == category:
                return r.description
        return ""
