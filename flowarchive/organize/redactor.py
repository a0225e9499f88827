# flowarchive/organize/redactor.py
"""
Credential scrubbing for workflow JSON.

Two rules are applied to every string leaf:
  (a) known sensitive literals are substring-replaced by their ${NAME} placeholder
      (every occurrence of every mapped literal);
  (b) a value stored under a key whose name contains "key" or "token" and that looks
      like an opaque secret (32+ alphanumerics) is replaced wholesale by ${KEY_NAME}.

The traversal is pure: a new structure is returned and the input is left as is.
"""
from __future__ import annotations

import re
from typing import Any, Iterable, List, Optional, Sequence, Set

from flowarchive.organize.rules import CredentialMapping, DEFAULT_CREDENTIAL_MAPPINGS

SECRET_VALUE_RE = re.compile(r"^[A-Za-z0-9]{32,}$")
PLACEHOLDER_RE = re.compile(r"\$\{([A-Za-z0-9_]+)\}")
SENSITIVE_KEY_MARKERS = ("key", "token")


def _is_sensitive_key(key: Optional[str]) -> bool:
    if not isinstance(key, str):
        return False
    k = key.lower()
    return any(m in k for m in SENSITIVE_KEY_MARKERS)


class Redactor:
    def __init__(self, mappings: Sequence[CredentialMapping] = DEFAULT_CREDENTIAL_MAPPINGS):
        self.mappings = tuple(mappings)

    def redact(self, value: Any) -> Any:
        """Return a scrubbed copy of any JSON value."""
        return self._walk(value, None)

    def redact_string(self, value: str, key: Optional[str] = None) -> str:
        if _is_sensitive_key(key) and SECRET_VALUE_RE.match(value):
            return "${" + key.upper() + "}"
        for m in self.mappings:
            if m.literal in value:
                value = value.replace(m.literal, m.placeholder)
        return value

    def _walk(self, value: Any, key: Optional[str]) -> Any:
        if isinstance(value, str):
            return self.redact_string(value, key)
        if isinstance(value, list):
            return [self._walk(item, None) for item in value]
        if isinstance(value, dict):
            return {k: self._walk(v, k) for k, v in value.items()}
        # numbers, booleans, null
        return value


def redact(value: Any, mappings: Sequence[CredentialMapping] = DEFAULT_CREDENTIAL_MAPPINGS) -> Any:
    """Functional shortcut for Redactor(mappings).redact(value)."""
    return Redactor(mappings).redact(value)


def _iter_strings(value: Any) -> Iterable[str]:
    stack = [value]
    while stack:
        cur = stack.pop()
        if isinstance(cur, str):
            yield cur
        elif isinstance(cur, dict):
            stack.extend(cur.values())
        elif isinstance(cur, list):
            stack.extend(cur)


def find_placeholders(value: Any) -> List[str]:
    """Sorted, de-duplicated NAMEs of every ${NAME} placeholder found in string leaves."""
    names: Set[str] = set()
    for s in _iter_strings(value):
        names.update(PLACEHOLDER_RE.findall(s))
    return sorted(names)
