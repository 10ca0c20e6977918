"""Value-level matching used by Parameter comparison.

A parameter value is either a literal (compared with ``==``) or a string
carrying the ``regex:`` prefix, in which case the first colon-delimited
segment after the prefix is used as a full-match pattern against plain
string values on the other side.
"""
from __future__ import annotations

import re
from functools import lru_cache
from typing import Any, Iterable, Optional, Pattern

REGEX_PREFIX = "regex:"


def is_pattern_value(value: Any) -> bool:
    """True if the value is a ``regex:``-prefixed string."""
    return isinstance(value, str) and value.startswith(REGEX_PREFIX)


def pattern_source(value: str) -> str:
    """Extract the pattern text from a ``regex:`` value.

    Only the segment up to the next colon is used, so ``regex:a:b``
    yields ``a`` and a bare ``regex:`` yields the empty pattern.
    """
    return value[len(REGEX_PREFIX):].split(":", 1)[0]


@lru_cache(maxsize=256)
def compile_pattern(source: str) -> Pattern[str]:
    return re.compile(source)


def value_matches(value: Any, candidate: Any) -> bool:
    """Match a single left-hand value against a right-hand candidate.

    Type mismatches never raise: a pattern only matches strings, and a
    literal only matches a value of exactly the same type, so ``True``,
    ``1`` and ``1.0`` are all distinct.
    """
    if is_pattern_value(value):
        if not isinstance(candidate, str):
            return False
        return compile_pattern(pattern_source(value)).fullmatch(candidate) is not None

    if type(value) is not type(candidate):
        return False
    try:
        return bool(value == candidate)
    except Exception:
        return False


def any_value_matches(values: Iterable[Any], candidates: Iterable[Any]) -> bool:
    """True if some left-hand value matches some right-hand candidate."""
    candidates = tuple(candidates)
    return any(
        value_matches(value, candidate)
        for value in values
        for candidate in candidates
    )


def full_match(pattern: Pattern[str], text: Optional[str]) -> bool:
    """Full-string match that treats a missing text as no match."""
    return text is not None and pattern.fullmatch(text) is not None
