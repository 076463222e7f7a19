"""Declarative tag grammar: which shapes to look for, and which are plausible.

Patterns run against whitespace-collapsed, uppercased page text. A shape only
finds candidates; the validity predicate decides whether a normalized
candidate is kept for its category.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Dict, Iterator, Pattern, Tuple

from .classification import is_equipment_prefix, is_instrument_prefix
from .pipeline import TagCategory

# A tag never starts inside a word or right after a hyphen, so segments of a
# compound identifier (``PG-10001`` in ``6"-PG-10001``) are not reported alone.
_START = r"(?<![\w-])"
_HYPHEN = r"\s*-\s*"


def _compile(shape: str) -> Pattern[str]:
    # ASCII keeps \d and \w in line with the ASCII-only letter classes.
    return re.compile(_START + shape, re.ASCII)


def _accept_all(tag: str) -> bool:
    return True


@dataclass(frozen=True)
class TagPattern:
    """One shape in a category's grammar plus its plausibility check."""

    name: str
    shape: Pattern[str]
    validity: Callable[[str], bool] = _accept_all

    def finditer(self, text: str) -> Iterator["re.Match[str]"]:
        return self.shape.finditer(text)

    def matches(self, normalized_tag: str) -> bool:
        return self.shape.fullmatch(normalized_tag) is not None

    def is_valid(self, normalized_tag: str) -> bool:
        return self.validity(normalized_tag)


CONTROL_VALVE_PATTERNS: Tuple[TagPattern, ...] = (
    TagPattern(
        "valve_hyphenated",  # PCV-101, FCV-2001A
        _compile(r"[A-Z]{2,3}V" + _HYPHEN + r"\d{3,4}[A-Z]?\b"),
    ),
    TagPattern(
        "valve_compact",  # PCV101
        _compile(r"[A-Z]{2,3}V\d{3,4}[A-Z]?\b"),
    ),
    TagPattern("hand_valve", _compile(r"HV-\d{3,4}[A-Z]?\b")),
    TagPattern("shutoff_valve", _compile(r"XV-\d{3,4}[A-Z]?\b")),
)


def is_control_valve_shape(tag: str) -> bool:
    return any(pattern.matches(tag) for pattern in CONTROL_VALVE_PATTERNS)


def is_instrument(tag: str) -> bool:
    """ISA-lettered tags that are not already control valves (``LV-1001`` stays, ``FCV-101`` goes)."""
    return is_instrument_prefix(tag) and not is_control_valve_shape(tag)


TAG_PATTERNS: Dict[TagCategory, Tuple[TagPattern, ...]] = {
    TagCategory.EQUIPMENT: (
        TagPattern(
            "equipment_hyphenated",  # K-2801, V-3701A, K - 2801
            _compile(r"[A-Z]{1,3}" + _HYPHEN + r"\d{3,4}[A-Z]?\b"),
            is_equipment_prefix,
        ),
        TagPattern(
            "equipment_compact",  # P101, V3701A
            _compile(r"[A-Z]{1,3}\d{3,4}[A-Z]?\b"),
            is_equipment_prefix,
        ),
        TagPattern(
            "equipment_spaced",  # P 101, V 3701A
            _compile(r"[A-Z]{1,3}\s\d{3,4}[A-Z]?\b"),
            is_equipment_prefix,
        ),
    ),
    TagCategory.INSTRUMENT: (
        TagPattern(
            "instrument_hyphenated",  # PIC-10001, FT-2001, LV-1001
            _compile(r"[A-Z]{2,4}" + _HYPHEN + r"\d{3,6}\b"),
            is_instrument,
        ),
        TagPattern(
            "instrument_compact",  # PIC10001
            _compile(r"[A-Z]{2,4}\d{3,6}\b"),
            is_instrument,
        ),
    ),
    TagCategory.CONTROL_VALVE: CONTROL_VALVE_PATTERNS,
    TagCategory.LINE_NUMBER: (
        TagPattern(
            "line_number",  # 6"-PG-10001, 6'-PG-10001, 6''-PG-10001
            _compile(r"\d{1,3}(?:\"|'{1,2})?-[A-Z]{1,3}-\d{4,6}\b"),
        ),
    ),
}

_WHITESPACE = re.compile(r"\s+")


def collapse_whitespace(text: str) -> str:
    """Collapse whitespace runs to a single space."""
    return _WHITESPACE.sub(" ", text or "")


def normalize_tag(raw: str) -> str:
    """Uppercase a raw match and strip all whitespace from it."""
    return _WHITESPACE.sub("", raw).upper()
