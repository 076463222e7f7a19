"""Tests for the declarative tag grammar."""

from __future__ import annotations

from typing import List

import pytest

from src.pid_tagger.pipeline import TagCategory
from src.pid_tagger.tag_patterns import TAG_PATTERNS, collapse_whitespace, normalize_tag


def _valid_matches(category: TagCategory, text: str) -> List[str]:
    found: List[str] = []
    for pattern in TAG_PATTERNS[category]:
        for match in pattern.finditer(text):
            tag = normalize_tag(match.group(0))
            if pattern.is_valid(tag) and tag not in found:
                found.append(tag)
    return found


def test_every_category_has_patterns():
    assert set(TAG_PATTERNS) == set(TagCategory)
    for patterns in TAG_PATTERNS.values():
        assert patterns


@pytest.mark.parametrize(
    "text, expected",
    [
        ("P-101", ["P-101"]),
        ("V-3701A", ["V-3701A"]),
        ("K - 2801", ["K-2801"]),
        ("TK-1001", ["TK-1001"]),
        ("P101", ["P101"]),
        ("FLT-201", ["FLT-201"]),
    ],
)
def test_equipment_shapes(text, expected):
    assert _valid_matches(TagCategory.EQUIPMENT, text) == expected


def test_equipment_rejects_unknown_prefix():
    assert _valid_matches(TagCategory.EQUIPMENT, "QQ-1234 ZZ-9999") == []


def test_equipment_allows_single_space_separator():
    assert _valid_matches(TagCategory.EQUIPMENT, "P 101") == ["P101"]
    assert _valid_matches(TagCategory.EQUIPMENT, "vessel V 3701A".upper()) == ["V3701A"]
    assert _valid_matches(TagCategory.EQUIPMENT, "TO 1001") == []


@pytest.mark.parametrize(
    "text, expected",
    [
        ("PIC-10001", ["PIC-10001"]),
        ("FT-2001", ["FT-2001"]),
        ("LIC 10001", []),
        ("TT101", ["TT101"]),
    ],
)
def test_instrument_shapes(text, expected):
    assert _valid_matches(TagCategory.INSTRUMENT, text) == expected


def test_instrument_excludes_valves_and_actuators():
    assert _valid_matches(TagCategory.INSTRUMENT, "FCV-101 PCV2001 XV-1001 HV-2002 ZZ-9999 PZ-101") == []


def test_two_letter_control_elements_are_instruments():
    text = "LV-1001 FV-2001 PV-3001"
    assert _valid_matches(TagCategory.INSTRUMENT, text) == ["LV-1001", "FV-2001", "PV-3001"]
    assert _valid_matches(TagCategory.CONTROL_VALVE, text) == []


def test_only_ascii_digits_form_tag_numbers():
    arabic_indic = "\u0661\u0660\u0661"
    assert _valid_matches(TagCategory.EQUIPMENT, f"P-{arabic_indic}") == []
    assert _valid_matches(TagCategory.INSTRUMENT, f"PIC-{arabic_indic}") == []
    assert _valid_matches(TagCategory.LINE_NUMBER, f"6-PG-{arabic_indic}0") == []


def test_control_valve_shapes():
    text = "FCV-101 PCV101 HV-2002 XV-1001A TIC-1001"
    assert _valid_matches(TagCategory.CONTROL_VALVE, text) == ["FCV-101", "PCV101", "HV-2002", "XV-1001A"]


@pytest.mark.parametrize(
    "text, expected",
    [
        ('6"-PG-10001', ['6"-PG-10001']),
        ("10''-CW-2001", ["10''-CW-2001"]),
        ("3-ST-4001", ["3-ST-4001"]),
    ],
)
def test_line_number_shapes(text, expected):
    assert _valid_matches(TagCategory.LINE_NUMBER, text) == expected


def test_segments_of_line_numbers_are_not_tags():
    text = 'LINE 6"-PG-10001'
    assert _valid_matches(TagCategory.EQUIPMENT, text) == []
    assert _valid_matches(TagCategory.INSTRUMENT, text) == []


def test_tags_do_not_start_inside_words():
    assert _valid_matches(TagCategory.EQUIPMENT, "XP-101") == []
    assert _valid_matches(TagCategory.CONTROL_VALVE, "2FCV-101") == []


def test_normalize_tag_strips_whitespace_and_uppercases():
    assert normalize_tag("k - 2801") == "K-2801"
    assert normalize_tag("pic-10001") == "PIC-10001"


def test_collapse_whitespace():
    assert collapse_whitespace("P-101\n\n  V-201\t") == "P-101 V-201 "
    assert collapse_whitespace("") == ""
