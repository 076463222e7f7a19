"""Tests for page scanning and catalogue aggregation."""

from __future__ import annotations

import logging

from config import Settings
from src.pid_tagger.pipeline import RawPage, TagCategory
from src.pid_tagger.tag_extractor import TagExtractor

SCENARIO_TEXT = (
    'Pump P-101 discharges to V-3701A via line 6"-PG-10001, '
    "controlled by PIC-10001 through FCV-101."
)


def _tags(catalogue, category):
    return [tag.tag for tag in catalogue.tags_for(category)]


def test_single_page_scenario():
    catalogue = TagExtractor().extract([RawPage(1, SCENARIO_TEXT)], file_name="unit.pdf", file_size_bytes=42)

    assert _tags(catalogue, TagCategory.EQUIPMENT) == ["P-101", "V-3701A"]
    assert [tag.type for tag in catalogue.equipment] == ["Pump", "Vessel"]
    assert _tags(catalogue, TagCategory.INSTRUMENT) == ["PIC-10001"]
    assert _tags(catalogue, TagCategory.CONTROL_VALVE) == ["FCV-101"]
    assert _tags(catalogue, TagCategory.LINE_NUMBER) == ['6"-PG-10001']
    assert catalogue.summary.total_tags == 5

    metadata = catalogue.document_metadata
    assert metadata.file_name == "unit.pdf"
    assert metadata.file_size_bytes == 42
    assert metadata.page_count == 1
    assert metadata.extraction_timestamp is not None
    assert metadata.processing_duration_ms >= 0


def test_tag_on_several_pages_is_linked():
    pages = [
        RawPage(1, "Compressor K-2801 suction"),
        RawPage(2, "nothing here"),
        RawPage(3, "K-2801 discharge"),
        RawPage(7, "see K - 2801"),
    ]
    catalogue = TagExtractor().extract(pages)

    assert len(catalogue.equipment) == 1
    tag = catalogue.equipment[0]
    assert tag.tag == "K-2801"
    assert tag.pages == [1, 3, 7]
    assert len(tag.occurrences) == 3
    assert tag.first_context == "Compressor K-2801 suction"


def test_invalid_prefix_is_discarded_everywhere(caplog):
    with caplog.at_level(logging.DEBUG):
        catalogue = TagExtractor().extract([RawPage(1, "marker ZZ-9999 near P-101")])

    assert all("ZZ-9999" not in _tags(catalogue, category) for category in TagCategory)
    assert _tags(catalogue, TagCategory.EQUIPMENT) == ["P-101"]
    assert any("ZZ-9999" in record.getMessage() for record in caplog.records)


def test_repeated_tag_on_one_page_counts_once():
    catalogue = TagExtractor().extract([RawPage(1, "P-101 feeds P-101 and p-101")])

    assert _tags(catalogue, TagCategory.EQUIPMENT) == ["P-101"]
    assert catalogue.equipment[0].pages == [1]
    assert catalogue.page_details[0].tags_found == 1


def test_lowercase_and_spaced_tags_are_normalized():
    catalogue = TagExtractor().extract([RawPage(1, "compressor k - 2801 and pic-10001")])

    assert _tags(catalogue, TagCategory.EQUIPMENT) == ["K-2801"]
    assert _tags(catalogue, TagCategory.INSTRUMENT) == ["PIC-10001"]


def test_tag_matching_two_categories_is_kept_in_both():
    catalogue = TagExtractor().extract([RawPage(1, "TT-1001 on tank TK-1001")])

    assert "TK-1001" in _tags(catalogue, TagCategory.EQUIPMENT)
    assert "TK-1001" in _tags(catalogue, TagCategory.INSTRUMENT)
    assert "TT-1001" in _tags(catalogue, TagCategory.INSTRUMENT)


def test_page_details_follow_input_order():
    pages = [RawPage(1, SCENARIO_TEXT), RawPage(2, ""), RawPage(3, "P-101 again")]
    catalogue = TagExtractor().extract(pages)

    assert [(detail.page_number, detail.tags_found) for detail in catalogue.page_details] == [
        (1, 5),
        (2, 0),
        (3, 1),
    ]
    # P-101 is already known, so it does not grow the catalogue.
    assert catalogue.summary.total_tags == 5
    assert catalogue.equipment[0].pages == [1, 3]


def test_empty_input_gives_empty_catalogue():
    catalogue = TagExtractor().extract([])

    assert catalogue.summary.total_tags == 0
    assert catalogue.page_details == ()
    assert catalogue.document_metadata.page_count == 0


def test_extraction_is_idempotent():
    pages = [RawPage(1, SCENARIO_TEXT), RawPage(2, "K-2801 and P-101")]
    extractor = TagExtractor()

    first = extractor.extract(pages)
    second = extractor.extract(pages)

    for category in TagCategory:
        assert first.tags_for(category) == second.tags_for(category)
    assert first.page_details == second.page_details


def test_context_window_is_configurable():
    text = "0123456789 P-101 0123456789"
    extractor = TagExtractor(Settings(context_window=3))

    catalogue = extractor.extract([RawPage(1, text)])

    assert catalogue.equipment[0].first_context == "89 P-101 01"


def test_context_keeps_original_casing():
    catalogue = TagExtractor().extract([RawPage(1, "Feed pump p-101 runs")])

    assert catalogue.equipment[0].tag == "P-101"
    assert catalogue.equipment[0].first_context == "Feed pump p-101 runs"


def test_to_dict_shape():
    catalogue = TagExtractor().extract([RawPage(1, SCENARIO_TEXT)])
    data = catalogue.to_dict()

    assert data["summary"]["total_tags"] == 5
    assert data["tags"]["Equipment"][0]["tag"] == "P-101"
    assert data["tags"]["Equipment"][0]["occurrences"][0]["page_number"] == 1
    assert data["page_details"] == [{"page_number": 1, "tags_found": 5}]


def test_two_letter_control_elements_are_recorded_as_instruments():
    text = "Level loop LIC-1001 drives LV-1001; flow FV-2001 and PV-3001."
    catalogue = TagExtractor().extract([RawPage(1, text)])

    assert _tags(catalogue, TagCategory.INSTRUMENT) == ["LIC-1001", "LV-1001", "FV-2001", "PV-3001"]
    assert catalogue.instruments[1].type == "Level Valve"
    assert _tags(catalogue, TagCategory.CONTROL_VALVE) == []


def test_space_separated_equipment_is_normalized():
    catalogue = TagExtractor().extract([RawPage(1, "Pump P 101 and vessel V 3701A")])

    assert _tags(catalogue, TagCategory.EQUIPMENT) == ["P101", "V3701A"]
    assert [tag.type for tag in catalogue.equipment] == ["Pump", "Vessel"]


def test_context_is_taken_from_the_accepted_match():
    text = "XP-101 " + "x" * 40 + " feed P-101 outlet"
    catalogue = TagExtractor(Settings(context_window=5)).extract([RawPage(1, text)])

    assert _tags(catalogue, TagCategory.EQUIPMENT) == ["P-101"]
    assert catalogue.equipment[0].first_context == "feed P-101 outl"
