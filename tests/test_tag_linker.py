"""Tests for the cross-page merge fold."""

from __future__ import annotations

from src.pid_tagger.pipeline import PageTags, Tag, TagCategory, TagOccurrence
from src.pid_tagger.tag_linker import empty_index, link_pages, merge_page


def _tag(name: str, page_number: int, category: TagCategory = TagCategory.EQUIPMENT) -> Tag:
    return Tag(
        tag=name,
        category=category,
        type="Compressor",
        description=f"Compressor - {name}",
        occurrences=(TagOccurrence(page_number=page_number, context=f"page {page_number}"),),
    )


def _page(page_number: int, *tags: Tag) -> PageTags:
    grouped = {}
    for tag in tags:
        grouped.setdefault(tag.category, []).append(tag)
    return PageTags(page_number=page_number, tags={k: tuple(v) for k, v in grouped.items()})


def test_empty_index_has_every_category():
    assert set(empty_index()) == set(TagCategory)


def test_merge_page_does_not_mutate_input():
    index = empty_index()
    merged = merge_page(index, _page(1, _tag("K-2801", 1)))

    assert index[TagCategory.EQUIPMENT] == {}
    assert list(merged[TagCategory.EQUIPMENT]) == ["K-2801"]


def test_link_pages_appends_occurrences_in_order():
    pages = [_page(n, _tag("K-2801", n)) for n in (1, 3, 7)]

    index = link_pages(pages)

    tag = index[TagCategory.EQUIPMENT]["K-2801"]
    assert tag.pages == [1, 3, 7]
    assert [occ.context for occ in tag.occurrences] == ["page 1", "page 3", "page 7"]


def test_first_sighting_order_is_kept():
    index = link_pages(
        [
            _page(1, _tag("P-101", 1)),
            _page(2, _tag("V-201", 2), _tag("P-101", 2)),
        ]
    )

    assert list(index[TagCategory.EQUIPMENT]) == ["P-101", "V-201"]


def test_repeated_page_number_is_recorded_once():
    index = link_pages([_page(1, _tag("K-2801", 1)), _page(1, _tag("K-2801", 1))])

    assert index[TagCategory.EQUIPMENT]["K-2801"].pages == [1]


def test_categories_are_merged_independently():
    index = link_pages(
        [
            _page(1, _tag("TK-1001", 1), _tag("TK-1001", 1, TagCategory.INSTRUMENT)),
            _page(2, _tag("TK-1001", 2, TagCategory.INSTRUMENT)),
        ]
    )

    assert index[TagCategory.EQUIPMENT]["TK-1001"].pages == [1]
    assert index[TagCategory.INSTRUMENT]["TK-1001"].pages == [1, 2]
