"""Cross-page aggregation of page-level tags into a catalogue index.

Aggregation is an explicit fold: ``reduce(merge_page, pages, empty_index())``.
``merge_page`` never mutates its inputs, so page scans can run independently
and be merged afterwards in page order.
"""

from __future__ import annotations

from functools import reduce
from typing import Dict, Iterable, Mapping

from .logging_utils import get_logger
from .pipeline import PageTags, Tag, TagCategory

logger = get_logger(__name__)

TagIndex = Mapping[TagCategory, Mapping[str, Tag]]


def empty_index() -> Dict[TagCategory, Dict[str, Tag]]:
    return {category: {} for category in TagCategory}


def merge_page(index: TagIndex, page: PageTags) -> Dict[TagCategory, Dict[str, Tag]]:
    """Return a new index with one page's tags merged in."""
    merged: Dict[TagCategory, Dict[str, Tag]] = {}
    for category in TagCategory:
        current = dict(index.get(category, {}))
        for tag in page.tags_for(category):
            existing = current.get(tag.tag)
            if existing is None:
                current[tag.tag] = tag
                continue
            logger.debug(
                "Linking %s '%s' on page %s to earlier pages %s",
                category.value,
                tag.tag,
                page.page_number,
                existing.pages,
            )
            current[tag.tag] = existing.with_occurrences(tag.occurrences)
        merged[category] = current
    return merged


def link_pages(pages: Iterable[PageTags]) -> Dict[TagCategory, Dict[str, Tag]]:
    """Fold page results, in the order given, into a single index."""
    return reduce(merge_page, pages, empty_index())
