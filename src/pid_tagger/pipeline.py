"""Core data models for the P&ID tag extraction and tag sheet pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple


class TagCategory(str, Enum):
    """Closed set of tag families recognized on a drawing."""

    EQUIPMENT = "Equipment"
    INSTRUMENT = "Instrument"
    CONTROL_VALVE = "ControlValve"
    LINE_NUMBER = "LineNumber"


@dataclass(frozen=True)
class RawPage:
    """Plain text recovered from one page of a source document."""

    page_number: int
    text: str = ""


@dataclass(frozen=True)
class TagOccurrence:
    """A sighting of a tag on a page, with surrounding text for traceability."""

    page_number: int
    context: str


@dataclass(frozen=True)
class Tag:
    """A normalized tag and every page it was seen on."""

    tag: str
    category: TagCategory
    type: str
    description: str
    occurrences: Tuple[TagOccurrence, ...] = ()

    @property
    def pages(self) -> List[int]:
        return [occurrence.page_number for occurrence in self.occurrences]

    @property
    def first_context(self) -> str:
        return self.occurrences[0].context if self.occurrences else ""

    def with_occurrences(self, occurrences: Iterable[TagOccurrence]) -> "Tag":
        """Return a copy with new occurrences appended, at most one per page."""
        seen = set(self.pages)
        merged = list(self.occurrences)
        for occurrence in occurrences:
            if occurrence.page_number in seen:
                continue
            seen.add(occurrence.page_number)
            merged.append(occurrence)
        return replace(self, occurrences=tuple(merged))


@dataclass(frozen=True)
class PageTags:
    """Tags found fresh on a single page, grouped by category."""

    page_number: int
    tags: Mapping[TagCategory, Tuple[Tag, ...]] = field(default_factory=dict)

    def tags_for(self, category: TagCategory) -> Tuple[Tag, ...]:
        return tuple(self.tags.get(category, ()))

    @property
    def tags_found(self) -> int:
        return sum(len(tags) for tags in self.tags.values())


@dataclass(frozen=True)
class PageDetail:
    """Per-page tag count reported alongside the catalogue."""

    page_number: int
    tags_found: int


@dataclass(frozen=True)
class TagSummary:
    """Counters derived from catalogue contents."""

    equipment_count: int = 0
    instrument_count: int = 0
    control_valve_count: int = 0
    line_number_count: int = 0

    @property
    def total_tags(self) -> int:
        return (
            self.equipment_count
            + self.instrument_count
            + self.control_valve_count
            + self.line_number_count
        )


@dataclass(frozen=True)
class DocumentMetadata:
    """Facts about the source document and the extraction run."""

    file_name: str = ""
    file_size_bytes: int = 0
    page_count: int = 0
    extraction_timestamp: Optional[datetime] = None
    processing_duration_ms: int = 0


@dataclass(frozen=True)
class TagCatalogue:
    """Aggregated extraction result for one document."""

    equipment: Tuple[Tag, ...] = ()
    instruments: Tuple[Tag, ...] = ()
    control_valves: Tuple[Tag, ...] = ()
    line_numbers: Tuple[Tag, ...] = ()
    page_details: Tuple[PageDetail, ...] = ()
    document_metadata: DocumentMetadata = field(default_factory=DocumentMetadata)

    def tags_for(self, category: TagCategory) -> Tuple[Tag, ...]:
        return {
            TagCategory.EQUIPMENT: self.equipment,
            TagCategory.INSTRUMENT: self.instruments,
            TagCategory.CONTROL_VALVE: self.control_valves,
            TagCategory.LINE_NUMBER: self.line_numbers,
        }[category]

    def all_tags(self) -> Iterator[Tag]:
        for category in TagCategory:
            yield from self.tags_for(category)

    @property
    def summary(self) -> TagSummary:
        return TagSummary(
            equipment_count=len(self.equipment),
            instrument_count=len(self.instruments),
            control_valve_count=len(self.control_valves),
            line_number_count=len(self.line_numbers),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Plain representation used for JSON/YAML metadata and API payloads."""
        summary = self.summary
        metadata = self.document_metadata
        timestamp = metadata.extraction_timestamp
        return {
            "document_metadata": {
                "file_name": metadata.file_name,
                "file_size_bytes": metadata.file_size_bytes,
                "page_count": metadata.page_count,
                "extraction_timestamp": timestamp.isoformat() if timestamp else None,
                "processing_duration_ms": metadata.processing_duration_ms,
            },
            "summary": {
                "total_tags": summary.total_tags,
                "equipment_count": summary.equipment_count,
                "instrument_count": summary.instrument_count,
                "control_valve_count": summary.control_valve_count,
                "line_number_count": summary.line_number_count,
            },
            "tags": {
                category.value: [
                    {
                        "tag": tag.tag,
                        "type": tag.type,
                        "description": tag.description,
                        "occurrences": [
                            {"page_number": occ.page_number, "context": occ.context}
                            for occ in tag.occurrences
                        ],
                    }
                    for tag in self.tags_for(category)
                ]
                for category in TagCategory
            },
            "page_details": [
                {"page_number": detail.page_number, "tags_found": detail.tags_found}
                for detail in self.page_details
            ],
        }


@dataclass(frozen=True)
class LineNumberInfo:
    """Components parsed out of a process line tag."""

    size: str = ""
    service: str = ""
    spec: str = ""
    material: str = ""


@dataclass(frozen=True)
class ProjectInfo:
    """Project context supplied by the surrounding application."""

    name: Optional[str] = None
    client_name: Optional[str] = None
    site_default: Optional[str] = None
    unit_code_default: Optional[str] = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ProjectInfo":
        return cls(
            name=_first(data, "name"),
            client_name=_first(data, "client_name", "clientName"),
            site_default=_first(data, "site_default", "siteDefault"),
            unit_code_default=_first(data, "unit_code_default", "unitCodeDefault"),
        )


@dataclass(frozen=True)
class ProcessInfo:
    """Optional process context; overrides project site and unit defaults."""

    name: Optional[str] = None
    site: Optional[str] = None
    unit_code: Optional[str] = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ProcessInfo":
        return cls(
            name=_first(data, "name"),
            site=_first(data, "site"),
            unit_code=_first(data, "unit_code", "unitCode"),
        )


@dataclass(frozen=True)
class ReportArtifact:
    """Serialized tag sheet and the filename suggested for it."""

    content: bytes
    suggested_file_name: str


@dataclass
class TagSheetResult:
    """Bundle produced by a full pipeline run over one document."""

    catalogue: TagCatalogue
    artifact: ReportArtifact
    xlsx_path: Optional[Path] = None
    metadata_path: Optional[Path] = None
    stage_durations: Dict[str, float] = field(default_factory=dict)


def _first(data: Mapping[str, Any], *keys: str) -> Optional[str]:
    for key in keys:
        value = data.get(key)
        if value not in (None, ""):
            return str(value)
    return None
