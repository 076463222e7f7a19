"""Tag sheet assembly: catalogue + project context -> sheet sections -> XLSX artifact.

Sections are plain tables of typed cells. Styling is only named here (title,
section, header, ...); ``xlsx_writer`` decides how each style is rendered.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from config import Settings
from .classification import (
    CRITICALITY_LEGEND,
    EQUIPMENT_CRITICALITY,
    EQUIPMENT_SAFETY_CLASS,
    ISA_FIRST_LETTERS,
    ISA_FUNCTION_LETTERS,
    REFERENCE_FIRST_LETTERS,
    REFERENCE_FUNCTION_LETTERS,
    VALVE_CRITICALITY,
    identify_subsystem,
    identify_system,
    instrument_criticality,
    instrument_safety_class,
    parse_line_number,
    valve_safety_class,
)
from .logging_utils import get_logger
from .pipeline import ProcessInfo, ProjectInfo, ReportArtifact, Tag, TagCatalogue, TagCategory
from .xlsx_writer import WorkbookProperties, write_workbook

logger = get_logger(__name__)

CellValue = Union[str, int, float, None]

PLACEHOLDER = "N/A"
PENDING = "Pending"

# Named cell styles understood by the XLSX writer.
TITLE = "title"
SECTION = "section"
HEADER = "header"
BODY = "body"
STATUS = "status"


@dataclass(frozen=True)
class SheetCell:
    value: CellValue
    style: str = BODY


@dataclass
class SheetSection:
    """One named sheet: rows of typed cells plus layout hints."""

    name: str
    rows: List[List[SheetCell]] = field(default_factory=list)
    column_widths: List[int] = field(default_factory=list)
    header_row: Optional[int] = None

    @property
    def values(self) -> List[List[CellValue]]:
        return [[cell.value for cell in row] for row in self.rows]

    @property
    def data_rows(self) -> List[List[CellValue]]:
        """Rows below the table header; empty for free-form sheets."""
        if self.header_row is None:
            return []
        return self.values[self.header_row + 1 :]

    def add_row(self, values: Sequence[CellValue] = (), style: str = BODY) -> None:
        self.rows.append([SheetCell(value, style) for value in values])

    def add_styled_row(self, cells: Sequence[Tuple[CellValue, str]]) -> None:
        self.rows.append([SheetCell(value, style) for value, style in cells])


@dataclass(frozen=True)
class TagColumn:
    field: str
    header: str
    width: int


TAG_SHEET_COLUMNS: Tuple[TagColumn, ...] = (
    TagColumn("sno", "S.No", 10),
    TagColumn("tagNumber", "Tag Number", 20),
    TagColumn("tagDescription", "Tag Description", 40),
    TagColumn("tagType", "Tag Type", 20),
    TagColumn("service", "Service", 25),
    TagColumn("pidNumber", "P&ID Number", 20),
    TagColumn("pidRevision", "P&ID Revision", 15),
    TagColumn("area", "Area", 15),
    TagColumn("unit", "Unit", 15),
    TagColumn("system", "System", 20),
    TagColumn("subSystem", "Sub-System", 20),
    TagColumn("equipmentType", "Equipment Type", 20),
    TagColumn("manufacturer", "Manufacturer", 25),
    TagColumn("model", "Model", 20),
    TagColumn("serialNumber", "Serial Number", 20),
    TagColumn("capacity", "Capacity", 15),
    TagColumn("operatingPressure", "Operating Pressure", 20),
    TagColumn("operatingTemperature", "Operating Temperature", 22),
    TagColumn("designPressure", "Design Pressure", 18),
    TagColumn("designTemperature", "Design Temperature", 20),
    TagColumn("material", "Material", 20),
    TagColumn("insulation", "Insulation", 15),
    TagColumn("paintSpec", "Paint Specification", 20),
    TagColumn("criticalityRating", "Criticality Rating", 18),
    TagColumn("safetyClass", "Safety Classification", 20),
    TagColumn("comments", "Comments", 30),
    TagColumn("dateAdded", "Date Added", 15),
    TagColumn("addedBy", "Added By", 20),
    TagColumn("verificationStatus", "Verification Status", 20),
    TagColumn("verifiedBy", "Verified By", 20),
    TagColumn("verificationDate", "Verification Date", 18),
)

LINE_LIST_HEADERS: Tuple[str, ...] = (
    "S.No", "Line Number", "Size", "Service Code", "Spec",
    "From", "To", "P&ID Number", "Operating Press.", "Operating Temp.",
    "Design Press.", "Design Temp.", "Test Press.", "Insulation",
    "Heat Tracing", "Material", "Comments",
)

MASTER_HEADERS: Tuple[str, ...] = (
    "S.No", "Tag Number", "Type", "Category", "Description", "Page(s)", "Status",
)
MASTER_WIDTHS: Tuple[int, ...] = (8, 20, 20, 15, 40, 12, 12)


@dataclass(frozen=True)
class TagSheetProfile:
    """How one category is rendered on its tag sheet."""

    sheet_name: str
    tag_type: str
    master_label: str
    equipment_type: Callable[[Tag], str]
    criticality: Callable[[Tag], str]
    safety_class: Callable[[Tag], str]


TAG_SHEET_PROFILES: Dict[TagCategory, TagSheetProfile] = {
    TagCategory.EQUIPMENT: TagSheetProfile(
        sheet_name="Equipment",
        tag_type="Equipment",
        master_label="Equipment",
        equipment_type=lambda tag: tag.type,
        criticality=lambda tag: EQUIPMENT_CRITICALITY,
        safety_class=lambda tag: EQUIPMENT_SAFETY_CLASS,
    ),
    TagCategory.INSTRUMENT: TagSheetProfile(
        sheet_name="Instruments",
        tag_type="Instrument",
        master_label="Instrument",
        equipment_type=lambda tag: "Instrumentation",
        criticality=lambda tag: instrument_criticality(tag.type),
        safety_class=lambda tag: instrument_safety_class(tag.type),
    ),
    TagCategory.CONTROL_VALVE: TagSheetProfile(
        sheet_name="Valves",
        tag_type="Valve",
        master_label="Valve",
        equipment_type=lambda tag: "Control Valve",
        criticality=lambda tag: VALVE_CRITICALITY,
        safety_class=lambda tag: valve_safety_class(tag.tag),
    ),
}
LINE_MASTER_LABEL = "Line"

SECTION_NAMES: Tuple[str, ...] = (
    "Summary",
    "Equipment",
    "Instruments",
    "Valves",
    "Line List",
    "Master Tag List",
    "Statistics",
    "Configuration",
)


@dataclass(frozen=True)
class BuildContext:
    """Project/process identifiers with placeholders already substituted."""

    project_name: str
    client: str
    site: str
    unit: str
    process_name: str
    pid_number: str
    author: str
    generated_at: datetime

    @property
    def build_date(self) -> str:
        return self.generated_at.strftime("%Y-%m-%d")


ProjectLike = Union[ProjectInfo, Mapping[str, Any], None]
ProcessLike = Union[ProcessInfo, Mapping[str, Any], None]


def calculate_percentage(value: int, total: int) -> str:
    """Percentage with one decimal, e.g. ``33.3%``; whole numbers drop ``.0``."""
    if total == 0:
        return "0%"
    formatted = f"{value / total * 100:.1f}"
    if formatted.endswith(".0"):
        formatted = formatted[:-2]
    return f"{formatted}%"


def sanitize_name(name: str) -> str:
    return re.sub(r"[^a-zA-Z0-9]", "_", name)


class TagSheetBuilder:
    """Render a tag catalogue as a multi-sheet tag creation workbook."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or Settings()

    def build(
        self,
        catalogue: TagCatalogue,
        project: ProjectLike,
        process: ProcessLike = None,
        metadata: Optional[Mapping[str, Any]] = None,
        *,
        generated_at: Optional[datetime] = None,
    ) -> ReportArtifact:
        """Build every section and serialize the workbook."""
        project_info = _coerce_project(project)
        process_info = _coerce_process(process)
        context = self._context(project_info, process_info, metadata, generated_at)
        sections = self._sections(catalogue, context)

        properties = WorkbookProperties(
            title=f"Tag Creation Sheet - {context.project_name}",
            subject=f"P&ID Tags for {process_info.name if process_info and process_info.name else context.project_name}",
            author=context.author,
            company=context.client,
            keywords="P&ID, Tags, Equipment, Instrumentation",
        )
        content = write_workbook(sections, properties)
        file_name = self.generate_file_name(project_info, process_info, generated_at=context.generated_at)
        logger.info(
            "Built tag sheet %s (%s sections, %s tags, %s bytes)",
            file_name,
            len(sections),
            catalogue.summary.total_tags,
            len(content),
        )
        return ReportArtifact(content=content, suggested_file_name=file_name)

    def build_sections(
        self,
        catalogue: TagCatalogue,
        project: ProjectLike,
        process: ProcessLike = None,
        metadata: Optional[Mapping[str, Any]] = None,
        *,
        generated_at: Optional[datetime] = None,
    ) -> List[SheetSection]:
        """Return the in-memory sections without serializing them."""
        context = self._context(_coerce_project(project), _coerce_process(process), metadata, generated_at)
        return self._sections(catalogue, context)

    def generate_file_name(
        self,
        project: ProjectLike,
        process: ProcessLike = None,
        label: Optional[str] = None,
        *,
        generated_at: Optional[datetime] = None,
    ) -> str:
        project_info = _coerce_project(project)
        process_info = _coerce_process(process)
        stamp = (generated_at or datetime.now()).strftime("%Y-%m-%d")
        project_name = sanitize_name(project_info.name or PLACEHOLDER)
        process_name = (
            sanitize_name(process_info.name) if process_info and process_info.name else "AllProcesses"
        )
        return f"{project_name}_{process_name}_{label or self.settings.sheet_label}_{stamp}.xlsx"

    def _context(
        self,
        project: ProjectInfo,
        process: Optional[ProcessInfo],
        metadata: Optional[Mapping[str, Any]],
        generated_at: Optional[datetime],
    ) -> BuildContext:
        process = process or ProcessInfo()
        project_name = project.name or PLACEHOLDER
        author = (metadata or {}).get("author") or self.settings.default_author
        return BuildContext(
            project_name=project_name,
            client=project.client_name or self.settings.default_client,
            site=process.site or project.site_default or PLACEHOLDER,
            unit=process.unit_code or project.unit_code_default or PLACEHOLDER,
            process_name=process.name or PLACEHOLDER,
            pid_number=process.name or project_name,
            author=str(author),
            generated_at=generated_at or datetime.now(),
        )

    def _sections(self, catalogue: TagCatalogue, context: BuildContext) -> List[SheetSection]:
        return [
            self._summary_section(catalogue, context),
            self._tag_section(TagCategory.EQUIPMENT, catalogue.equipment, context),
            self._tag_section(TagCategory.INSTRUMENT, catalogue.instruments, context),
            self._tag_section(TagCategory.CONTROL_VALVE, catalogue.control_valves, context),
            self._line_list_section(catalogue.line_numbers, context),
            self._master_section(catalogue),
            self._statistics_section(catalogue),
            self._configuration_section(context),
        ]

    def _summary_section(self, catalogue: TagCatalogue, context: BuildContext) -> SheetSection:
        summary = catalogue.summary
        metadata = catalogue.document_metadata
        extracted = metadata.extraction_timestamp
        section = SheetSection(name="Summary", column_widths=[30, 50])
        section.add_row(["TAG CREATION SHEET - SUMMARY"], TITLE)
        section.add_row()
        section.add_row(["Project Information"], SECTION)
        section.add_row(["Project Name:", context.project_name])
        section.add_row(["Client:", context.client])
        section.add_row(["Site:", context.site])
        section.add_row(["Unit:", context.unit])
        section.add_row(["Process:", context.process_name])
        section.add_row()
        section.add_row(["Document Information"], SECTION)
        section.add_row(["P&ID File:", metadata.file_name or PLACEHOLDER])
        section.add_row(["Pages:", metadata.page_count])
        section.add_row(
            ["Extraction Date:", extracted.strftime("%Y-%m-%d %H:%M:%S") if extracted else PLACEHOLDER]
        )
        section.add_row(["Processing Time:", f"{metadata.processing_duration_ms}ms"])
        section.add_row()
        section.add_row(["Tag Summary"], SECTION)
        section.add_row(["Total Tags Extracted:", summary.total_tags])
        section.add_row(["Equipment Tags:", summary.equipment_count])
        section.add_row(["Instrument Tags:", summary.instrument_count])
        section.add_row(["Control Valves:", summary.control_valve_count])
        section.add_row(["Line Numbers:", summary.line_number_count])
        section.add_row()
        section.add_row(["Verification Status"], SECTION)
        section.add_row(["Unverified:", summary.total_tags])
        section.add_row(["Verified:", 0])
        section.add_row(["Rejected:", 0])
        section.add_row()
        section.add_row(["Generated By:", "AIMS - Asset Information Management System"])
        section.add_row(["Version:", self.settings.app_version])
        section.add_row(["Date:", context.generated_at.strftime("%Y-%m-%d %H:%M:%S")])
        return section

    def _tag_section(
        self, category: TagCategory, tags: Sequence[Tag], context: BuildContext
    ) -> SheetSection:
        profile = TAG_SHEET_PROFILES[category]
        section = SheetSection(
            name=profile.sheet_name,
            column_widths=[column.width for column in TAG_SHEET_COLUMNS],
            header_row=0,
        )
        section.add_row([column.header for column in TAG_SHEET_COLUMNS], HEADER)
        for index, tag in enumerate(tags, start=1):
            values = {
                "sno": index,
                "tagNumber": tag.tag,
                "tagDescription": tag.description,
                "tagType": profile.tag_type,
                "service": tag.type,
                "pidNumber": context.pid_number,
                "pidRevision": self.settings.pid_revision,
                "area": context.site,
                "unit": context.unit,
                "system": identify_system(tag.tag),
                "subSystem": identify_subsystem(tag.tag),
                "equipmentType": profile.equipment_type(tag),
                "criticalityRating": profile.criticality(tag),
                "safetyClass": profile.safety_class(tag),
                "dateAdded": context.build_date,
                "addedBy": context.author,
                "verificationStatus": PENDING,
            }
            section.add_row([values.get(column.field, "") for column in TAG_SHEET_COLUMNS])
        return section

    def _line_list_section(self, lines: Sequence[Tag], context: BuildContext) -> SheetSection:
        section = SheetSection(
            name="Line List",
            column_widths=[15] * len(LINE_LIST_HEADERS),
            header_row=0,
        )
        section.add_row(LINE_LIST_HEADERS, HEADER)
        for index, tag in enumerate(lines, start=1):
            info = parse_line_number(tag.tag)
            # Operating/design conditions are left blank for manual completion.
            section.add_row(
                [
                    index,
                    tag.tag,
                    info.size,
                    info.service,
                    info.spec,
                    "",
                    "",
                    context.pid_number,
                    "",
                    "",
                    "",
                    "",
                    "",
                    "",
                    "",
                    info.material,
                    tag.first_context,
                ]
            )
        return section

    def _master_section(self, catalogue: TagCatalogue) -> SheetSection:
        section = SheetSection(name="Master Tag List", column_widths=list(MASTER_WIDTHS), header_row=0)
        section.add_row(MASTER_HEADERS, HEADER)
        labels = {category: profile.master_label for category, profile in TAG_SHEET_PROFILES.items()}
        labels[TagCategory.LINE_NUMBER] = LINE_MASTER_LABEL
        for sno, tag in enumerate(catalogue.all_tags(), start=1):
            pages = ", ".join(str(page) for page in tag.pages)
            section.add_styled_row(
                [
                    (sno, BODY),
                    (tag.tag, BODY),
                    (tag.type, BODY),
                    (labels[tag.category], BODY),
                    (tag.description, BODY),
                    (pages, BODY),
                    (PENDING, STATUS),
                ]
            )
        return section

    def _statistics_section(self, catalogue: TagCatalogue) -> SheetSection:
        summary = catalogue.summary
        total = summary.total_tags
        section = SheetSection(name="Statistics", column_widths=[20, 15, 15])
        section.add_row(["TAG EXTRACTION STATISTICS"], TITLE)
        section.add_row()
        section.add_row(["Category", "Count", "Percentage"], SECTION)
        for label, count in (
            ("Equipment", summary.equipment_count),
            ("Instruments", summary.instrument_count),
            ("Control Valves", summary.control_valve_count),
            ("Line Numbers", summary.line_number_count),
        ):
            section.add_row([label, count, calculate_percentage(count, total)])
        section.add_row()
        section.add_row(["Total Tags", total, calculate_percentage(total, total)])
        section.add_row()
        section.add_row(["Page Analysis"], TITLE)
        section.add_row(["Page Number", "Tags Found"], SECTION)
        for detail in catalogue.page_details:
            section.add_row([f"Page {detail.page_number}", detail.tags_found])

        type_counts: Dict[str, int] = {}
        for tag in catalogue.equipment:
            type_counts[tag.type] = type_counts.get(tag.type, 0) + 1
        section.add_row()
        section.add_row(["Equipment Types"], TITLE)
        section.add_row(["Type", "Count"], SECTION)
        for tag_type, count in type_counts.items():
            section.add_row([tag_type, count])
        return section

    def _configuration_section(self, context: BuildContext) -> SheetSection:
        section = SheetSection(name="Configuration", column_widths=[25, 45])
        section.add_row(["CONFIGURATION & SETTINGS"], SECTION)
        section.add_row()
        section.add_row(["Project Configuration"], SECTION)
        section.add_row(["Parameter", "Value"], HEADER)
        section.add_row(["Project Name", context.project_name])
        section.add_row(["Client", context.client])
        section.add_row(["Site Code", context.site])
        section.add_row(["Unit Code", context.unit])
        section.add_row(["Process Name", context.process_name])
        section.add_row()
        section.add_row(["ISA 5.1 Standard Compliance"], SECTION)
        section.add_row(["First Letter", "Variable Measured"], HEADER)
        for letter in REFERENCE_FIRST_LETTERS:
            section.add_row([letter, ISA_FIRST_LETTERS[letter]])
        section.add_row()
        section.add_row(["Succeeding Letters", "Function"], HEADER)
        for letter in REFERENCE_FUNCTION_LETTERS:
            section.add_row([letter, ISA_FUNCTION_LETTERS[letter]])
        section.add_row()
        section.add_row(["Criticality Matrix"], SECTION)
        section.add_row(["Rating", "Description"], HEADER)
        for rating, description in CRITICALITY_LEGEND.items():
            section.add_row([rating, description])
        return section


def _coerce_project(project: ProjectLike) -> ProjectInfo:
    if project is None:
        return ProjectInfo()
    if isinstance(project, ProjectInfo):
        return project
    return ProjectInfo.from_mapping(project)


def _coerce_process(process: ProcessLike) -> Optional[ProcessInfo]:
    if process is None or isinstance(process, ProcessInfo):
        return process
    return ProcessInfo.from_mapping(process)
