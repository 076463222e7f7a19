"""Serialize sheet sections into an XLSX workbook held in memory."""

from __future__ import annotations

import io
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, Sequence

import xlsxwriter

from .logging_utils import get_logger

if TYPE_CHECKING:
    from .sheet_builder import SheetSection

logger = get_logger(__name__)

STYLE_FORMATS: Dict[str, Dict[str, Any]] = {
    "title": {"bold": True, "font_size": 16},
    "section": {"bold": True, "font_size": 12, "bg_color": "#D9E1F2"},
    "header": {
        "bold": True,
        "font_color": "#FFFFFF",
        "bg_color": "#4472C4",
        "align": "center",
        "valign": "vcenter",
        "border": 1,
    },
    "body": {},
    "status": {"bg_color": "#FFF2CC"},
}


@dataclass(frozen=True)
class WorkbookProperties:
    title: str = ""
    subject: str = ""
    author: str = ""
    company: str = ""
    keywords: str = ""


def write_workbook(sections: Sequence["SheetSection"], properties: WorkbookProperties) -> bytes:
    """Render ``sections`` in order, one worksheet each, and return the file bytes."""
    buffer = io.BytesIO()
    workbook = xlsxwriter.Workbook(buffer, {"in_memory": True})
    workbook.set_properties(
        {
            "title": properties.title,
            "subject": properties.subject,
            "author": properties.author,
            "company": properties.company,
            "keywords": properties.keywords,
        }
    )
    formats = {style: workbook.add_format(options) for style, options in STYLE_FORMATS.items()}

    for section in sections:
        worksheet = workbook.add_worksheet(section.name)
        for column, width in enumerate(section.column_widths):
            worksheet.set_column(column, column, width)

        for row_index, row in enumerate(section.rows):
            for column, cell in enumerate(row):
                cell_format = formats.get(cell.style, formats["body"])
                # Text is always written verbatim so page snippets never become formulas.
                if isinstance(cell.value, (int, float)):
                    worksheet.write_number(row_index, column, cell.value, cell_format)
                elif cell.value:
                    worksheet.write_string(row_index, column, str(cell.value), cell_format)
                else:
                    worksheet.write_blank(row_index, column, None, cell_format)

        if section.header_row is not None and section.rows:
            width = len(section.rows[section.header_row])
            worksheet.freeze_panes(section.header_row + 1, 0)
            worksheet.autofilter(section.header_row, 0, len(section.rows) - 1, width - 1)

    workbook.close()
    content = buffer.getvalue()
    logger.debug("Serialized %s worksheets into %s bytes", len(sections), len(content))
    return content
