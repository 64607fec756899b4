from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from io import BytesIO
from typing import Protocol
from zoneinfo import ZoneInfo

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from punchclock.errors import ApiError, EmptyReport, InternalError
from punchclock.models import PunchEvent
from punchclock.services.daily_records import aggregate_daily_records
from punchclock.services.event_store import EventStore
from punchclock.services.local_time import attendance_timezone
from punchclock.services.worked_hours import NOT_APPLICABLE, format_worked_duration

logger = logging.getLogger("punchclock.exports")

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
SHEET_TITLE = "Daily Summary"

REPORT_HEADERS = [
    "Employee",
    "Date",
    "Entry Time",
    "Exit Time",
    "Worked Hours",
]

HEADER_FILL = PatternFill(fill_type="solid", fgColor="0B4F73")
ZEBRA_FILL = PatternFill(fill_type="solid", fgColor="F7FBFE")
HEADER_FONT = Font(bold=True, color="FFFFFF")

THIN_SIDE = Side(style="thin", color="D5E2EC")
THIN_BORDER = Border(left=THIN_SIDE, right=THIN_SIDE, top=THIN_SIDE, bottom=THIN_SIDE)


@dataclass(frozen=True)
class ReportRow:
    employee: str
    date: str
    entry_time: str
    exit_time: str
    worked_hours: str

    def as_list(self) -> list[str]:
        return [self.employee, self.date, self.entry_time, self.exit_time, self.worked_hours]


class DocumentSink(Protocol):
    content_type: str

    def build_tabular_document(self, rows: Sequence[ReportRow]) -> bytes: ...


def _local_time_label(value: datetime | None, tz: ZoneInfo) -> str:
    if value is None:
        return NOT_APPLICABLE
    return value.astimezone(tz).strftime("%H:%M:%S")


def build_report_rows(events: Sequence[PunchEvent], tz: ZoneInfo | None = None) -> list[ReportRow]:
    if not events:
        raise EmptyReport()

    zone = tz or attendance_timezone()
    records = aggregate_daily_records(events, zone)
    if not records:
        raise EmptyReport()

    return [
        ReportRow(
            employee=record.identity,
            date=record.day.isoformat(),
            entry_time=_local_time_label(record.entry, zone),
            exit_time=_local_time_label(record.exit, zone),
            worked_hours=format_worked_duration(record.worked_duration),
        )
        for record in records.values()
    ]


def sort_report_rows(rows: Sequence[ReportRow]) -> list[ReportRow]:
    return sorted(rows, key=lambda row: (row.employee, row.date))


def _style_header(ws: Worksheet, row: int = 1) -> None:
    for cell in ws[row]:
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        cell.alignment = Alignment(horizontal="center", vertical="center", wrap_text=True)
        cell.border = THIN_BORDER


def _style_body(ws: Worksheet, *, data_start_row: int) -> None:
    for row_idx in range(data_start_row, ws.max_row + 1):
        zebra = (row_idx - data_start_row) % 2 == 1
        for cell in ws[row_idx]:
            cell.border = THIN_BORDER
            if zebra:
                cell.fill = ZEBRA_FILL
            if cell.column > 1:
                cell.alignment = Alignment(horizontal="center", vertical="center")


def _auto_width(ws: Worksheet) -> None:
    for column_cells in ws.iter_cols(min_row=1, max_row=ws.max_row, min_col=1, max_col=ws.max_column):
        max_len = 0
        col_letter = get_column_letter(column_cells[0].column)
        for cell in column_cells:
            value = "" if cell.value is None else str(cell.value)
            max_len = max(max_len, len(value))
        ws.column_dimensions[col_letter].width = min(max_len + 2, 45)


class XlsxDocumentSink:
    content_type = XLSX_MEDIA_TYPE

    def __init__(self, sheet_title: str = SHEET_TITLE) -> None:
        self.sheet_title = sheet_title

    def build_tabular_document(self, rows: Sequence[ReportRow]) -> bytes:
        wb = Workbook()
        ws = wb.active
        ws.title = self.sheet_title
        ws.append(REPORT_HEADERS)
        for row in rows:
            ws.append(row.as_list())

        _style_header(ws)
        _style_body(ws, data_start_row=2)
        _auto_width(ws)
        ws.freeze_panes = "A2"

        stream = BytesIO()
        wb.save(stream)
        return stream.getvalue()


def generate_report(
    store: EventStore,
    sink: DocumentSink,
    *,
    tz: ZoneInfo | None = None,
    start_utc: datetime | None = None,
    end_utc: datetime | None = None,
) -> bytes:
    events = store.query_all(start_utc, end_utc)
    logger.info("report_events_loaded", extra={"event_count": len(events)})

    try:
        rows = build_report_rows(events, tz)
        payload = sink.build_tabular_document(rows)
    except ApiError:
        raise
    except Exception as exc:
        logger.exception("report_generation_failed", extra={"event_count": len(events)})
        raise InternalError("Error generating the report.") from exc

    logger.info("report_generated", extra={"row_count": len(rows), "size_bytes": len(payload)})
    return payload
