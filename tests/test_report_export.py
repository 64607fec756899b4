from __future__ import annotations

import unittest
from datetime import datetime, timezone
from io import BytesIO
from types import SimpleNamespace
from zoneinfo import ZoneInfo

from openpyxl import load_workbook

from punchclock.errors import EmptyReport, InternalError
from punchclock.models import PunchType
from punchclock.services.exports import (
    REPORT_HEADERS,
    XLSX_MEDIA_TYPE,
    ReportRow,
    XlsxDocumentSink,
    build_report_rows,
    generate_report,
    sort_report_rows,
)

LOCAL_TZ = ZoneInfo("America/Guayaquil")


def _local(day: int, hour: int, minute: int = 0) -> datetime:
    return datetime(2026, 3, day, hour, minute, tzinfo=LOCAL_TZ).astimezone(timezone.utc)


def _event(identity: str, punch_type: PunchType, ts_utc: datetime | None) -> SimpleNamespace:
    return SimpleNamespace(identity=identity, punch_type=punch_type, ts_utc=ts_utc)


def _full_day(identity: str, day: int) -> list[SimpleNamespace]:
    return [
        _event(identity, PunchType.ENTRY, _local(day, 9)),
        _event(identity, PunchType.LUNCH_START, _local(day, 12)),
        _event(identity, PunchType.LUNCH_END, _local(day, 13)),
        _event(identity, PunchType.EXIT, _local(day, 17)),
    ]


class _ListStore:
    def __init__(self, events: list[SimpleNamespace]) -> None:
        self.events = events
        self.calls: list[tuple[datetime | None, datetime | None]] = []

    def query_all(self, start_utc=None, end_utc=None):  # type: ignore[no-untyped-def]
        self.calls.append((start_utc, end_utc))
        return list(self.events)


class _BrokenSink:
    content_type = XLSX_MEDIA_TYPE

    def build_tabular_document(self, rows):  # type: ignore[no-untyped-def]
        raise RuntimeError("disk full")


class ReportRowsTests(unittest.TestCase):
    def test_zero_events_is_empty_report(self) -> None:
        with self.assertRaises(EmptyReport) as exc:
            build_report_rows([], LOCAL_TZ)
        self.assertEqual(exc.exception.status_code, 404)

    def test_only_untimestamped_events_is_empty_report(self) -> None:
        with self.assertRaises(EmptyReport):
            build_report_rows([_event("ana@example.com", PunchType.ENTRY, None)], LOCAL_TZ)

    def test_one_row_per_identity_and_day(self) -> None:
        events = (
            _full_day("ana@example.com", 2)
            + _full_day("luis@example.com", 2)
            + [_event("ana@example.com", PunchType.ENTRY, _local(3, 8, 45))]
        )

        rows = build_report_rows(events, LOCAL_TZ)

        self.assertEqual(len(rows), 3)
        self.assertEqual(
            rows[0],
            ReportRow(
                employee="ana@example.com",
                date="2026-03-02",
                entry_time="09:00:00",
                exit_time="17:00:00",
                worked_hours="7h 0m",
            ),
        )
        self.assertEqual(
            rows[2],
            ReportRow(
                employee="ana@example.com",
                date="2026-03-03",
                entry_time="08:45:00",
                exit_time="N/A",
                worked_hours="N/A",
            ),
        )

    def test_sort_report_rows(self) -> None:
        rows = [
            ReportRow("luis@example.com", "2026-03-02", "N/A", "N/A", "N/A"),
            ReportRow("ana@example.com", "2026-03-03", "N/A", "N/A", "N/A"),
            ReportRow("ana@example.com", "2026-03-02", "N/A", "N/A", "N/A"),
        ]
        ordered = sort_report_rows(rows)
        self.assertEqual(
            [(row.employee, row.date) for row in ordered],
            [
                ("ana@example.com", "2026-03-02"),
                ("ana@example.com", "2026-03-03"),
                ("luis@example.com", "2026-03-02"),
            ],
        )


class XlsxSinkTests(unittest.TestCase):
    def test_workbook_contains_header_and_rows(self) -> None:
        rows = build_report_rows(_full_day("ana@example.com", 2), LOCAL_TZ)

        payload = XlsxDocumentSink().build_tabular_document(rows)

        wb = load_workbook(BytesIO(payload))
        ws = wb["Daily Summary"]
        values = [list(row) for row in ws.iter_rows(values_only=True)]
        self.assertEqual(values[0], REPORT_HEADERS)
        self.assertEqual(values[1], ["ana@example.com", "2026-03-02", "09:00:00", "17:00:00", "7h 0m"])
        self.assertEqual(ws.freeze_panes, "A2")


class GenerateReportTests(unittest.TestCase):
    def test_generate_report_returns_document_bytes(self) -> None:
        store = _ListStore(_full_day("ana@example.com", 2))
        start = _local(1, 0)

        payload = generate_report(store, XlsxDocumentSink(), tz=LOCAL_TZ, start_utc=start)

        self.assertTrue(payload.startswith(b"PK"))
        self.assertEqual(store.calls, [(start, None)])

    def test_generate_report_on_empty_store(self) -> None:
        with self.assertRaises(EmptyReport):
            generate_report(_ListStore([]), XlsxDocumentSink(), tz=LOCAL_TZ)

    def test_sink_failure_is_wrapped_as_internal_error(self) -> None:
        store = _ListStore(_full_day("ana@example.com", 2))

        with self.assertRaises(InternalError) as exc:
            generate_report(store, _BrokenSink(), tz=LOCAL_TZ)

        self.assertEqual(exc.exception.status_code, 500)
        self.assertNotIn("disk full", exc.exception.message)
        self.assertIsInstance(exc.exception.__cause__, RuntimeError)


if __name__ == "__main__":
    unittest.main()
