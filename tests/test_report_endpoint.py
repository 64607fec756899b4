import unittest
from datetime import date, datetime, timezone
from io import BytesIO
from zoneinfo import ZoneInfo

from fastapi.testclient import TestClient
from openpyxl import load_workbook

from punchclock.dependencies import get_document_sink, get_event_store
from punchclock.main import app
from punchclock.models import PunchEvent, PunchType
from punchclock.services.exports import XLSX_MEDIA_TYPE

LOCAL_TZ = ZoneInfo("America/Guayaquil")


def _event(identity: str, punch_type: PunchType, hour: int) -> PunchEvent:
    ts_utc = datetime(2026, 3, 2, hour, tzinfo=LOCAL_TZ).astimezone(timezone.utc)
    return PunchEvent(
        identity=identity,
        punch_type=punch_type,
        ts_utc=ts_utc,
        local_day=date(2026, 3, 2),
        lat=-0.3255,
        lon=-78.44,
        distance_m=10.0,
    )


class ListStore:
    def __init__(self, events: list[PunchEvent]) -> None:
        self.events = events
        self.calls: list[tuple[datetime | None, datetime | None]] = []

    def query_all(self, start_utc=None, end_utc=None):  # type: ignore[no-untyped-def]
        self.calls.append((start_utc, end_utc))
        return list(self.events)


class BrokenSink:
    content_type = XLSX_MEDIA_TYPE

    def build_tabular_document(self, rows):  # type: ignore[no-untyped-def]
        raise ValueError("cannot encode")


class ReportEndpointTests(unittest.TestCase):
    def tearDown(self) -> None:
        app.dependency_overrides.clear()

    def test_empty_store_returns_404(self) -> None:
        app.dependency_overrides[get_event_store] = lambda: ListStore([])
        client = TestClient(app)

        response = client.get("/report")

        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["error"]["code"], "EMPTY_REPORT")

    def test_report_is_streamed_as_xlsx(self) -> None:
        store = ListStore(
            [
                _event("ana@example.com", PunchType.ENTRY, 9),
                _event("ana@example.com", PunchType.LUNCH_START, 12),
                _event("ana@example.com", PunchType.LUNCH_END, 13),
                _event("ana@example.com", PunchType.EXIT, 17),
                _event("luis@example.com", PunchType.ENTRY, 8),
            ]
        )
        app.dependency_overrides[get_event_store] = lambda: store
        client = TestClient(app)

        response = client.get("/report")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.headers["content-type"], XLSX_MEDIA_TYPE)
        self.assertIn('filename="AttendanceSummary.xlsx"', response.headers["content-disposition"])
        ws = load_workbook(BytesIO(response.content))["Daily Summary"]
        rows = [list(row) for row in ws.iter_rows(min_row=2, values_only=True)]
        self.assertEqual(
            rows,
            [
                ["ana@example.com", "2026-03-02", "09:00:00", "17:00:00", "7h 0m"],
                ["luis@example.com", "2026-03-02", "08:00:00", "N/A", "N/A"],
            ],
        )

    def test_date_bounds_are_passed_to_store(self) -> None:
        store = ListStore([_event("ana@example.com", PunchType.ENTRY, 9)])
        app.dependency_overrides[get_event_store] = lambda: store
        client = TestClient(app)

        response = client.get("/api/reports/daily.xlsx", params={"start_date": "2026-03-01", "end_date": "2026-03-02"})

        self.assertEqual(response.status_code, 200)
        start_utc, end_utc = store.calls[0]
        self.assertEqual(start_utc, datetime(2026, 3, 1, 5, 0, tzinfo=timezone.utc))
        self.assertEqual(end_utc, datetime(2026, 3, 3, 5, 0, tzinfo=timezone.utc))

    def test_inverted_range_is_rejected(self) -> None:
        app.dependency_overrides[get_event_store] = lambda: ListStore([])
        client = TestClient(app)

        response = client.get("/report", params={"start_date": "2026-03-05", "end_date": "2026-03-01"})

        self.assertEqual(response.status_code, 400)

    def test_generation_failure_returns_generic_500(self) -> None:
        app.dependency_overrides[get_event_store] = lambda: ListStore([_event("ana@example.com", PunchType.ENTRY, 9)])
        app.dependency_overrides[get_document_sink] = lambda: BrokenSink()
        client = TestClient(app)

        response = client.get("/report")

        self.assertEqual(response.status_code, 500)
        body = response.json()
        self.assertEqual(body["error"]["code"], "INTERNAL_ERROR")
        self.assertNotIn("cannot encode", body["message"])


if __name__ == "__main__":
    unittest.main()
