from datetime import date

from fastapi import APIRouter, Depends, Query, Response

from punchclock.dependencies import get_document_sink, get_event_store
from punchclock.errors import ValidationError
from punchclock.services.event_store import EventStore
from punchclock.services.exports import DocumentSink, generate_report
from punchclock.services.local_time import attendance_timezone, local_day_bounds_utc
from punchclock.settings import get_settings

router = APIRouter(tags=["reports"])


@router.get("/report")
@router.get("/api/reports/daily.xlsx", include_in_schema=False)
def export_daily_report(
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
    store: EventStore = Depends(get_event_store),
    sink: DocumentSink = Depends(get_document_sink),
) -> Response:
    if start_date is not None and end_date is not None and end_date < start_date:
        raise ValidationError("end_date must be >= start_date")

    tz = attendance_timezone()
    start_utc = local_day_bounds_utc(start_date, tz)[0] if start_date is not None else None
    end_utc = local_day_bounds_utc(end_date, tz)[1] if end_date is not None else None

    payload = generate_report(store, sink, tz=tz, start_utc=start_utc, end_utc=end_utc)
    filename = get_settings().report_filename
    return Response(
        content=payload,
        media_type=sink.content_type,
        headers={
            "Content-Disposition": f'attachment; filename="{filename}"',
        },
    )
