"""Trip routes for the fleet dashboard."""
from datetime import UTC, datetime

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlmodel import Session

from app.core.config import settings
from app.core.database import get_session
from app.core.templating import templates, wants_json
from app.fleet.reconciler import Trip, count_by_status, reconcile
from app.fleet.store import snapshot_checklists
from app.models import ChecklistKind
from app.routes.checklists import serialize_record

router = APIRouter(prefix="/trips", tags=["trips"])


def serialize_trip(trip: Trip, now: datetime) -> dict:
    return {
        "vehicle_plate": trip.vehicle_plate,
        "vehicle_model": trip.vehicle_model,
        "status": trip.status.value,
        "status_label": trip.status_label,
        "latest_timestamp": (
            trip.latest_timestamp.isoformat() if trip.latest_timestamp else None
        ),
        "distance_km": trip.distance_km,
        "overdue": trip.is_overdue(now, settings.overdue_after_hours),
        "departure": (
            serialize_record(trip.departure, include_photos=False)
            if trip.departure
            else None
        ),
        "arrival": (
            serialize_record(trip.arrival, include_photos=False)
            if trip.arrival
            else None
        ),
    }


@router.get("")
async def trips_dashboard(request: Request, session: Session = Depends(get_session)):
    """
    Display the trips dashboard.

    Reconciles every stored checklist into trips on each request, most
    recent first: complete trips (departure and arrival), vehicles still in
    transit, and standalone arrivals. Returns JSON when the client sends
    Accept: application/json.
    """
    records = snapshot_checklists(session)
    trips = reconcile(records)
    now = datetime.now(UTC)

    if wants_json(request):
        return JSONResponse({
            "trips": [serialize_trip(trip, now) for trip in trips],
            "counts": count_by_status(trips),
            "submission_count": len(records),
        })

    return templates.TemplateResponse(
        request,
        "trips.html",
        {
            "trips": trips,
            "counts": count_by_status(trips),
            "submission_count": len(records),
            "now": now,
            "overdue_after_hours": settings.overdue_after_hours,
            "departure_kind": ChecklistKind.DEPARTURE,
            "arrival_kind": ChecklistKind.ARRIVAL,
        },
    )
