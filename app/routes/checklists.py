"""Checklist routes for choosing, filling in and submitting checklists."""
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse
from sqlmodel import Session

from app.core.config import settings
from app.core.database import get_session
from app.core.templating import templates, wants_json
from app.fleet.forms import (
    ChecklistValidationError,
    PhotoRejected,
    build_checklist,
    encode_photo,
)
from app.fleet.reconciler import parse_timestamp
from app.fleet.store import append_checklist, count_checklists, get_checklist
from app.models import ChecklistKind, ChecklistRecord, VehicleModel
from app.models.checklist import PHOTO_SLOTS

router = APIRouter(prefix="/checklists", tags=["checklists"])


def serialize_record(record: ChecklistRecord, include_photos: bool = True) -> dict:
    """JSON-ready view of a record with an explicit UTC timestamp."""
    data = record.model_dump(mode="json", exclude={"sequence"})
    submitted_at = parse_timestamp(record.submitted_at)
    data["submitted_at"] = submitted_at.isoformat() if submitted_at else None
    if not include_photos:
        for slot in PHOTO_SLOTS:
            data.pop(slot, None)
        data["photo_count"] = sum(1 for _, url in record.photos if url)
    return data


def _render_form(
    request: Request,
    session: Session,
    kind: ChecklistKind,
    values: dict | None = None,
    errors: dict | None = None,
    status_code: int = 200,
):
    return templates.TemplateResponse(
        request,
        "checklist_form.html",
        {
            "kind": kind,
            "values": values or {},
            "errors": errors or {},
            "vehicle_models": list(VehicleModel),
            "photo_slots": PHOTO_SLOTS,
            "submission_count": count_checklists(session),
        },
        status_code=status_code,
    )


@router.get("", response_class=HTMLResponse)
async def choose_checklist(request: Request, session: Session = Depends(get_session)):
    """
    Display the landing page.

    Drivers pick whether the vehicle is leaving the base (departure) or
    returning to it (arrival) before filling in the checklist.
    """
    return templates.TemplateResponse(
        request,
        "landing.html",
        {"submission_count": count_checklists(session)},
    )


@router.get("/new", response_class=HTMLResponse)
async def new_checklist(
    request: Request,
    kind: str | None = None,
    session: Session = Depends(get_session),
):
    """
    Display an empty checklist form.

    Falls back to the landing page when the checklist kind is missing or
    not one of "saida" / "chegada".
    """
    if kind not in {k.value for k in ChecklistKind}:
        return RedirectResponse("/checklists", status_code=303)

    return _render_form(request, session, ChecklistKind(kind))


@router.post("")
async def submit_checklist(
    request: Request,
    kind: ChecklistKind = Form(...),
    driver_name: str = Form(""),
    vehicle_plate: str = Form(""),
    vehicle_model: str = Form(""),
    odometer_km: str = Form(""),
    fluid_levels_ok: str = Form(""),
    lights_ok: str = Form(""),
    emergency_items_ok: str = Form(""),
    roadworthy: str = Form(""),
    observations: str = Form(""),
    photo_front: UploadFile | None = File(None),
    photo_right: UploadFile | None = File(None),
    photo_left: UploadFile | None = File(None),
    photo_rear: UploadFile | None = File(None),
    photo_odometer: UploadFile | None = File(None),
    session: Session = Depends(get_session),
):
    """
    Submit a completed checklist.

    Validates the required fields, stores the record and redirects to the
    trips dashboard. On validation failure the form is shown again with a
    message next to each invalid field (status 400). JSON clients get the
    stored record (201) or the field errors (400).
    """
    values = {
        "driver_name": driver_name,
        "vehicle_plate": vehicle_plate,
        "vehicle_model": vehicle_model,
        "odometer_km": odometer_km,
        "fluid_levels_ok": fluid_levels_ok,
        "lights_ok": lights_ok,
        "emergency_items_ok": emergency_items_ok,
        "roadworthy": roadworthy,
        "observations": observations,
    }
    uploads = {
        "photo_front": photo_front,
        "photo_right": photo_right,
        "photo_left": photo_left,
        "photo_rear": photo_rear,
        "photo_odometer": photo_odometer,
    }

    photos = {}
    errors = {}
    for slot, upload in uploads.items():
        if upload is None:
            continue
        try:
            photos[slot] = encode_photo(
                await upload.read(), upload.content_type, settings.max_photo_bytes
            )
        except PhotoRejected as e:
            errors[slot] = str(e)

    try:
        record = build_checklist(values, kind, photos)
    except ChecklistValidationError as e:
        errors = {**e.errors, **errors}

    if errors:
        if wants_json(request):
            return JSONResponse({"errors": errors}, status_code=400)
        return _render_form(request, session, kind, values, errors, status_code=400)

    record = append_checklist(session, record)

    if wants_json(request):
        return JSONResponse(serialize_record(record), status_code=201)
    return RedirectResponse("/trips", status_code=303)


@router.get("/{record_id}")
async def checklist_detail(record_id: UUID, session: Session = Depends(get_session)):
    """Return one stored checklist as JSON, photos included."""
    record = get_checklist(session, record_id)
    if not record:
        raise HTTPException(status_code=404, detail="Checklist not found")
    return serialize_record(record)
