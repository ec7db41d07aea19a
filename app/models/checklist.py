"""Checklist record model for vehicle departure and arrival inspections.

This module defines the ChecklistRecord model which represents one
inspection checklist filled in by a driver when a vehicle leaves the base
("saida") or returns to it ("chegada"). Records are append-only: once
stored they are never modified, and trips are derived from them on read.
"""

from datetime import UTC, datetime
from enum import Enum
from uuid import UUID, uuid4

from sqlalchemy import event as sa_event
from sqlalchemy.orm import object_session
from sqlmodel import Field, SQLModel


class ChecklistKind(str, Enum):
    """Whether the checklist was filled in on departure or on arrival."""

    DEPARTURE = "saida"
    ARRIVAL = "chegada"

    @property
    def label(self) -> str:
        return "Saída" if self is ChecklistKind.DEPARTURE else "Chegada"

    @property
    def odometer_label(self) -> str:
        return "KM inicial" if self is ChecklistKind.DEPARTURE else "KM final"


class VehicleModel(str, Enum):
    """Vehicle models operated by the fleet."""

    FIORINO = "fiorino"
    VUC = "vuc"


PHOTO_SLOTS = {
    "photo_front": "Frente",
    "photo_right": "Lateral Direita",
    "photo_left": "Lateral Esquerda",
    "photo_rear": "Traseira",
    "photo_odometer": "Hodômetro",
}


class ImmutableRecordError(RuntimeError):
    """Raised when a stored checklist record is about to be modified."""


class ChecklistRecord(SQLModel, table=True):
    """A vehicle inspection checklist submitted by a driver.

    Attributes:
        id: Unique identifier (UUID), assigned at creation.
        kind: Departure ("saida") or arrival ("chegada").
        vehicle_plate: Canonical plate (uppercase, no whitespace).
        vehicle_model: Model of the inspected vehicle.
        driver_name: Name of the driver who filled in the checklist.
        odometer_km: Odometer reading in km; the starting reading on a
            departure and the final reading on an arrival.
        fluid_levels_ok: Fluids at the recommended level.
        lights_ok: Lights and turn signals working.
        emergency_items_ok: Spare tyre, jack, wrench and warning triangle
            on board.
        roadworthy: Vehicle fit to drive.
        observations: Free-text remarks, may be empty.
        photo_front, photo_right, photo_left, photo_rear, photo_odometer:
            Optional photos stored as ``data:`` URLs.
        submitted_at: When the checklist was submitted. This is the only
            value used to order and pair records into trips.
        sequence: Insertion position assigned by the store.
    """
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    kind: ChecklistKind = Field(index=True)
    vehicle_plate: str = Field(index=True)
    vehicle_model: VehicleModel
    driver_name: str
    odometer_km: int | None = None
    fluid_levels_ok: bool | None = None
    lights_ok: bool | None = None
    emergency_items_ok: bool | None = None
    roadworthy: bool | None = None
    observations: str = ""
    photo_front: str | None = None
    photo_right: str | None = None
    photo_left: str | None = None
    photo_rear: str | None = None
    photo_odometer: str | None = None
    submitted_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    sequence: int = Field(default=0, index=True)

    @property
    def photos(self) -> list[tuple[str, str | None]]:
        """(label, data URL) pairs for every photo slot, in display order."""
        return [(label, getattr(self, slot)) for slot, label in PHOTO_SLOTS.items()]


@sa_event.listens_for(ChecklistRecord, "before_update")
def reject_checklist_update(mapper, connection, target):
    """Records are append-only; refuse to flush changes to a stored one."""
    # before_update also fires for objects marked dirty with no net change
    session = object_session(target)
    if session is not None and not session.is_modified(target):
        return
    raise ImmutableRecordError(f"Checklist record {target.id} cannot be modified")
