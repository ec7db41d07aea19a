"""Reconcile departure and arrival checklists into trips.

Each departure is paired with the earliest arrival for the same plate that
was submitted strictly after it and has not already been claimed by an
earlier departure. Departures left without an arrival are in transit;
arrivals nobody claimed are standalone ("chegada avulsa"). The result is
ordered most recent first.

The functions here only read the records they are given. Records may be
``ChecklistRecord`` rows or any object exposing ``kind``,
``vehicle_plate`` and ``submitted_at``.
"""

from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from enum import Enum

from app.fleet.forms import normalize_plate
from app.models import ChecklistKind, ChecklistRecord

_EARLIEST = datetime.min.replace(tzinfo=UTC)


class TripStatus(str, Enum):
    """Outcome of pairing for one trip."""

    COMPLETE = "complete"
    IN_TRANSIT = "in_transit"
    ARRIVAL_ONLY = "arrival_only"

    @property
    def label(self) -> str:
        return _STATUS_LABELS[self]


_STATUS_LABELS = {
    TripStatus.COMPLETE: "Completa",
    TripStatus.IN_TRANSIT: "Em Trânsito",
    TripStatus.ARRIVAL_ONLY: "Chegada Avulsa",
}


@dataclass(frozen=True)
class Trip:
    """A departure paired with its arrival, or a record left unpaired.

    Attributes:
        vehicle_plate: Canonical plate of the referenced record(s).
        status: Pairing outcome.
        departure: The departure checklist, if any.
        arrival: The arrival checklist, if any.
        latest_timestamp: The arrival's timestamp when there is one,
            otherwise the departure's. None when that record has no
            usable timestamp.
    """

    vehicle_plate: str
    status: TripStatus
    departure: ChecklistRecord | None
    arrival: ChecklistRecord | None
    latest_timestamp: datetime | None

    @property
    def status_label(self) -> str:
        return self.status.label

    @property
    def vehicle_model(self):
        """Model from the departure, falling back to the arrival."""
        for record in (self.departure, self.arrival):
            model = getattr(record, "vehicle_model", None)
            if model:
                return model
        return None

    @property
    def distance_km(self) -> int | None:
        """Kilometres driven, known only for complete trips with both readings."""
        if self.status is not TripStatus.COMPLETE:
            return None
        start = getattr(self.departure, "odometer_km", None)
        end = getattr(self.arrival, "odometer_km", None)
        if isinstance(start, int) and isinstance(end, int):
            return end - start
        return None

    def is_overdue(self, now: datetime, max_hours: int) -> bool:
        """True for an in-transit trip whose departure is older than max_hours."""
        if max_hours <= 0 or self.status is not TripStatus.IN_TRANSIT:
            return False
        if self.latest_timestamp is None:
            return False
        return now - self.latest_timestamp > timedelta(hours=max_hours)


def parse_timestamp(value) -> datetime | None:
    """
    Read a submission timestamp as an aware UTC datetime.

    Accepts datetimes and ISO-8601 strings (a trailing "Z" is allowed).
    Naive values are taken to be UTC. Anything else, including strings that
    do not parse, yields None.
    """
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    if not isinstance(value, datetime):
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _is_arrival(record) -> bool:
    return ChecklistKind(record.kind) is ChecklistKind.ARRIVAL


def _plate_of(record) -> str:
    return normalize_plate(getattr(record, "vehicle_plate", None))


def _ascending(records: list) -> list[tuple[datetime | None, object]]:
    """Pair records with their timestamps, oldest first; untimed records last."""
    stamped = [(parse_timestamp(getattr(r, "submitted_at", None)), r) for r in records]
    return sorted(stamped, key=lambda pair: (pair[0] is None, pair[0] or _EARLIEST))


def reconcile(records: Iterable) -> list[Trip]:
    """
    Build the trip list for a collection of checklist records.

    Every record ends up in exactly one trip. Departures are processed oldest
    first and each one claims the earliest unclaimed arrival for the same
    plate submitted strictly later; equal timestamps never pair. Records
    without a usable timestamp never pair and are listed after all others.

    The returned trips are sorted by latest_timestamp, most recent first,
    with ties kept in the order the trips were built (departures before
    standalone arrivals, oldest first within each group).
    """
    snapshot = list(records)
    departures = _ascending([r for r in snapshot if not _is_arrival(r)])
    arrivals = _ascending([r for r in snapshot if _is_arrival(r)])

    # Arrival positions per plate, already in ascending timestamp order
    arrivals_by_plate: dict[str, list[int]] = defaultdict(list)
    for position, (submitted_at, arrival) in enumerate(arrivals):
        if submitted_at is not None:
            arrivals_by_plate[_plate_of(arrival)].append(position)

    consumed: set[int] = set()
    trips: list[Trip] = []

    for departed_at, departure in departures:
        plate = _plate_of(departure)
        match = None
        if departed_at is not None:
            match = next(
                (
                    position
                    for position in arrivals_by_plate.get(plate, ())
                    if position not in consumed and arrivals[position][0] > departed_at
                ),
                None,
            )

        if match is not None:
            consumed.add(match)
            arrived_at, arrival = arrivals[match]
            trips.append(Trip(plate, TripStatus.COMPLETE, departure, arrival, arrived_at))
        else:
            trips.append(Trip(plate, TripStatus.IN_TRANSIT, departure, None, departed_at))

    for position, (arrived_at, arrival) in enumerate(arrivals):
        if position not in consumed:
            trips.append(
                Trip(_plate_of(arrival), TripStatus.ARRIVAL_ONLY, None, arrival, arrived_at)
            )

    return sorted(
        trips,
        key=lambda trip: (
            trip.latest_timestamp is not None,
            trip.latest_timestamp or _EARLIEST,
        ),
        reverse=True,
    )


def count_by_status(trips: Iterable[Trip]) -> dict[str, int]:
    """Number of trips per status code, including statuses with no trips."""
    counts = {status.value: 0 for status in TripStatus}
    for trip in trips:
        counts[trip.status.value] += 1
    return counts
