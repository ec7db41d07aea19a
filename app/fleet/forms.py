"""Validate and normalize submitted checklist forms."""
import base64
import logging
from collections.abc import Mapping

from app.models import ChecklistKind, ChecklistRecord, VehicleModel

logger = logging.getLogger(__name__)

YES_VALUES = {"sim", "s", "yes", "y", "true", "1", "on"}
NO_VALUES = {"nao", "não", "n", "no", "false", "0", "off"}

YES_NO_FIELDS = ("fluid_levels_ok", "lights_ok", "emergency_items_ok", "roadworthy")

REQUIRED_MESSAGE = "Campo obrigatório."


class ChecklistValidationError(ValueError):
    """Raised when a submitted checklist fails field validation.

    Attributes:
        errors: Message per form field name, in the order they were found.
    """

    def __init__(self, errors: dict[str, str]):
        super().__init__(f"Invalid checklist: {', '.join(errors)}")
        self.errors = errors


class PhotoRejected(ValueError):
    """Raised when an uploaded photo cannot be stored."""


def normalize_plate(value: str | None) -> str:
    """Canonical plate: trimmed and uppercase. Inner spaces are kept."""
    if not value:
        return ""
    return value.strip().upper()


def parse_yes_no(value: str | bool | None) -> bool | None:
    """Read a yes/no answer. Unrecognized values are unknown (None)."""
    if isinstance(value, bool) or value is None:
        return value
    normalized = value.strip().lower()
    if normalized in YES_VALUES:
        return True
    if normalized in NO_VALUES:
        return False
    return None


def parse_odometer(value: str | int | None) -> int | None:
    """Read an odometer reading in km; only whole numbers >= 0 are valid."""
    if isinstance(value, int) and not isinstance(value, bool):
        return value if value >= 0 else None
    if not isinstance(value, str):
        return None
    try:
        km = int(value.strip())
    except ValueError:
        return None
    return km if km >= 0 else None


def validate_checklist_form(
    fields: Mapping[str, str | None], kind: ChecklistKind
) -> dict[str, str]:
    """
    Check the required checklist fields.

    Returns a dict mapping field name to a user-facing message. An empty
    dict means the form is valid.
    """
    errors = {}

    if not (fields.get("driver_name") or "").strip():
        errors["driver_name"] = "Nome do motorista é obrigatório."
    if not normalize_plate(fields.get("vehicle_plate")):
        errors["vehicle_plate"] = "Placa do veículo é obrigatória."
    if (fields.get("vehicle_model") or "") not in {m.value for m in VehicleModel}:
        errors["vehicle_model"] = "Modelo do veículo é obrigatório."
    if parse_odometer(fields.get("odometer_km")) is None:
        errors["odometer_km"] = (
            f"{kind.odometer_label} é obrigatório e deve ser um número positivo."
        )

    for name in YES_NO_FIELDS:
        if parse_yes_no(fields.get(name)) is None:
            errors[name] = REQUIRED_MESSAGE

    return errors


def encode_photo(content: bytes, content_type: str | None, max_bytes: int) -> str | None:
    """
    Encode an uploaded photo as a data URL.

    Returns None for an empty upload (the photo slot was left blank).
    Raises PhotoRejected for non-image content or files over max_bytes.
    """
    if not content:
        return None
    if not content_type or not content_type.startswith("image/"):
        raise PhotoRejected("O arquivo enviado não é uma imagem.")
    if len(content) > max_bytes:
        raise PhotoRejected(
            f"A foto excede o tamanho máximo de {max_bytes // (1024 * 1024)} MB."
        )
    encoded = base64.b64encode(content).decode("ascii")
    return f"data:{content_type};base64,{encoded}"


def build_checklist(
    fields: Mapping[str, str | None],
    kind: ChecklistKind,
    photos: Mapping[str, str | None] | None = None,
) -> ChecklistRecord:
    """
    Build a new checklist record from submitted form values.

    Values are trimmed and the plate is normalized. The record gets its id
    and submission timestamp here; the store assigns its sequence.

    Raises ChecklistValidationError if any required field is missing or
    invalid.
    """
    errors = validate_checklist_form(fields, kind)
    if errors:
        logger.info(f"Rejected {kind.value} checklist: {sorted(errors)}")
        raise ChecklistValidationError(errors)

    return ChecklistRecord(
        kind=kind,
        driver_name=fields["driver_name"].strip(),
        vehicle_plate=normalize_plate(fields["vehicle_plate"]),
        vehicle_model=VehicleModel(fields["vehicle_model"]),
        odometer_km=parse_odometer(fields["odometer_km"]),
        fluid_levels_ok=parse_yes_no(fields["fluid_levels_ok"]),
        lights_ok=parse_yes_no(fields["lights_ok"]),
        emergency_items_ok=parse_yes_no(fields["emergency_items_ok"]),
        roadworthy=parse_yes_no(fields["roadworthy"]),
        observations=(fields.get("observations") or "").strip(),
        **dict(photos or {}),
    )
