from app.models.checklist import (
    ChecklistKind,
    ChecklistRecord,
    ImmutableRecordError,
    VehicleModel,
)

__all__ = ["ChecklistRecord", "ChecklistKind", "VehicleModel", "ImmutableRecordError"]
