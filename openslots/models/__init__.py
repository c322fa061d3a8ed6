"""Data models for the application."""
from .requests import ParsePdfRequest, RegisterSourceRequest
from .responses import (
    ParsePdfResponse,
    GymListResponse,
    OpenSlotListResponse,
    SourceListResponse,
)
from .reference import (
    Area,
    Gym,
    Source,
    SourceType,
    Sport,
    make_ref,
    strip_ref,
    GYM_PREFIX,
    AREA_PREFIX,
    SPORT_PREFIX,
    SOURCE_PREFIX,
)
from .ingestion import ExtractorKind, IngestionResult, PipelineStage
from .slots import (
    BatchReconcileResult,
    ExtractedSchedule,
    OpenSlotRecord,
    ReceptionType,
    ReconcileResult,
    Slot,
    SlotStatus,
)

__all__ = [
    "ParsePdfRequest",
    "RegisterSourceRequest",
    "ParsePdfResponse",
    "GymListResponse",
    "OpenSlotListResponse",
    "SourceListResponse",
    "Area",
    "Gym",
    "Source",
    "SourceType",
    "Sport",
    "make_ref",
    "strip_ref",
    "GYM_PREFIX",
    "AREA_PREFIX",
    "SPORT_PREFIX",
    "SOURCE_PREFIX",
    "ExtractorKind",
    "IngestionResult",
    "PipelineStage",
    "BatchReconcileResult",
    "ExtractedSchedule",
    "OpenSlotRecord",
    "ReceptionType",
    "ReconcileResult",
    "Slot",
    "SlotStatus",
]
