"""Ingestion pipeline models."""
from enum import Enum
from typing import List

from pydantic import BaseModel, Field


class PipelineStage(str, Enum):
    """Ordered stages of one ingestion run."""

    FETCH = "fetch"
    EXTRACT_TEXT = "extract_text"
    EXTRACT_SLOTS = "extract_slots"
    RESOLVE_GYM = "resolve_gym"
    PERSIST = "persist"
    UPDATE_SOURCE = "update_source"


class ExtractorKind(str, Enum):
    """Which extractor produced the slots of a run."""

    AI = "ai"
    HEURISTIC = "heuristic"


class IngestionResult(BaseModel):
    """Summary of a completed ingestion run."""

    source_id: str
    gym_id: str
    extractor: ExtractorKind
    slots_extracted: int
    slots_added: int
    slots_failed: int
    errors: List[str] = Field(default_factory=list)
