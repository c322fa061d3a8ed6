"""Response models for API endpoints."""
from typing import List

from pydantic import BaseModel, Field

from .reference import Gym, Source
from .slots import OpenSlotRecord


class ParsePdfResponse(BaseModel):
    """Response model for a successful ingestion run."""

    success: bool = True
    gym_id: str = Field(..., alias="gymId")
    slots_added: int = Field(..., alias="slotsAdded")
    slots_failed: int = Field(..., alias="slotsFailed")
    errors: List[str] = Field(default_factory=list)

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "success": True,
                "gymId": "gym_3c9fH7pQrtkWN7Ldq9uG",
                "slotsAdded": 4,
                "slotsFailed": 1,
                "errors": ["Sport not found: ゲートボール"],
            }
        }


class GymListResponse(BaseModel):
    """Response model for gym search."""

    total: int = Field(..., description="Number of matching gyms")
    items: List[Gym]


class OpenSlotListResponse(BaseModel):
    """Response model for open-slot queries."""

    total: int
    items: List[OpenSlotRecord]


class SourceListResponse(BaseModel):
    """Response model for listing sources."""

    total: int
    items: List[Source]
