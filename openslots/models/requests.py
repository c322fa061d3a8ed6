"""Request models for API endpoints."""
from typing import Optional

from pydantic import BaseModel, Field, HttpUrl, field_validator

from .reference import SourceType


class ParsePdfRequest(BaseModel):
    """Request model for the PDF ingestion endpoint.

    Both fields are optional at the schema level, and non-string or blank
    values are read as missing, so the route answers them with its own 400
    body instead of a 422.
    """

    source_id: Optional[str] = Field(
        None, alias="sourceId", description="Raw id of the registered source"
    )
    url: Optional[str] = Field(None, description="URL of the schedule PDF")

    @field_validator("source_id", "url", mode="before")
    @classmethod
    def _string_or_none(cls, v):
        if not isinstance(v, str) or not v.strip():
            return None
        return v.strip()

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "sourceId": "ya6BkbnZ4zC7eh0cl01h",
                "url": "https://www.city.shibuya.tokyo.jp/sports/schedule.pdf",
            }
        }


class RegisterSourceRequest(BaseModel):
    """Request model for registering a schedule document URL."""

    url: HttpUrl = Field(..., description="Document URL to track")
    type: SourceType = Field(default=SourceType.PDF, description="pdf or web")

    class Config:
        json_schema_extra = {
            "example": {
                "url": "https://www.city.chuo.lg.jp/sports/open_slots.pdf",
                "type": "pdf",
            }
        }
