"""Slot-related data models."""
import re
from datetime import date as Date
from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_GYM_NAME = "体育館"

_DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"
_TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"
_LOOSE_TIME_RE = re.compile(r"^\s*(\d{1,2})\s*[:：]\s*(\d{2})\s*$")


class SlotStatus(str, Enum):
    """Availability of an open slot, most available first."""

    AVAILABLE = "available"
    FEW = "few"
    FULL = "full"
    CLOSED = "closed"


class ReceptionType(str, Enum):
    """How a slot is booked."""

    SAME_DAY = "same_day"
    RESERVATION = "reservation"
    LOTTERY = "lottery"


class Slot(BaseModel):
    """A single extracted time window, before it is resolved and stored."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    date: str = Field(..., pattern=_DATE_PATTERN, description="YYYY-MM-DD")
    start_time: str = Field(..., pattern=_TIME_PATTERN, description="HH:mm")
    end_time: str = Field(..., pattern=_TIME_PATTERN, description="HH:mm")
    sport_name: str = Field(..., min_length=1)
    status: SlotStatus
    capacity: Optional[int] = Field(None, ge=0)
    remaining: Optional[int] = Field(None, ge=0)
    reception_type: ReceptionType = ReceptionType.SAME_DAY
    target: str = ""
    notes: str = ""

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def _pad_time(cls, v):
        # "9:00" -> "09:00"
        if isinstance(v, str):
            match = _LOOSE_TIME_RE.match(v)
            if match:
                return f"{int(match.group(1)):02d}:{match.group(2)}"
        return v

    @field_validator("date", mode="after")
    @classmethod
    def _real_date(cls, v: str) -> str:
        Date.fromisoformat(v)
        return v

    @field_validator("sport_name", mode="before")
    @classmethod
    def _strip_sport(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("reception_type", mode="before")
    @classmethod
    def _default_reception(cls, v):
        return ReceptionType.SAME_DAY if v in (None, "") else v

    @field_validator("target", "notes", mode="before")
    @classmethod
    def _empty_text(cls, v):
        return "" if v is None else v

    def capacity_violation(self) -> Optional[str]:
        """Describe why remaining/capacity are inconsistent, or None if they are fine."""
        if self.capacity is None or self.remaining is None:
            return None
        if self.remaining > self.capacity:
            return (
                f"remaining ({self.remaining}) exceeds capacity ({self.capacity})"
            )
        return None


class ExtractedSchedule(BaseModel):
    """Gym information and slots read out of one schedule document."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    gym_name: str = Field(DEFAULT_GYM_NAME, alias="gymName")
    area_name: Optional[str] = Field(None, alias="areaName")
    address: Optional[str] = None
    tel: Optional[str] = None
    slots: List[Slot] = Field(default_factory=list)

    @field_validator("gym_name", mode="before")
    @classmethod
    def _gym_name(cls, v):
        if v is None or (isinstance(v, str) and not v.strip()):
            return DEFAULT_GYM_NAME
        return v.strip() if isinstance(v, str) else v

    @field_validator("area_name", "address", "tel", mode="before")
    @classmethod
    def _blank_to_none(cls, v):
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v

    @field_validator("slots", mode="before")
    @classmethod
    def _no_slots(cls, v):
        return [] if v is None else v


class OpenSlotRecord(BaseModel):
    """A slot as written to the open_slots collection."""

    id: Optional[str] = None
    gym_id: str
    area_id: str
    sport_id: str
    source_id: str
    date: str
    start_time: str
    end_time: str
    sport_name: str
    status: SlotStatus
    capacity: Optional[int] = None
    remaining: Optional[int] = None
    reception_type: ReceptionType = ReceptionType.SAME_DAY
    target: str = ""
    notes: str = ""
    updated_at: datetime

    @classmethod
    def from_slot(
        cls,
        slot: Slot,
        gym_id: str,
        area_id: str,
        sport_id: str,
        source_id: str,
        updated_at: datetime,
    ) -> "OpenSlotRecord":
        return cls(
            gym_id=gym_id,
            area_id=area_id,
            sport_id=sport_id,
            source_id=source_id,
            updated_at=updated_at,
            **slot.model_dump(),
        )


class ReconcileResult(BaseModel):
    """Outcome of writing one batch of slots."""

    success: int = 0
    failed: int = 0
    errors: List[str] = Field(default_factory=list)


class BatchReconcileResult(ReconcileResult):
    """Outcome of writing several batches."""

    total: int = 0
