"""Reference records: gyms, areas, sports and document sources."""
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

GYM_PREFIX = "gym_"
AREA_PREFIX = "area_"
SPORT_PREFIX = "sport_"
SOURCE_PREFIX = "source_"


def make_ref(prefix: str, doc_id: str) -> str:
    """Build a foreign reference such as ``gym_<id>`` from a raw document id."""
    return doc_id if doc_id.startswith(prefix) else f"{prefix}{doc_id}"


def strip_ref(prefix: str, ref: str) -> str:
    """Recover the raw document id from a foreign reference."""
    return ref[len(prefix):] if ref.startswith(prefix) else ref


class SourceType(str, Enum):
    """Kind of document a source URL points at."""

    PDF = "pdf"
    WEB = "web"


class Gym(BaseModel):
    """A venue offering open-use slots."""

    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    address: str = ""
    tel: str = ""
    area_id: Optional[str] = None
    distance: str = "距離不明"
    location: Optional[Dict[str, Any]] = None
    courts: Dict[str, int] = Field(default_factory=dict)
    tags: List[str] = Field(default_factory=list)
    parking: str = "不明"
    official_url: str = ""
    format: str = "個人開放"
    restrictions: List[str] = Field(default_factory=list)

    @property
    def ref(self) -> str:
        return make_ref(GYM_PREFIX, self.id)


class Area(BaseModel):
    id: str
    name: str


class Sport(BaseModel):
    id: str
    name: str


class Source(BaseModel):
    """A registered schedule document URL."""

    model_config = ConfigDict(extra="ignore")

    id: str
    url: str
    type: SourceType = SourceType.PDF
    gym_id: Optional[str] = None
    last_checked_at: Optional[datetime] = None
    parser_version: str = ""
