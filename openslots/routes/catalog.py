"""Read-only catalog API endpoints for gyms and open slots."""
from typing import List, Optional

from fastapi import APIRouter, HTTPException, Path, Query

from ..models import Area, Gym, GymListResponse, OpenSlotListResponse, SlotStatus, Sport
from ..services import catalog_service
from ..utils.logger import logger

router = APIRouter(prefix="/api", tags=["catalog"])

_DATE = r"^\d{4}-\d{2}-\d{2}$"


@router.get("/areas", response_model=List[Area])
async def list_areas() -> List[Area]:
    return catalog_service.list_areas()


@router.get("/sports", response_model=List[Sport])
async def list_sports() -> List[Sport]:
    return catalog_service.list_sports()


@router.get("/gyms", response_model=GymListResponse)
async def search_gyms(
    area: Optional[str] = Query(None, description="Area name"),
    sport: Optional[str] = Query(None, description="Sport tag"),
    keyword: Optional[str] = Query(None, description="Substring of name or address"),
) -> GymListResponse:
    """Search gyms by area, sport and keyword.

    Returns:
        Matching gyms
    """
    try:
        gyms = catalog_service.search_gyms(area=area, sport=sport, keyword=keyword)
    except Exception as e:
        logger.error(f"Error searching gyms: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))
    return GymListResponse(total=len(gyms), items=gyms)


@router.get("/gyms/{gym_id}", response_model=Gym)
async def get_gym(gym_id: str = Path(..., description="Gym reference or raw id")) -> Gym:
    gym = catalog_service.get_gym(gym_id)
    if not gym:
        raise HTTPException(status_code=404, detail=f"Gym not found: {gym_id}")
    return gym


@router.get("/open-slots", response_model=OpenSlotListResponse)
async def list_open_slots(
    gym_id: Optional[str] = Query(None, alias="gymId"),
    sport: Optional[str] = Query(None),
    date_from: Optional[str] = Query(None, alias="dateFrom", pattern=_DATE),
    date_to: Optional[str] = Query(None, alias="dateTo", pattern=_DATE),
    status: Optional[SlotStatus] = Query(None),
) -> OpenSlotListResponse:
    """List stored open slots ordered by date and start time."""
    try:
        records = catalog_service.list_open_slots(
            gym_id=gym_id,
            sport=sport,
            date_from=date_from,
            date_to=date_to,
            status=status.value if status else None,
        )
    except Exception as e:
        logger.error(f"Error listing open slots: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))
    return OpenSlotListResponse(total=len(records), items=records)
