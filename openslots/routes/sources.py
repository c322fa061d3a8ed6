"""Source registration API endpoints."""
from fastapi import APIRouter, HTTPException, Path

from ..models import RegisterSourceRequest, Source, SourceListResponse
from ..services import source_tracker
from ..utils.logger import logger

router = APIRouter(prefix="/api/sources", tags=["sources"])


@router.post("", response_model=Source)
async def register_source(request: RegisterSourceRequest) -> Source:
    """Register a schedule document URL.

    Registering a URL that is already known returns the existing source.
    """
    try:
        return source_tracker.register_source(str(request.url), request.type)
    except Exception as e:
        logger.error(f"Error registering source: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("", response_model=SourceListResponse)
async def list_sources() -> SourceListResponse:
    """List all registered sources, oldest first."""
    try:
        items = source_tracker.list_sources()
    except Exception as e:
        logger.error(f"Error listing sources: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))
    return SourceListResponse(total=len(items), items=items)


@router.get("/{source_id}", response_model=Source)
async def get_source(
    source_id: str = Path(..., description="Source identifier")
) -> Source:
    source = source_tracker.get_source(source_id)
    if not source:
        raise HTTPException(status_code=404, detail=f"Source not found: {source_id}")
    return source
