"""PDF ingestion API endpoint."""
from fastapi import APIRouter
from fastapi.responses import JSONResponse

from ..agents import orchestrator
from ..exceptions import IngestionError
from ..models import ParsePdfRequest, ParsePdfResponse
from ..utils.logger import logger

router = APIRouter(prefix="/api", tags=["ingest"])


def _failure(message: str, stage=None) -> JSONResponse:
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "Failed to parse PDF",
            "message": message,
            "stage": stage,
        },
    )


@router.post("/parse-pdf", response_model=ParsePdfResponse)
async def parse_pdf(request: ParsePdfRequest):
    """Download a schedule PDF, extract its slots and store them.

    Args:
        request: Source id and PDF URL

    Returns:
        Gym reference and per-slot write counts
    """
    if not request.source_id or not request.url:
        return JSONResponse(
            status_code=400, content={"error": "sourceId and url are required"}
        )

    try:
        result = await orchestrator.ingest(request.source_id, request.url)
    except IngestionError as e:
        logger.error(f"PDF parsing error at stage {e.stage}: {str(e)}", exc_info=True)
        return _failure(str(e), e.stage)
    except Exception as e:
        logger.error(f"PDF parsing error: {str(e)}", exc_info=True)
        return _failure(str(e))

    return ParsePdfResponse(
        gym_id=result.gym_id,
        slots_added=result.slots_added,
        slots_failed=result.slots_failed,
        errors=result.errors,
    )
