"""Main orchestrator agent for the schedule ingestion workflow."""
from datetime import date
from typing import Awaitable, Callable, Optional, Tuple, TypeVar

from ..config import settings
from ..exceptions import AIServiceError, IngestionError
from ..models import (
    SOURCE_PREFIX,
    ExtractedSchedule,
    ExtractorKind,
    IngestionResult,
    PipelineStage,
    make_ref,
)
from ..services.heuristic_parser import HeuristicSlotParser, heuristic_parser
from ..services.http_client import fetch_bytes
from ..services.pdf_text import PdfTextExtractor, pdf_text_extractor
from ..services.reference_resolver import ReferenceResolver, reference_resolver
from ..services.slot_reconciler import SlotReconciler, slot_reconciler
from ..services.source_tracker import SourceTracker, source_tracker
from ..utils.logger import logger
from .slot_extractor import SlotExtractor, slot_extractor

T = TypeVar("T")

Fetcher = Callable[[str], Awaitable[bytes]]


class IngestionOrchestrator:
    """Runs one schedule document through the pipeline.

    Stages run strictly in order: fetch, extract_text, extract_slots,
    resolve_gym, persist, update_source. The first failing stage ends the run
    with an IngestionError naming that stage; nothing is retried.
    """

    def __init__(
        self,
        fetcher: Optional[Fetcher] = None,
        text_extractor: Optional[PdfTextExtractor] = None,
        extractor: Optional[SlotExtractor] = None,
        parser: Optional[HeuristicSlotParser] = None,
        resolver: Optional[ReferenceResolver] = None,
        reconciler: Optional[SlotReconciler] = None,
        sources: Optional[SourceTracker] = None,
        slot_extractor_kind: Optional[str] = None,
        heuristic_fallback: Optional[bool] = None,
    ):
        """Initialize the orchestrator.

        Args:
            fetcher: Coroutine downloading a URL to bytes
            text_extractor: PDF text extractor
            extractor: AI slot extractor
            parser: Heuristic slot parser
            resolver: Reference resolver
            reconciler: Slot reconciler
            sources: Source tracker
            slot_extractor_kind: "ai" or "heuristic". Defaults to settings.slot_extractor
            heuristic_fallback: Use the heuristic parser when the AI service fails.
                Defaults to settings.heuristic_fallback
        """
        self.fetcher = fetcher or fetch_bytes
        self.text_extractor = text_extractor or pdf_text_extractor
        self.extractor = extractor or slot_extractor
        self.parser = parser or heuristic_parser
        self.resolver = resolver or reference_resolver
        self.reconciler = reconciler or slot_reconciler
        self.sources = sources or source_tracker
        self.slot_extractor_kind = ExtractorKind(
            slot_extractor_kind or settings.slot_extractor
        )
        self.heuristic_fallback = (
            settings.heuristic_fallback if heuristic_fallback is None else heuristic_fallback
        )

    async def ingest(
        self, source_id: str, url: str, today: Optional[date] = None
    ) -> IngestionResult:
        """Ingest one document.

        Args:
            source_id: Raw id of the registered source
            url: Document URL
            today: Reference day for date resolution

        Returns:
            Summary of the run

        Raises:
            IngestionError: if any stage fails
        """
        logger.info(f"[INGEST] Starting PDF parsing for source: {source_id}")

        data = await self._run(PipelineStage.FETCH, self.fetcher(url))
        text = await self._run_sync(
            PipelineStage.EXTRACT_TEXT, lambda: self.text_extractor.extract_text(data)
        )
        schedule, kind = await self._run(
            PipelineStage.EXTRACT_SLOTS, self._extract_schedule(text, url, today)
        )
        logger.info(
            f"[INGEST] Extracted gym '{schedule.gym_name}' (area: {schedule.area_name}) "
            f"with {len(schedule.slots)} slots via {kind.value}"
        )

        gym_id = await self._run_sync(
            PipelineStage.RESOLVE_GYM,
            lambda: self.resolver.resolve_gym(
                schedule.gym_name,
                area_name=schedule.area_name,
                address=schedule.address,
                tel=schedule.tel,
                official_url=url,
            ),
        )
        conversion = await self._run_sync(
            PipelineStage.PERSIST,
            lambda: self.reconciler.reconcile(
                gym_id, make_ref(SOURCE_PREFIX, source_id), schedule.slots
            ),
        )
        await self._run_sync(
            PipelineStage.UPDATE_SOURCE,
            lambda: self.sources.mark_checked(source_id, gym_id),
        )

        logger.info(
            f"[INGEST] PDF parsing completed: {gym_id}, "
            f"{conversion.success} added, {conversion.failed} failed"
        )
        return IngestionResult(
            source_id=source_id,
            gym_id=gym_id,
            extractor=kind,
            slots_extracted=len(schedule.slots),
            slots_added=conversion.success,
            slots_failed=conversion.failed,
            errors=conversion.errors,
        )

    async def _extract_schedule(
        self, text: str, url: str, today: Optional[date]
    ) -> Tuple[ExtractedSchedule, ExtractorKind]:
        if self.slot_extractor_kind == ExtractorKind.HEURISTIC:
            return self.parser.parse_document(text, url, today=today), ExtractorKind.HEURISTIC

        try:
            return await self.extractor.extract(text, url, today=today), ExtractorKind.AI
        except AIServiceError as e:
            if not self.heuristic_fallback:
                raise
            logger.warning(f"[INGEST] AI extraction failed ({e}), falling back to heuristic parser")
            return self.parser.parse_document(text, url, today=today), ExtractorKind.HEURISTIC

    async def _run(self, stage: PipelineStage, step: Awaitable[T]) -> T:
        logger.info(f"[INGEST] Stage: {stage.value}")
        try:
            return await step
        except Exception as e:
            logger.error(f"[INGEST] Stage {stage.value} failed: {e}", exc_info=True)
            raise IngestionError(stage.value, str(e)) from e

    async def _run_sync(self, stage: PipelineStage, step: Callable[[], T]) -> T:
        async def call() -> T:
            return step()

        return await self._run(stage, call())


# Global orchestrator instance
orchestrator = IngestionOrchestrator()
