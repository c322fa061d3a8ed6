"""Registration and bookkeeping for schedule document sources."""
from datetime import datetime, timezone
from typing import List, Optional

from ..config import settings
from ..models import SOURCE_PREFIX, Source, SourceType, strip_ref
from ..utils.logger import logger
from .document_store import DocumentStore, document_store

SOURCES = "sources"


class SourceTracker:
    """Keeps one source record per registered URL."""

    def __init__(self, store: Optional[DocumentStore] = None):
        self.store = store or document_store

    def register_source(self, url: str, source_type: SourceType = SourceType.PDF) -> Source:
        """Register a document URL, returning the existing source if already known."""
        data = {
            "url": url,
            "type": source_type.value,
            "gym_id": None,
            "last_checked_at": None,
            "parser_version": settings.parser_version,
        }
        source_id, created = self.store.get_or_create(SOURCES, "url", url, data)
        if created:
            logger.info(f"[SOURCE] Registered {url} as {source_id}")
        return self.get_source(source_id)

    def get_source(self, source_id: str) -> Optional[Source]:
        doc = self.store.get(SOURCES, strip_ref(SOURCE_PREFIX, source_id))
        return Source(**doc) if doc else None

    def list_sources(self) -> List[Source]:
        return [Source(**doc) for doc in self.store.find(SOURCES)]

    def mark_checked(self, source_id: str, gym_id: str) -> Source:
        """Link a source to its gym and stamp the check time.

        Raises:
            DocumentNotFoundError: if the source is not registered
        """
        doc = self.store.update(
            SOURCES,
            strip_ref(SOURCE_PREFIX, source_id),
            {
                "gym_id": gym_id,
                "last_checked_at": datetime.now(timezone.utc).isoformat(),
            },
        )
        return Source(**doc)


# Global source tracker instance
source_tracker = SourceTracker()
