"""Services for the application."""
from .document_store import DocumentStore, JsonFileStore, document_store
from .http_client import HTTPClient, fetch_bytes
from .pdf_text import PdfTextExtractor, pdf_text_extractor
from .heuristic_parser import HeuristicSlotParser, heuristic_parser
from .reference_resolver import ReferenceResolver, reference_resolver
from .slot_reconciler import SlotReconciler, slot_reconciler
from .source_tracker import SourceTracker, source_tracker
from .catalog import CatalogService, catalog_service

__all__ = [
    "DocumentStore",
    "JsonFileStore",
    "document_store",
    "HTTPClient",
    "fetch_bytes",
    "PdfTextExtractor",
    "pdf_text_extractor",
    "HeuristicSlotParser",
    "heuristic_parser",
    "ReferenceResolver",
    "reference_resolver",
    "SlotReconciler",
    "slot_reconciler",
    "SourceTracker",
    "source_tracker",
    "CatalogService",
    "catalog_service",
]
