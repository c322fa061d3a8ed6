"""Agents for the application."""
from .slot_extractor import SlotExtractor, slot_extractor
from .orchestrator import IngestionOrchestrator, orchestrator

__all__ = [
    "SlotExtractor",
    "slot_extractor",
    "IngestionOrchestrator",
    "orchestrator",
]
