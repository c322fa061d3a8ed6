"""Open-use gym slot ingestion service."""

__version__ = "1.0.0"
