"""Error taxonomy for the ingestion pipeline."""
from typing import Optional


class OpenSlotsError(Exception):
    """Base class for all pipeline errors."""


class ConfigurationError(OpenSlotsError):
    """A required setting (usually an API credential) is missing."""


class FetchError(OpenSlotsError):
    """The source document could not be downloaded."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ExtractionError(OpenSlotsError):
    """Text could not be extracted from the downloaded document."""


class AIServiceError(OpenSlotsError):
    """The completion service failed or returned an unusable answer."""


class AIResponseError(AIServiceError):
    """The completion service answered with a non-success status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class AIParseError(AIServiceError):
    """The completion content was empty, not JSON, or not the expected shape."""


class DocumentNotFoundError(OpenSlotsError):
    """A document addressed by id does not exist in its collection."""

    def __init__(self, collection: str, doc_id: str):
        super().__init__(f"Document not found: {collection}/{doc_id}")
        self.collection = collection
        self.doc_id = doc_id


class IngestionError(OpenSlotsError):
    """A pipeline stage failed; later stages were not run."""

    def __init__(self, stage: str, message: str):
        super().__init__(message)
        self.stage = stage
