"""Domain exceptions raised by the ingestion and answering pipelines."""

from __future__ import annotations


class DocmindError(Exception):
    """Base class for all docmind errors."""


class ExtractionError(DocmindError):
    """Text extraction failed or produced nothing usable."""


class EmbeddingError(DocmindError):
    """The embedding model returned no vector, or a malformed one."""


class GenerationError(DocmindError):
    """The chat model call failed."""


class DuplicateUserError(DocmindError):
    """A user with this email is already registered."""

    def __init__(self, email: str):
        super().__init__(f"A user with email '{email}' already exists")
        self.email = email


class IngestionError(DocmindError):
    """An ingestion run stopped at *step*.

    The document record is left as it was when the step failed
    (unprocessed, possibly with some chunks stored).
    """

    def __init__(self, step: str, document_id: int | None, message: str):
        super().__init__(f"Ingestion failed while {step}: {message}")
        self.step = step
        self.document_id = document_id
