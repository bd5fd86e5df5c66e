"""Shared domain models used across the system."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Role(str, Enum):
    ADMIN = "admin"
    CLIENT = "client"


class MessageRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class User(BaseModel):
    """A registered actor. ``password_hash`` is a salted PBKDF2 digest."""

    id: int | None = None
    name: str
    email: str
    password_hash: str
    role: Role = Role.CLIENT
    created_at: datetime = Field(default_factory=_now)


class Document(BaseModel):
    """An uploaded file's metadata and, once extracted, its text."""

    id: int | None = None
    name: str
    mime_type: str
    size: int
    uploaded_at: datetime = Field(default_factory=_now)
    text: str | None = None
    processed: bool = False


class Chunk(BaseModel):
    """One embedded segment of a document's text."""

    id: int | None = None
    document_id: int
    index: int
    text: str
    embedding: list[float]
    embed_model: str = ""


class ScoredChunk(BaseModel):
    """A chunk ranked against a query vector. Not persisted."""

    chunk: Chunk
    score: float


class ChatSession(BaseModel):
    id: int | None = None
    user_id: int
    title: str
    updated_at: datetime = Field(default_factory=_now)


class ChatMessage(BaseModel):
    id: int | None = None
    session_id: int
    role: MessageRole
    content: str
    timestamp: datetime = Field(default_factory=_now)
    relevant_docs: list[str] = []


class ChatTurn(BaseModel):
    """One prior turn passed to the chat model as history."""

    role: MessageRole
    content: str

    def to_message(self) -> dict:
        return {"role": self.role.value, "content": self.content}


class Answer(BaseModel):
    """Result of a retrieval-augmented question."""

    text: str
    sources: list[str] = []


class IngestStage(str, Enum):
    READING = "reading"
    EXTRACTING = "extracting"
    VECTORIZING = "vectorizing"
    SUCCESS = "success"
    ERROR = "error"


class IngestProgress(BaseModel):
    """A progress event emitted by the ingestion pipeline."""

    stage: IngestStage
    document_id: int | None = None
    current: int = 0
    total: int = 0
    message: str = ""
