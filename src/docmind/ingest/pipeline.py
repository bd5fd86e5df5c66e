"""Ingestion pipeline — orchestrates extract → chunk → embed → store."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from pathlib import Path

from docmind.config import get_settings
from docmind.errors import EmbeddingError, ExtractionError, IngestionError
from docmind.ingest.chunker import iter_chunks
from docmind.ingest.extractors import UploadedFile, extract
from docmind.llm import ModelClient
from docmind.models import Chunk, Document, IngestProgress, IngestStage
from docmind.stores.records import RecordStore

log = logging.getLogger(__name__)

ProgressCallback = Callable[[IngestProgress], None]


def _ignore(event: IngestProgress) -> None:
    pass


async def ingest_file(
    file: UploadedFile,
    store: RecordStore,
    client: ModelClient,
    *,
    on_progress: ProgressCallback | None = None,
    chunk_size: int | None = None,
    concurrency: int | None = None,
) -> int:
    """Ingest one uploaded file and return the new document id.

    The document record is written before extraction starts, so a failed
    run still leaves an unprocessed record behind. Chunks stored before a
    failure are kept; deleting the partial document is up to the caller.

    Args:
        file: The uploaded file.
        store: Record store for documents and chunks.
        client: Model client used for extraction and embeddings.
        on_progress: Called with each progress event.
        chunk_size: Character budget per chunk (defaults to config).
        concurrency: Embedding calls in flight at once (defaults to config).

    Raises:
        IngestionError: chained to the ExtractionError or EmbeddingError
            that stopped the run.
    """
    cfg = get_settings()
    chunk_size = chunk_size or cfg.chunker.chunk_size
    concurrency = concurrency or cfg.ingest.concurrency
    emit = on_progress or _ignore

    emit(IngestProgress(stage=IngestStage.READING, message=f"Reading {file.name}"))
    doc_id = store.add_document(
        Document(name=file.name, mime_type=file.mime_type, size=file.size)
    )
    log.info("Ingesting %s as document %d", file.name, doc_id)

    step = IngestStage.EXTRACTING
    try:
        emit(IngestProgress(stage=step, document_id=doc_id, message="Extracting text"))
        text = await extract(file, client)
        store.update_document(doc_id, text=text)

        step = IngestStage.VECTORIZING
        texts = [c for c in iter_chunks(text, chunk_size) if c.strip()]
        log.info("Split %s into %d chunks", file.name, len(texts))
        await _embed_chunks(doc_id, texts, store, client, emit, concurrency)
    except (ExtractionError, EmbeddingError) as e:
        log.error("Ingestion of %s failed while %s: %s", file.name, step.value, e)
        emit(
            IngestProgress(stage=IngestStage.ERROR, document_id=doc_id, message=str(e))
        )
        raise IngestionError(step.value, doc_id, str(e)) from e

    store.update_document(doc_id, processed=True)
    emit(
        IngestProgress(
            stage=IngestStage.SUCCESS,
            document_id=doc_id,
            current=len(texts),
            total=len(texts),
            message=f"Ingested {file.name}",
        )
    )
    log.info("Ingested %s: %d chunks", file.name, len(texts))
    return doc_id


async def _embed_chunks(
    doc_id: int,
    texts: list[str],
    store: RecordStore,
    client: ModelClient,
    emit: ProgressCallback,
    concurrency: int,
) -> None:
    """Embed and store each chunk; one at a time unless concurrency > 1."""
    total = len(texts)

    async def _one(index: int, text: str) -> None:
        emit(
            IngestProgress(
                stage=IngestStage.VECTORIZING,
                document_id=doc_id,
                current=index + 1,
                total=total,
                message=f"Vectorizing chunk {index + 1}/{total}",
            )
        )
        log.debug("Embedding chunk %d/%d of document %d", index + 1, total, doc_id)
        try:
            vector = await client.embed(text)
        except EmbeddingError as e:
            raise EmbeddingError(f"chunk {index + 1}/{total}: {e}") from e

        store.add_chunk(
            Chunk(
                document_id=doc_id,
                index=index,
                text=text,
                embedding=vector,
                embed_model=client.embed_model,
            )
        )

    if concurrency <= 1:
        for index, text in enumerate(texts):
            await _one(index, text)
        return

    semaphore = asyncio.Semaphore(concurrency)

    async def _bounded(index: int, text: str) -> None:
        async with semaphore:
            await _one(index, text)

    tasks = [asyncio.create_task(_bounded(i, t)) for i, t in enumerate(texts)]
    try:
        await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


async def ingest_path(
    path: Path,
    store: RecordStore,
    client: ModelClient,
    **kwargs,
) -> int:
    """Read a file from disk and ingest it. See :func:`ingest_file`."""
    return await ingest_file(UploadedFile.from_path(path), store, client, **kwargs)


def delete_document(store: RecordStore, doc_id: int) -> bool:
    """Delete a document and its chunks. Returns False if it did not exist."""
    if store.get_document(doc_id) is None:
        return False
    removed = store.delete_document(doc_id)
    log.info("Deleted document %d and %d chunk(s)", doc_id, removed)
    return True
