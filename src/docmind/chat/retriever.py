"""Retriever — embed the query and rank every stored chunk against it."""

from __future__ import annotations

import logging

from docmind.config import get_settings
from docmind.llm import ModelClient
from docmind.models import ScoredChunk
from docmind.retrieval.similarity import search
from docmind.stores.records import RecordStore

log = logging.getLogger(__name__)


async def retrieve_chunks(
    query: str,
    store: RecordStore,
    client: ModelClient,
    *,
    top_k: int | None = None,
) -> list[ScoredChunk]:
    """Return the *top_k* chunks most similar to *query*.

    Chunks embedded with a different model than the client's are not
    comparable and are left out. EmbeddingError from the query embedding
    propagates.
    """
    if top_k is None:
        top_k = get_settings().chat.top_k

    query_emb = await client.embed(query)

    corpus = store.list_chunks()
    current = [c for c in corpus if c.embed_model == client.embed_model]
    stale = len(corpus) - len(current)
    if stale:
        log.warning(
            "Ignoring %d chunk(s) embedded with another model than %s; re-ingest them",
            stale,
            client.embed_model,
        )

    return search(query_emb, current, top_k)
