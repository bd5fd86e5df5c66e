"""Chat engine — retrieval-augmented answers with source attribution."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from docmind.chat.retriever import retrieve_chunks
from docmind.config import get_settings
from docmind.errors import GenerationError
from docmind.llm import ModelClient
from docmind.models import Answer, ChatTurn, ScoredChunk
from docmind.stores.records import RecordStore

log = logging.getLogger(__name__)

CONTEXT_SEPARATOR = "\n\n---\n\n"


def _build_context(results: Sequence[ScoredChunk]) -> str:
    """Join chunk texts in rank order with a visible separator."""
    return CONTEXT_SEPARATOR.join(r.chunk.text for r in results)


def _system_message(template: str, context: str) -> str:
    """Fill the ``{context}`` slot, or append the context if the prompt has none."""
    if "{context}" in template:
        return template.replace("{context}", context)
    return f"{template}\n\nCONTEXT:\n{context}"


def _source_names(results: Sequence[ScoredChunk], store: RecordStore) -> list[str]:
    """Names of the distinct documents behind *results*, first hit first."""
    doc_ids = list(dict.fromkeys(r.chunk.document_id for r in results))
    names = []
    for doc_id in doc_ids:
        doc = store.get_document(doc_id)
        if doc is not None:
            names.append(doc.name)
    return names


async def answer(
    query: str,
    store: RecordStore,
    client: ModelClient,
    *,
    history: Sequence[ChatTurn] | None = None,
    top_k: int | None = None,
) -> Answer:
    """Answer *query* from the stored documents.

    Only the last ``chat.history_turns`` turns of *history* are sent.
    EmbeddingError from the query embedding propagates; generation
    failures are turned into the configured apology with no sources.
    """
    cfg = get_settings()
    prompts = cfg.prompts

    results = await retrieve_chunks(query, store, client, top_k=top_k)
    if not results:
        return Answer(text=prompts.no_context_message, sources=[])

    context = _build_context(results)
    sources = _source_names(results, store)

    messages = [
        {"role": "system", "content": _system_message(prompts.system_prompt, context)}
    ]
    turns = list(history or [])
    if cfg.chat.history_turns > 0:
        messages.extend(t.to_message() for t in turns[-cfg.chat.history_turns :])
    messages.append({"role": "user", "content": query})

    try:
        text = await client.complete(messages)
    except GenerationError:
        log.exception("Chat generation failed")
        return Answer(text=prompts.error_message, sources=[])

    return Answer(text=text or prompts.empty_response_message, sources=sources)
