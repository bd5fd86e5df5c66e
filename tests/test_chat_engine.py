"""Tests for docmind.chat.engine and docmind.chat.retriever."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from docmind.chat.engine import CONTEXT_SEPARATOR, _build_context, answer
from docmind.chat.retriever import retrieve_chunks
from docmind.config import get_settings
from docmind.errors import EmbeddingError, GenerationError
from docmind.models import ChatTurn, Chunk, Document, MessageRole


@pytest.fixture
def populated(store, client):
    """Two documents: refunds (two chunks) and shipping (one chunk)."""
    refunds = store.add_document(Document(name="refunds.pdf", mime_type="application/pdf", size=1))
    shipping = store.add_document(Document(name="shipping.txt", mime_type="text/plain", size=1))

    def add(doc_id, index, text, vector, model=None):
        store.add_chunk(
            Chunk(
                document_id=doc_id,
                index=index,
                text=text,
                embedding=vector,
                embed_model=model or client.embed_model,
            )
        )

    add(refunds, 0, "Refunds are issued within 30 days.", [1.0, 0.0, 0.0])
    add(refunds, 1, "Refunds require a receipt.", [0.9, 0.1, 0.0])
    add(shipping, 0, "Shipping takes five days.", [0.0, 1.0, 0.0])
    return {"refunds": refunds, "shipping": shipping, "add": add}


def test_build_context_uses_separator(store, client):
    from docmind.models import ScoredChunk

    results = [
        ScoredChunk(chunk=Chunk(document_id=1, index=0, text="A", embedding=[1.0]), score=0.9),
        ScoredChunk(chunk=Chunk(document_id=1, index=1, text="B", embedding=[1.0]), score=0.8),
    ]
    assert _build_context(results) == f"A{CONTEXT_SEPARATOR}B"


@pytest.mark.asyncio
async def test_retrieve_ranks_by_similarity(store, client, populated):
    client.embed = AsyncMock(return_value=[1.0, 0.0, 0.0])
    results = await retrieve_chunks("refund?", store, client, top_k=2)
    assert [r.chunk.text for r in results] == [
        "Refunds are issued within 30 days.",
        "Refunds require a receipt.",
    ]


@pytest.mark.asyncio
async def test_retrieve_skips_other_embedding_models(store, client, populated, caplog):
    populated["add"](populated["shipping"], 1, "Stale chunk", [1.0, 0.0, 0.0], model="old/model")
    client.embed = AsyncMock(return_value=[1.0, 0.0, 0.0])

    with caplog.at_level("WARNING"):
        results = await retrieve_chunks("refund?", store, client, top_k=10)

    assert "Stale chunk" not in [r.chunk.text for r in results]
    assert "another model" in caplog.text


@pytest.mark.asyncio
async def test_answer_with_empty_store_skips_generation(store, client):
    client.embed = AsyncMock(return_value=[1.0, 0.0])
    client.complete = AsyncMock()

    result = await answer("Anything?", store, client)

    assert result.text == get_settings().prompts.no_context_message
    assert result.sources == []
    client.complete.assert_not_called()


@pytest.mark.asyncio
async def test_answer_builds_prompt_and_sources(store, client, populated):
    client.embed = AsyncMock(return_value=[1.0, 0.05, 0.0])
    client.complete = AsyncMock(return_value="Within 30 days, with a receipt.")

    result = await answer("How do refunds work?", store, client, top_k=3)

    assert result.text == "Within 30 days, with a receipt."
    assert sorted(result.sources) == ["refunds.pdf", "shipping.txt"]
    assert result.sources[0] == "refunds.pdf"

    messages = client.complete.call_args.args[0]
    system = messages[0]
    assert system["role"] == "system"
    assert "ONLY the context" in system["content"]
    assert (
        "Refunds are issued within 30 days."
        + CONTEXT_SEPARATOR
        + "Refunds require a receipt."
    ) in system["content"]
    assert messages[-1] == {"role": "user", "content": "How do refunds work?"}


@pytest.mark.asyncio
async def test_answer_sources_match_prompt_chunks(store, client, populated):
    client.embed = AsyncMock(return_value=[1.0, 0.0, 0.0])
    client.complete = AsyncMock(return_value="Thirty days.")

    result = await answer("Refunds?", store, client, top_k=2)

    assert result.sources == ["refunds.pdf"]
    system = client.complete.call_args.args[0][0]["content"]
    assert "Shipping" not in system


@pytest.mark.asyncio
async def test_answer_sends_only_recent_history(store, client, populated):
    client.embed = AsyncMock(return_value=[1.0, 0.0, 0.0])
    client.complete = AsyncMock(return_value="ok")
    history = [
        ChatTurn(role=MessageRole.USER if i % 2 == 0 else MessageRole.ASSISTANT, content=f"turn {i}")
        for i in range(8)
    ]

    await answer("Refunds?", store, client, history=history)

    messages = client.complete.call_args.args[0]
    sent = [m["content"] for m in messages[1:-1]]
    assert sent == ["turn 3", "turn 4", "turn 5", "turn 6", "turn 7"]
    assert messages[1]["role"] == "assistant"


@pytest.mark.asyncio
async def test_answer_generation_failure_fails_closed(store, client, populated):
    client.embed = AsyncMock(return_value=[1.0, 0.0, 0.0])
    client.complete = AsyncMock(side_effect=GenerationError("503"))

    result = await answer("Refunds?", store, client)

    assert result.text == get_settings().prompts.error_message
    assert result.sources == []


@pytest.mark.asyncio
async def test_answer_reply_without_choices_fails_closed(store, client, populated):
    client.embed = AsyncMock(return_value=[1.0, 0.0, 0.0])
    reply = MagicMock()
    reply.choices = []

    with patch("docmind.llm.litellm.acompletion", new_callable=AsyncMock) as mock:
        mock.return_value = reply
        result = await answer("Refunds?", store, client)

    assert result.text == get_settings().prompts.error_message
    assert result.sources == []


@pytest.mark.asyncio
async def test_answer_empty_reply_uses_fallback(store, client, populated):
    client.embed = AsyncMock(return_value=[1.0, 0.0, 0.0])
    client.complete = AsyncMock(return_value="")

    result = await answer("Refunds?", store, client)

    assert result.text == get_settings().prompts.empty_response_message
    assert result.sources == ["refunds.pdf", "shipping.txt"]


@pytest.mark.asyncio
async def test_answer_embedding_failure_propagates(store, client, populated):
    client.embed = AsyncMock(side_effect=EmbeddingError("no vector"))
    client.complete = AsyncMock()

    with pytest.raises(EmbeddingError):
        await answer("Refunds?", store, client)
    client.complete.assert_not_called()
