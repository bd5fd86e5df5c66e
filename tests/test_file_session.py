"""Tests for docmind.chat.file_session."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from docmind.chat.file_session import FileChatSession
from docmind.errors import GenerationError
from docmind.ingest.extractors import UploadedFile


@pytest.fixture
def session(client):
    file = UploadedFile(name="scan.png", mime_type="image/png", data=b"\x89PNG")
    return FileChatSession(client, file)


def test_history_is_primed_with_file(session):
    system, user, model = session.history
    assert system["role"] == "system"
    assert user["content"][0]["type"] == "image_url"
    assert "base64" in user["content"][0]["image_url"]["url"]
    assert model["role"] == "assistant"


@pytest.mark.asyncio
async def test_send_keeps_conversation_state(session, client):
    client.complete = AsyncMock(side_effect=["It is a receipt.", "It totals $12."])

    assert await session.send("What is this?") == "It is a receipt."
    assert await session.send("Total?") == "It totals $12."

    second_call = client.complete.call_args_list[1].args[0]
    assert second_call[-3]["content"] == "What is this?"
    assert second_call[-2]["content"] == "It is a receipt."
    assert second_call[-1]["content"] == "Total?"
    assert len(session.history) == 7


@pytest.mark.asyncio
async def test_send_failure_propagates_and_keeps_history(session, client):
    client.complete = AsyncMock(side_effect=GenerationError("down"))

    with pytest.raises(GenerationError):
        await session.send("Hello?")
    assert len(session.history) == 3


@pytest.mark.asyncio
async def test_sessions_are_independent(client):
    client.complete = AsyncMock(return_value="ok")
    a = FileChatSession(client, UploadedFile(name="a.txt", mime_type="text/plain", data=b"a"))
    b = FileChatSession(client, UploadedFile(name="b.txt", mime_type="text/plain", data=b"b"))

    await a.send("question")

    assert len(a.history) == 5
    assert len(b.history) == 3
