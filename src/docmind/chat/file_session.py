"""Direct chat with a single file, without retrieval.

The whole file is sent once as the opening turn and the model reads it
in its long context window. Each session object keeps its own history.
"""

from __future__ import annotations

from docmind.config import get_settings
from docmind.ingest.extractors import UploadedFile
from docmind.llm import ModelClient, data_part

_PRIMING_REQUEST = "Here is the file I want to discuss. Please analyze it and confirm you are ready."
_PRIMING_REPLY = "I have analyzed the file and I am ready to answer your questions about it."
_EMPTY_REPLY = "I processed that, but I didn't have a text response."


class FileChatSession:
    """A stateful conversation about one uploaded file."""

    def __init__(self, client: ModelClient, file: UploadedFile):
        self.client = client
        self.file = file
        self.history: list[dict] = [
            {"role": "system", "content": get_settings().prompts.file_chat_prompt},
            {
                "role": "user",
                "content": [
                    data_part(file.data, file.mime_type),
                    {"type": "text", "text": _PRIMING_REQUEST},
                ],
            },
            {"role": "assistant", "content": _PRIMING_REPLY},
        ]

    async def send(self, text: str) -> str:
        """Ask a question; GenerationError propagates and history is left unchanged."""
        messages = [*self.history, {"role": "user", "content": text}]
        reply = await self.client.complete(messages) or _EMPTY_REPLY
        self.history = [*messages, {"role": "assistant", "content": reply}]
        return reply
