"""docmind chat / ask-file — ask questions against documents."""

from __future__ import annotations

import asyncio
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel


def chat_cmd(
    query: Annotated[str, typer.Argument(help="Question to ask about your documents")],
    session: Annotated[
        int | None, typer.Option("--session", "-s", help="Continue an existing chat session")
    ] = None,
    user: Annotated[
        str | None, typer.Option("--user", "-u", help="Email of the asking user (default: admin)")
    ] = None,
    top_k: Annotated[
        int | None, typer.Option("--top-k", "-k", help="Number of chunks to retrieve")
    ] = None,
):
    """Ask a question about the ingested documents."""
    from docmind.chat.engine import answer
    from docmind.cli.app import is_json, open_store
    from docmind.config import get_settings
    from docmind.errors import EmbeddingError
    from docmind.llm import ModelClient
    from docmind.models import ChatMessage, ChatSession, ChatTurn, MessageRole

    settings = get_settings()
    console = Console()
    store = open_store()

    try:
        email = user or settings.admin.email
        account = store.get_user_by_email(email)
        if account is None:
            typer.echo(f"Unknown user: {email}", err=True)
            raise typer.Exit(code=1)

        if session is None:
            session = store.add_session(ChatSession(user_id=account.id, title=query[:60]))
        else:
            existing = store.get_session(session)
            if existing is None or existing.user_id != account.id:
                typer.echo(f"Session {session} not found for {email}", err=True)
                raise typer.Exit(code=1)

        history = [
            ChatTurn(role=m.role, content=m.content) for m in store.list_messages(session)
        ]

        async def _run():
            async with ModelClient() as client:
                return await answer(query, store, client, history=history, top_k=top_k)

        try:
            result = asyncio.run(_run())
        except EmbeddingError:
            console.print("[red]Sorry, your question could not be processed. Please try again.[/red]")
            raise typer.Exit(code=1)

        now = datetime.now(timezone.utc)
        store.add_message(
            ChatMessage(session_id=session, role=MessageRole.USER, content=query, timestamp=now)
        )
        store.add_message(
            ChatMessage(
                session_id=session,
                role=MessageRole.ASSISTANT,
                content=result.text,
                relevant_docs=result.sources,
            )
        )
        store.touch_session(session, now)

        if is_json():
            print(
                json.dumps(
                    {
                        "status": "ok",
                        "session": session,
                        "answer": result.text,
                        "sources": result.sources,
                    },
                    indent=2,
                )
            )
        else:
            console.print(Panel(Markdown(result.text), title="Answer", border_style="green"))

            if result.sources:
                console.print("\n[bold]Sources:[/bold]")
                for name in result.sources:
                    console.print(f"  • {name}")

            console.print(f"\n[dim]Continue with --session {session}[/dim]")
    finally:
        store.close()


def ask_file_cmd(
    path: Annotated[Path, typer.Argument(help="File to chat with")],
    question: Annotated[
        str | None, typer.Argument(help="Question (omit for an interactive session)")
    ] = None,
):
    """Chat directly with a single file, without ingesting it."""
    from docmind.chat.file_session import FileChatSession
    from docmind.cli.app import is_json
    from docmind.errors import GenerationError
    from docmind.ingest.extractors import UploadedFile
    from docmind.llm import ModelClient

    resolved = path.resolve()
    if not resolved.is_file():
        typer.echo(f"File not found: {resolved}", err=True)
        raise typer.Exit(code=1)

    console = Console()
    chat = FileChatSession(ModelClient(), UploadedFile.from_path(resolved))

    if question is not None:
        try:
            reply = asyncio.run(chat.send(question))
        except GenerationError as e:
            console.print(f"[red]{e}[/red]")
            raise typer.Exit(code=1)

        if is_json():
            print(json.dumps({"status": "ok", "answer": reply}, indent=2))
        else:
            console.print(Panel(Markdown(reply), title=resolved.name, border_style="green"))
        return

    console.print(f"[bold]Chatting with {resolved.name}[/bold] — empty line to quit.")

    while True:
        text = typer.prompt("You", default="", show_default=False)
        if not text.strip():
            return
        try:
            reply = asyncio.run(chat.send(text))
        except GenerationError as e:
            console.print(f"[red]{e}[/red]")
            continue
        console.print(Panel(Markdown(reply), border_style="green"))
