"""docmind doctor — validate config, storage, credentials and model calls."""

from __future__ import annotations

import asyncio
import json
import os

import typer
from rich.console import Console
from rich.table import Table

# API key expected for each LiteLLM provider prefix
_PROVIDER_KEYS = {
    "gemini": "GEMINI_API_KEY",
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "voyage": "VOYAGE_API_KEY",
}


async def _check_config() -> tuple[bool, str]:
    """Verify config loads without error."""
    try:
        from docmind.config import get_settings
        settings = get_settings()
        profile = settings.llm
        return True, f"profile={settings.active_profile}, chat={profile.chat_model}"
    except Exception as e:
        return False, str(e)


async def _check_env_vars() -> tuple[bool, str]:
    """Check that API keys for the active profile's providers are set."""
    try:
        from docmind.config import get_settings
        profile = get_settings().llm
    except Exception as e:
        return False, str(e)

    providers = {
        m.split("/", 1)[0]
        for m in (profile.chat_model, profile.embed_model, profile.vision_model)
        if "/" in m
    }
    needed = sorted({_PROVIDER_KEYS[p] for p in providers if p in _PROVIDER_KEYS})
    missing = [var for var in needed if not os.environ.get(var)]
    if missing:
        return False, f"missing: {', '.join(missing)}"
    return True, f"{', '.join(needed)} set" if needed else "no API keys required"


async def _check_store() -> tuple[bool, str]:
    """Open the record store and report stale embeddings."""
    try:
        from docmind.config import get_settings
        from docmind.stores.records import RecordStore
        settings = get_settings()
        store = RecordStore(settings.store.path)
        try:
            docs = store.list_documents()
            chunks = store.list_chunks()
        finally:
            store.close()
        stale = sum(1 for c in chunks if c.embed_model != settings.llm.embed_model)
        unprocessed = sum(1 for d in docs if not d.processed)
        detail = f"{len(docs)} documents ({unprocessed} unprocessed), {len(chunks)} chunks"
        if stale:
            return False, f"{detail}, {stale} embedded with another model"
        return True, detail
    except Exception as e:
        return False, str(e)


async def _check_llm() -> tuple[bool, str]:
    """Call the chat model with a trivial prompt."""
    try:
        from docmind.llm import ModelClient
        answer = await ModelClient().complete(
            [{"role": "user", "content": "Reply with exactly: OK"}],
            max_tokens=10,
        )
        return True, f"got response ({len(answer)} chars)"
    except Exception as e:
        return False, str(e)


async def _check_embed() -> tuple[bool, str]:
    """Embed a trivial input and compare its dimension with the profile."""
    try:
        from docmind.llm import ModelClient
        client = ModelClient()
        vector = await client.embed("test")
        if len(vector) != client.embed_dim:
            return False, f"dim={len(vector)}, profile says {client.embed_dim}"
        return True, f"dim={len(vector)}"
    except Exception as e:
        return False, str(e)


async def _run_checks() -> list[dict]:
    """Run all checks and return results."""
    checks = [
        ("Config", _check_config),
        ("Env Vars", _check_env_vars),
        ("Store", _check_store),
        ("LLM (chat)", _check_llm),
        ("Embeddings", _check_embed),
    ]
    results = []
    for name, check_fn in checks:
        ok, detail = await check_fn()
        results.append({"check": name, "ok": ok, "detail": detail})
    return results


def doctor_cmd():
    """Check configuration and model connectivity."""
    from docmind.cli.app import is_json

    results = asyncio.run(_run_checks())

    if is_json():
        print(json.dumps(results, indent=2))
        return

    console = Console()
    table = Table(title="docmind doctor", show_lines=True)
    table.add_column("Check", style="bold")
    table.add_column("Status")
    table.add_column("Detail")

    all_ok = True
    for r in results:
        status = "[green]PASS[/green]" if r["ok"] else "[red]FAIL[/red]"
        if not r["ok"]:
            all_ok = False
        table.add_row(r["check"], status, r["detail"])

    console.print(table)
    if all_ok:
        console.print("\n[bold green]All checks passed.[/bold green]")
    else:
        console.print("\n[bold yellow]Some checks failed. See details above.[/bold yellow]")
        raise typer.Exit(code=1)
