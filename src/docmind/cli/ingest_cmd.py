"""docmind ingest — ingest files or folders into the knowledge base."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.progress import BarColumn, MofNCompleteColumn, Progress, SpinnerColumn, TextColumn
from rich.table import Table


def _collect_files(paths: list[Path]) -> list[Path]:
    """Expand folders into their files (recursively, sorted)."""
    files: list[Path] = []
    for path in paths:
        resolved = path.resolve()
        if resolved.is_dir():
            files.extend(sorted(p for p in resolved.rglob("*") if p.is_file()))
        elif resolved.is_file():
            files.append(resolved)
        else:
            typer.echo(f"Path not found: {resolved}", err=True)
            raise typer.Exit(code=1)
    return files


def ingest_cmd(
    paths: Annotated[list[Path], typer.Argument(help="Files or folders to ingest")],
    concurrency: Annotated[
        int | None,
        typer.Option("--concurrency", "-c", help="Embedding calls in flight per document"),
    ] = None,
):
    """Ingest files into the knowledge base."""
    from docmind.cli.app import is_json, open_store
    from docmind.errors import IngestionError
    from docmind.ingest.pipeline import ingest_path
    from docmind.llm import ModelClient
    from docmind.models import IngestProgress, IngestStage

    files = _collect_files(paths)
    store = open_store()
    console = Console()
    results: list[dict] = []

    async def _run(progress: Progress):
        async with ModelClient() as client:
            for path in files:
                task = progress.add_task(path.name, total=None)

                def on_progress(event: IngestProgress, task=task, name=path.name):
                    if event.stage == IngestStage.VECTORIZING:
                        progress.update(
                            task,
                            total=event.total,
                            completed=event.current - 1,
                            description=f"{name}: {event.message}",
                        )
                    elif event.stage == IngestStage.SUCCESS:
                        progress.update(
                            task,
                            total=event.total or 1,
                            completed=event.total or 1,
                            description=f"{name}: done",
                        )
                    else:
                        progress.update(task, description=f"{name}: {event.stage.value}")

                try:
                    doc_id = await ingest_path(
                        path, store, client, on_progress=on_progress, concurrency=concurrency
                    )
                except IngestionError as e:
                    progress.update(task, description=f"[red]{path.name}: failed[/red]")
                    results.append(
                        {
                            "path": str(path),
                            "status": "error",
                            "document_id": e.document_id,
                            "step": e.step,
                            "error": str(e),
                        }
                    )
                    continue

                results.append(
                    {
                        "path": str(path),
                        "status": "ok",
                        "document_id": doc_id,
                        "chunks": store.count_chunks(doc_id),
                    }
                )

    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            console=console,
            disable=is_json(),
        ) as progress:
            asyncio.run(_run(progress))

        failed = [r for r in results if r["status"] == "error"]

        if is_json():
            print(
                json.dumps(
                    {
                        "status": "error" if failed else "ok",
                        "ingested": len(results) - len(failed),
                        "failed": len(failed),
                        "documents": results,
                    },
                    indent=2,
                )
            )
        else:
            if not results:
                console.print("[yellow]No files to ingest.[/yellow]")
                return

            table = Table(title=f"Ingested {len(results) - len(failed)} of {len(results)} file(s)")
            table.add_column("ID", justify="right")
            table.add_column("File")
            table.add_column("Chunks", justify="right")
            table.add_column("Status")

            for r in results:
                if r["status"] == "ok":
                    table.add_row(
                        str(r["document_id"]), r["path"], str(r["chunks"]), "[green]ok[/green]"
                    )
                else:
                    table.add_row(
                        str(r["document_id"] or "—"), r["path"], "—", f"[red]{r['error']}[/red]"
                    )

            console.print(table)
            if failed:
                console.print(
                    "[yellow]Failed documents are kept unprocessed; "
                    "remove them with `docmind delete <id>`.[/yellow]"
                )

        if failed:
            raise typer.Exit(code=1)
    finally:
        store.close()
