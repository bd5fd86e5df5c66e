"""docmind documents / delete — inspect and remove ingested documents."""

from __future__ import annotations

import json
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table


def documents_cmd():
    """List ingested documents, newest first."""
    from docmind.cli.app import is_json, open_store

    store = open_store()
    try:
        docs = store.list_documents()
        rows = [
            {
                "id": d.id,
                "name": d.name,
                "mime_type": d.mime_type,
                "size": d.size,
                "uploaded_at": d.uploaded_at.isoformat(),
                "processed": d.processed,
                "chunks": store.count_chunks(d.id),
            }
            for d in docs
        ]

        if is_json():
            print(json.dumps(rows, indent=2))
            return

        console = Console()
        if not rows:
            console.print("[yellow]No documents ingested yet.[/yellow]")
            return

        table = Table(title=f"{len(rows)} document(s)")
        table.add_column("ID", justify="right")
        table.add_column("Name")
        table.add_column("Type")
        table.add_column("Size", justify="right")
        table.add_column("Uploaded")
        table.add_column("Chunks", justify="right")
        table.add_column("Status")

        for r in rows:
            status = "[green]processed[/green]" if r["processed"] else "[yellow]unprocessed[/yellow]"
            table.add_row(
                str(r["id"]),
                r["name"],
                r["mime_type"],
                f"{r['size'] / 1024:.1f} KB",
                r["uploaded_at"][:19],
                str(r["chunks"]),
                status,
            )
        console.print(table)
    finally:
        store.close()


def delete_cmd(
    document_id: Annotated[int, typer.Argument(help="ID of the document to delete")],
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Do not ask for confirmation")] = False,
):
    """Delete a document and every chunk derived from it."""
    from docmind.cli.app import is_json, open_store
    from docmind.ingest.pipeline import delete_document

    store = open_store()
    try:
        doc = store.get_document(document_id)
        if doc is None:
            typer.echo(f"Document {document_id} not found", err=True)
            raise typer.Exit(code=1)

        if not yes:
            typer.confirm(f"Delete '{doc.name}' and its index?", abort=True)

        delete_document(store, document_id)

        if is_json():
            print(json.dumps({"status": "ok", "deleted": document_id}))
        else:
            Console().print(f"[green]Deleted {doc.name}[/green]")
    finally:
        store.close()
