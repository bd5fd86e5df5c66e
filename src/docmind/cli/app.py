"""docmind CLI — Typer entrypoint with global options."""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING, Annotated, Optional

import typer

if TYPE_CHECKING:
    from docmind.stores.records import RecordStore

app = typer.Typer(
    name="docmind",
    help="Chat with your documents — ingest files, then ask questions about them.",
    no_args_is_help=True,
)

# Global state shared across subcommands
_state: dict = {"json": False}


def is_json() -> bool:
    """Check if --json output mode is active."""
    return _state["json"]


def open_store() -> RecordStore:
    """Open the configured record store and make sure the admin exists."""
    from docmind.config import get_settings
    from docmind.stores.records import RecordStore
    from docmind.users import seed_admin

    store = RecordStore(get_settings().store.path)
    seed_admin(store)
    return store


@app.callback()
def main(
    json_output: Annotated[
        bool, typer.Option("--json", help="Output as JSON (agent-friendly)")
    ] = False,
    profile: Annotated[
        Optional[str], typer.Option("--profile", "-p", help="Override active model profile")
    ] = None,
    root: Annotated[
        Optional[str], typer.Option("--root", help="Override project root directory")
    ] = None,
    verbose: Annotated[
        bool, typer.Option("--verbose", "-v", help="Show debug logs")
    ] = False,
):
    """Global options applied before any subcommand."""
    _state["json"] = json_output
    if root:
        os.environ["DOCMIND_ROOT"] = root
    if profile:
        os.environ["DOCMIND_ACTIVE_PROFILE"] = profile

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )


# Register subcommands -------------------------------------------------------

from docmind.cli.chat_cmd import ask_file_cmd, chat_cmd  # noqa: E402
from docmind.cli.config_cmd import config_app  # noqa: E402
from docmind.cli.docs_cmd import delete_cmd, documents_cmd  # noqa: E402
from docmind.cli.doctor import doctor_cmd  # noqa: E402
from docmind.cli.ingest_cmd import ingest_cmd  # noqa: E402
from docmind.cli.user_cmd import login_cmd, register_cmd  # noqa: E402

app.command(name="ingest", help="Ingest files into the knowledge base.")(ingest_cmd)
app.command(name="documents", help="List ingested documents.")(documents_cmd)
app.command(name="delete", help="Delete a document and its chunks.")(delete_cmd)
app.command(name="chat", help="Ask a question about the ingested documents.")(chat_cmd)
app.command(name="ask-file", help="Chat directly with a single file.")(ask_file_cmd)
app.command(name="register", help="Register a client account.")(register_cmd)
app.command(name="login", help="Check an account's credentials.")(login_cmd)
app.command(name="doctor", help="Check configuration and model connectivity.")(doctor_cmd)
app.add_typer(config_app, name="config")
