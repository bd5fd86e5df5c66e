"""docmind register / login — client accounts."""

from __future__ import annotations

import json
from typing import Annotated

import typer
from rich.console import Console


def register_cmd(
    name: Annotated[str, typer.Option("--name", prompt=True, help="Display name")],
    email: Annotated[str, typer.Option("--email", prompt=True, help="Email address")],
    password: Annotated[
        str,
        typer.Option("--password", prompt=True, hide_input=True, confirmation_prompt=True),
    ],
):
    """Register a client account."""
    from docmind.cli.app import is_json, open_store
    from docmind.errors import DuplicateUserError
    from docmind.users import register_user

    store = open_store()
    try:
        try:
            user = register_user(store, name, email, password)
        except DuplicateUserError as e:
            typer.echo(str(e), err=True)
            raise typer.Exit(code=1)

        if is_json():
            print(json.dumps({"status": "ok", "id": user.id, "email": user.email}))
        else:
            Console().print(f"[green]Registered {user.email}[/green]")
    finally:
        store.close()


def login_cmd(
    email: Annotated[str, typer.Option("--email", prompt=True, help="Email address")],
    password: Annotated[str, typer.Option("--password", prompt=True, hide_input=True)],
):
    """Check an account's credentials and print its role."""
    from docmind.cli.app import is_json, open_store
    from docmind.users import authenticate

    store = open_store()
    try:
        user = authenticate(store, email, password)
        if user is None:
            typer.echo("Invalid email or password", err=True)
            raise typer.Exit(code=1)

        if is_json():
            print(
                json.dumps(
                    {"status": "ok", "id": user.id, "name": user.name, "role": user.role.value}
                )
            )
        else:
            Console().print(f"[green]Welcome, {user.name}[/green] ({user.role.value})")
    finally:
        store.close()
