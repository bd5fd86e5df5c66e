"""docmind config show / set — inspect and change settings."""

from __future__ import annotations

import json
from typing import Annotated

import typer
from rich.console import Console
from rich.syntax import Syntax

config_app = typer.Typer(help="Inspect or change settings.", no_args_is_help=True)


@config_app.command("show")
def show_cmd():
    """Print the effective settings (defaults, config.yaml and env merged)."""
    import yaml

    from docmind.cli.app import is_json
    from docmind.config import get_settings

    data = get_settings().model_dump()
    data["admin"]["password"] = "********"

    if is_json():
        print(json.dumps(data, indent=2))
        return
    Console().print(Syntax(yaml.safe_dump(data, sort_keys=False, allow_unicode=True), "yaml"))


@config_app.command("set")
def set_cmd(
    key: Annotated[str, typer.Argument(help="Dotted setting name, e.g. chat.top_k")],
    value: Annotated[str, typer.Argument(help="New value, parsed as YAML")],
):
    """Write one setting to config.yaml in the project root."""
    import yaml

    from docmind.cli.app import is_json
    from docmind.config import save_user_config

    parsed = yaml.safe_load(value)
    try:
        path = save_user_config(key, parsed)
    except ValueError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(code=1)

    if is_json():
        print(json.dumps({"status": "ok", "key": key, "value": parsed, "path": str(path)}))
    else:
        Console().print(f"[green]{key} = {parsed!r}[/green] saved to {path}")
