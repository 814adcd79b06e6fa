"""CLI: yewchat login|whoami|logout"""

from typing import Optional

import click
from rich.console import Console

console = Console()


def _load_config() -> dict:
    from yewchat.cli.main import _load_config
    return _load_config()


def _save_config(cfg: dict) -> None:
    from yewchat.cli.main import _save_config
    _save_config(cfg)


@click.command("login")
@click.argument("username", required=False)
@click.option("--endpoint", "login_endpoint", default=None, help="Chat server WebSocket URL to remember")
@click.pass_context
def login(ctx: click.Context, username: Optional[str], login_endpoint: Optional[str]):
    """Choose the username you chat under."""
    name = (username or click.prompt("Username")).strip()
    if not name:
        console.print("[red]Username cannot be empty.[/red]")
        raise SystemExit(1)

    cfg = _load_config()
    cfg["username"] = name
    endpoint = login_endpoint or (ctx.obj or {}).get("endpoint")
    if endpoint:
        cfg["endpoint"] = endpoint
    _save_config(cfg)
    console.print(f"[green]Chatting as {name}[/green]")
    console.print("[dim]Saved to ~/.yewchat/config.json[/dim]")


@click.command("whoami")
def whoami():
    """Show the saved username and server."""
    from yewchat.cli.main import _resolve_endpoint
    cfg = _load_config()
    if cfg.get("username"):
        console.print(f"[green]{cfg['username']}[/green] on {_resolve_endpoint(None)}")
    else:
        console.print("[yellow]No username set. Run `yewchat login`.[/yellow]")


@click.command("logout")
def logout():
    """Forget the saved username (the server endpoint is kept)."""
    cfg = _load_config()
    cfg.pop("username", None)
    _save_config(cfg)
    console.print("[green]Logged out.[/green]")
