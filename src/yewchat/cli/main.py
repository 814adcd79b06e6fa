"""
YewChat CLI — `yewchat` command.

Commands:
  yewchat login [username]   Pick the name you chat under
  yewchat whoami             Show the saved name and server
  yewchat logout             Forget the saved name
  yewchat chat               Interactive chat REPL
  yewchat send <message>     One-shot message
  yewchat users              List who is online
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Optional

try:
    import click
    from rich.console import Console
    from rich.logging import RichHandler
except ImportError:
    raise SystemExit("CLI requires extras: pip install yewchat[cli]")

from yewchat import __version__
from yewchat.client import ChatClient
from yewchat.transport.websocket import DEFAULT_ENDPOINT

console = Console()
CONFIG_FILE = Path.home() / ".yewchat" / "config.json"


def _load_config() -> dict:
    try:
        return json.loads(CONFIG_FILE.read_text())
    except (FileNotFoundError, json.JSONDecodeError):
        return {}


def _save_config(cfg: dict) -> None:
    CONFIG_FILE.parent.mkdir(parents=True, exist_ok=True)
    CONFIG_FILE.write_text(json.dumps(cfg, indent=2))


def _resolve_endpoint(override: Optional[str]) -> str:
    return override or _load_config().get("endpoint") or DEFAULT_ENDPOINT


def _get_client(endpoint: Optional[str] = None) -> ChatClient:
    cfg = _load_config()
    if not cfg.get("username"):
        console.print("[red]No username set. Run `yewchat login` first.[/red]")
        raise SystemExit(1)
    return ChatClient(username=cfg["username"], endpoint=_resolve_endpoint(endpoint))


def _run(coro):
    return asyncio.run(coro)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


@click.group()
@click.version_option(__version__)
@click.option("--endpoint", default=None, help="Chat server WebSocket URL (overrides saved config)")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx: click.Context, endpoint: Optional[str], verbose: bool):
    """Chat with everyone online from your terminal."""
    _configure_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["endpoint"] = endpoint


# Register subcommands from separate modules
from yewchat.cli.auth import login, logout, whoami
from yewchat.cli.chat import chat_cmd, send_cmd, users_cmd

main.add_command(login)
main.add_command(logout)
main.add_command(whoami)
main.add_command(chat_cmd)
main.add_command(send_cmd)
main.add_command(users_cmd)


if __name__ == "__main__":
    main()
