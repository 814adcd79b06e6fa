"""CLI: yewchat chat, yewchat send, yewchat users"""

import asyncio
import threading
from typing import Callable, Optional

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from yewchat.errors import TransportConnectionError
from yewchat.models.envelope import MessageType
from yewchat.models.session import ChatMessage, UserProfile
from yewchat.session import SessionController

console = Console()


def _get_client(endpoint: Optional[str]):
    from yewchat.cli.main import _get_client
    return _get_client(endpoint)


def _run(coro):
    from yewchat.cli.main import _run
    return _run(coro)


def render_message(session: SessionController, message: ChatMessage) -> str:
    """Format one transcript entry as rich markup."""
    if session.sender_profile(message) is not None:
        who = f"[bold magenta]{escape(message.sender)}[/bold magenta]"
    else:
        # sender has left, or the roster snapshot has not arrived yet
        who = f"[magenta]{escape(message.sender)}[/magenta] [dim](offline)[/dim]"
    if message.body.endswith(".gif"):
        body = f"[link={message.body}](gif) {escape(message.body)}[/link]"
    else:
        body = escape(message.body)
    return f"{who}: {body}"


def roster_table(roster: tuple[UserProfile, ...]) -> Table:
    table = Table(title=f"Online users ({len(roster)})")
    table.add_column("Name", style="magenta")
    table.add_column("Avatar", style="dim")
    for profile in roster:
        table.add_row(profile.name, profile.avatar_url)
    return table


def _prompt_line() -> str:
    return click.prompt("", prompt_suffix="", default="", show_default=False)


def start_line_reader(prompt: Callable[[], str] = _prompt_line) -> "asyncio.Queue[Optional[str]]":
    """Read input lines on a daemon thread; None is queued at end of input.

    The thread never holds up interpreter exit, so a dropped session can quit
    while a prompt is still waiting.
    """
    loop = asyncio.get_running_loop()
    lines: asyncio.Queue[Optional[str]] = asyncio.Queue()

    def pump() -> None:
        while True:
            try:
                text: Optional[str] = prompt()
            except (click.Abort, EOFError, KeyboardInterrupt):
                text = None
            try:
                loop.call_soon_threadsafe(lines.put_nowait, text)
            except RuntimeError:
                return  # loop already closed
            if text is None:
                return

    threading.Thread(target=pump, name="yewchat-stdin", daemon=True).start()
    return lines


async def _open(endpoint: Optional[str]):
    client = _get_client(endpoint)
    try:
        with console.status(f"Connecting to {client.endpoint}..."):
            await client.connect()
    except TransportConnectionError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise SystemExit(1)
    return client


@click.command("chat")
@click.pass_context
def chat_cmd(ctx: click.Context):
    """Interactive chat with everyone online."""
    endpoint = (ctx.obj or {}).get("endpoint")

    async def _chat():
        client = await _open(endpoint)
        session = client.session

        def on_change(kind: MessageType) -> None:
            if kind is MessageType.USERS:
                names = ", ".join(p.name for p in session.current_roster()) or "nobody"
                console.print(f"[dim]Online: {escape(names)}[/dim]")
            elif kind is MessageType.MESSAGE:
                console.print(render_message(session, session.current_transcript()[-1]))

        client.add_listener(on_change)
        console.print(f"[cyan]Chatting as {escape(client.username)}. /users lists who is online, /quit exits.[/cyan]\n")
        closed = asyncio.ensure_future(client.wait_closed())
        lines = start_line_reader()
        line: Optional[asyncio.Future] = None
        try:
            while True:
                line = asyncio.ensure_future(lines.get())
                done, _ = await asyncio.wait({line, closed}, return_when=asyncio.FIRST_COMPLETED)
                if closed in done:
                    error = closed.result()
                    reason = escape(str(error)) if error else "closed"
                    console.print(f"[red]Disconnected: {reason}[/red]")
                    break
                text = line.result()
                if text is None:
                    break
                command = text.strip().lower()
                if command in ("/quit", "/exit"):
                    break
                if command == "/users":
                    console.print(roster_table(session.current_roster()))
                    continue
                if not text:
                    continue
                if not client.submit_message(text):
                    console.print("[red]Message not sent.[/red]")
        except KeyboardInterrupt:
            pass
        finally:
            closed.cancel()
            if line is not None:
                line.cancel()
            await client.disconnect()

    _run(_chat())


@click.command("send")
@click.argument("message")
@click.pass_context
def send_cmd(ctx: click.Context, message: str):
    """Send a one-shot message."""
    endpoint = (ctx.obj or {}).get("endpoint")

    async def _send():
        client = await _open(endpoint)
        try:
            if not client.submit_message(message):
                console.print("[red]Message not sent.[/red]")
                raise SystemExit(1)
            await client.flush()
        finally:
            await client.disconnect()

    _run(_send())


@click.command("users")
@click.option("--timeout", default=5.0, show_default=True, help="Seconds to wait for the user list")
@click.pass_context
def users_cmd(ctx: click.Context, timeout: float):
    """List who is online."""
    endpoint = (ctx.obj or {}).get("endpoint")

    async def _users():
        client = await _open(endpoint)
        received = asyncio.Event()
        client.add_listener(lambda kind: received.set() if kind is MessageType.USERS else None)
        try:
            await asyncio.wait_for(received.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            console.print("[yellow]No user list received from the server.[/yellow]")
            raise SystemExit(1)
        else:
            console.print(roster_table(client.current_roster()))
        finally:
            await client.disconnect()

    _run(_users())
