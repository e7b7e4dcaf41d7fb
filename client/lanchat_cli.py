#!/usr/bin/env python3

from __future__ import annotations
import asyncio
from pathlib import Path
from typing import List, Optional

import click
import typer
from aioconsole import ainput
from rich.console import Console
from rich.table import Table

from client.config import ClientConfig, load_config
from client.engine import ChatEngine
from client.reconciler import ChatMessage, reconcile
from client.remote_log import RemoteLogClient
from client.state import ConnectionStatus, Session
from shared.errors import ConfigError, InvalidNicknameError, RemoteLogError, SendError
from shared.log import configure_root_logging, get_logger
from shared.wire import encode

app = typer.Typer(help="LAN chat client")
console = Console()
logger = get_logger(__name__)

_LOG_LEVELS = click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False)
_STATUS_STYLES = {
    ConnectionStatus.CONNECTING: "yellow",
    ConnectionStatus.CONNECTED: "green",
    ConnectionStatus.DEGRADED: "red",
    ConnectionStatus.DISCONNECTED: "dim",
}


def _resolve_config(
    config_path: Optional[Path],
    server: Optional[str],
    interval: Optional[float],
    timeout: Optional[float],
    log_level: Optional[str],
) -> ClientConfig:
    try:
        config = load_config(config_path).with_overrides(
            server_url=server,
            poll_interval=interval,
            request_timeout=timeout,
            log_level=log_level,
        )
    except ConfigError as e:
        console.print(f"[red]Configuration error[/]: {e}")
        raise typer.Exit(code=2)
    configure_root_logging(config.log_level)
    return config


def _render_message(message: ChatMessage, nickname: Optional[str] = None) -> str:
    style = "bold cyan" if message.sender == nickname else "bold"
    return f"[{style}]{message.sender}[/]: {message.content}"


def _render_status(session: Session) -> str:
    style = _STATUS_STYLES[session.status]
    line = f"[{style}]Status: {session.status_label}[/]"
    if session.last_error:
        line += f" [red]({session.last_error})[/]"
    return line


def _messages_table(view: List[ChatMessage]) -> Table:
    table = Table(title="Chat Log")
    table.add_column("#", justify="right")
    table.add_column("Sender")
    table.add_column("Message")
    for message in view:
        table.add_row(str(message.position), message.sender, message.content)
    return table


class TranscriptPrinter:
    """Prints each view update as new lines, reprinting if the log shrank."""

    def __init__(self, nickname: str) -> None:
        self.nickname = nickname
        self.printed = 0
        self.last_status: Optional[ConnectionStatus] = None
        self.last_error: Optional[str] = None

    def __call__(self, view: List[ChatMessage], session: Session) -> None:
        if len(view) < self.printed:
            console.rule("[dim]log restarted[/]")
            self.printed = 0
        for message in view[self.printed:]:
            console.print(_render_message(message, self.nickname))
        self.printed = len(view)
        if session.status is not self.last_status or session.last_error != self.last_error:
            console.print(_render_status(session))
            self.last_status = session.status
            self.last_error = session.last_error


@app.command()
def chat(
    nickname: Optional[str] = typer.Option(None, "--nickname", "-n", help="Name shown next to your messages"),
    server: Optional[str] = typer.Option(None, help="Base URL of the chat log server"),
    interval: Optional[float] = typer.Option(None, help="Seconds between polls"),
    timeout: Optional[float] = typer.Option(None, help="Per-request timeout in seconds"),
    config_path: Optional[Path] = typer.Option(None, "--config", help="YAML config file"),
    log_level: Optional[str] = typer.Option(None, click_type=_LOG_LEVELS, help="Log level"),
):
    """Join the chat and keep polling until /quit."""
    config = _resolve_config(config_path, server, interval, timeout, log_level)
    if nickname is None:
        nickname = typer.prompt("Enter your nickname")

    async def main_loop() -> None:
        async with ChatEngine(config) as engine:
            try:
                session = engine.join(nickname)
            except InvalidNicknameError as e:
                console.print(f"[red]{e}[/]")
                raise typer.Exit(code=1)
            console.print(f"[bold green]Joined[/] as {session.nickname} on {config.server_url}")
            console.print(_render_status(session))
            engine.on_update(TranscriptPrinter(session.nickname))
            engine.start()

            while True:
                try:
                    line = (await ainput("")).strip()
                except EOFError:
                    break
                if not line:
                    continue
                if line in {"/quit", "/exit"}:
                    break
                if line == "/help":
                    console.print("/who, /status, /quit; anything else is sent to the chat")
                    continue
                if line == "/who":
                    table = Table(title="Participants")
                    table.add_column("Nickname")
                    for name in engine.participants:
                        table.add_row(name)
                    console.print(table)
                    continue
                if line == "/status":
                    console.print(_render_status(session))
                    continue
                try:
                    await engine.send(line)
                except SendError as e:
                    console.print(f"[red]Not sent[/]: {e}")

    try:
        asyncio.run(main_loop())
    except KeyboardInterrupt:
        pass
    console.print("[dim]Left the chat[/]")


@app.command()
def tail(
    server: Optional[str] = typer.Option(None, help="Base URL of the chat log server"),
    timeout: Optional[float] = typer.Option(None, help="Per-request timeout in seconds"),
    config_path: Optional[Path] = typer.Option(None, "--config", help="YAML config file"),
    log_level: Optional[str] = typer.Option(None, click_type=_LOG_LEVELS, help="Log level"),
):
    """Fetch the log once and print it."""
    config = _resolve_config(config_path, server, None, timeout, log_level)

    async def fetch() -> List[ChatMessage]:
        async with RemoteLogClient(config.server_url, timeout=config.request_timeout) as remote:
            return reconcile(await remote.fetch_messages())

    try:
        view = asyncio.run(fetch())
    except RemoteLogError as e:
        console.print(f"[red]Cannot read chat log[/]: {e}")
        raise typer.Exit(code=1)
    console.print(_messages_table(view))


@app.command()
def send(
    message: str = typer.Argument(..., help="Text to send"),
    nickname: str = typer.Option(..., "--nickname", "-n", help="Name shown next to the message"),
    server: Optional[str] = typer.Option(None, help="Base URL of the chat log server"),
    timeout: Optional[float] = typer.Option(None, help="Per-request timeout in seconds"),
    config_path: Optional[Path] = typer.Option(None, "--config", help="YAML config file"),
    log_level: Optional[str] = typer.Option(None, click_type=_LOG_LEVELS, help="Log level"),
):
    """Send one message and exit."""
    config = _resolve_config(config_path, server, None, timeout, log_level)

    async def deliver() -> None:
        async with ChatEngine(config) as engine:
            engine.join(nickname)
            await engine.send(message)

    try:
        asyncio.run(deliver())
    except InvalidNicknameError as e:
        console.print(f"[red]{e}[/]")
        raise typer.Exit(code=1)
    except SendError as e:
        console.print(f"[red]Not sent[/]: {e}")
        raise typer.Exit(code=1)
    console.print(f"[green]Sent[/] {encode(nickname, message)}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
