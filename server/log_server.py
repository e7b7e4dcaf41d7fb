#!/usr/bin/env python3
"""
In-memory chat log server for local development and tests.

Serves the same two endpoints the client engine talks to:

    GET  /api/messages     -> 200, JSON array of wire strings, oldest first
    POST /api/sendMessage  <- one JSON-encoded string, appended as-is

Nothing is persisted; restart the process and the log is empty.
"""

from __future__ import annotations
import asyncio
import json
from typing import List, Optional

import typer
from aiohttp import web

from shared.log import configure_root_logging, get_logger

logger = get_logger(__name__)

MESSAGES_KEY = web.AppKey("messages", list)
LOCK_KEY = web.AppKey("messages_lock", asyncio.Lock)


async def handle_get_messages(request: web.Request) -> web.Response:
    messages: List[str] = request.app[MESSAGES_KEY]
    async with request.app[LOCK_KEY]:
        snapshot = list(messages)
    logger.debug("Sent %d messages to client", len(snapshot))
    return web.json_response(snapshot)


async def handle_send_message(request: web.Request) -> web.Response:
    raw = await request.text()
    try:
        message = json.loads(raw)
    except json.JSONDecodeError:
        return web.json_response({"status": "error", "detail": "body must be JSON"}, status=400)
    if not isinstance(message, str):
        return web.json_response({"status": "error", "detail": "body must be a JSON string"}, status=400)
    async with request.app[LOCK_KEY]:
        request.app[MESSAGES_KEY].append(message)
    logger.info("Appended message #%d", len(request.app[MESSAGES_KEY]))
    return web.json_response({"status": "success"})


def create_app(messages: Optional[List[str]] = None) -> web.Application:
    app = web.Application()
    app[MESSAGES_KEY] = list(messages or [])
    app[LOCK_KEY] = asyncio.Lock()
    app.router.add_get("/api/messages", handle_get_messages)
    app.router.add_post("/api/sendMessage", handle_send_message)
    return app


cli = typer.Typer(help="In-memory chat log server for development")


@cli.command()
def serve(
    host: str = typer.Option("localhost", help="Interface to bind"),
    port: int = typer.Option(8080, help="Port to listen on"),
    log_level: str = typer.Option("INFO", help="Log level"),
):
    """Run the log server until interrupted."""
    configure_root_logging(log_level)
    logger.info("Starting chat log server on http://%s:%d", host, port)
    web.run_app(create_app(), host=host, port=port, print=None)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
