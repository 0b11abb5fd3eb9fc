"""Click CLI for running and exercising the store assistant relay."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

import click
import httpx

from src.audit.logger import read_audit_events
from src.config import Settings, configure_logging
from src.server.app import build_components


@click.group()
@click.option("--log-level", default=None, help="Override LOG_LEVEL.")
@click.pass_context
def cli(ctx: click.Context, log_level: str | None) -> None:
    """WhatsApp store assistant relay."""
    ctx.ensure_object(dict)
    settings = Settings.from_env()
    configure_logging(log_level or settings.log_level)
    ctx.obj["settings"] = settings


@cli.command()
@click.option("--host", default="0.0.0.0", help="Interface to bind.")
@click.option("--port", type=int, default=None, help="Port to bind (defaults to PORT).")
@click.pass_context
def serve(ctx: click.Context, host: str, port: int | None) -> None:
    """Run the webhook server under uvicorn."""
    import uvicorn

    settings: Settings = ctx.obj["settings"]
    uvicorn.run(
        "src.server.app:create_app_from_env",
        factory=True,
        host=host,
        port=port or settings.port,
    )


@cli.command()
@click.argument("question")
@click.pass_context
def ask(ctx: click.Context, question: str) -> None:
    """Answer QUESTION the way an inbound text message would be answered."""
    _, answerer = build_components(ctx.obj["settings"])
    click.echo(asyncio.run(answerer.answer(question.lower())))


@cli.command()
@click.argument("to")
@click.argument("body")
@click.option("--reply-to", default=None, help="Message id to thread the reply onto.")
@click.pass_context
def send(ctx: click.Context, to: str, body: str, reply_to: str | None) -> None:
    """Send BODY as a WhatsApp text message to TO."""
    whatsapp, _ = build_components(ctx.obj["settings"])
    if reply_to:
        coro = whatsapp.reply(to, body, reply_to)
    else:
        coro = whatsapp.send(to, body)
    try:
        asyncio.run(coro)
    except httpx.HTTPError as exc:
        raise click.ClickException(f"Send failed: {exc}") from exc
    click.echo(f"Message sent to {to}")


@cli.command()
@click.option("--type", "event_type", default=None, help="Only show this event type.")
@click.option("--limit", type=int, default=20, show_default=True, help="Newest events to show.")
@click.pass_context
def audit(ctx: click.Context, event_type: str | None, limit: int) -> None:
    """Print recent relay events from the audit log."""
    settings: Settings = ctx.obj["settings"]
    if not settings.audit_log_path:
        raise click.ClickException("AUDIT_LOG_PATH is not set")
    events = read_audit_events(
        Path(settings.audit_log_path), event_type=event_type, limit=limit,
    )
    for event in events:
        click.echo(json.dumps(event, sort_keys=True))
