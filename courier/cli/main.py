"""
Courier CLI entry point.

Commands:
    courier run        — Start the chat relay
    courier schedules  — Show persisted schedules
    courier heartbeat  — Show heartbeat status
    courier version    — Show version
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from courier.core.config import CourierConfig
from courier.core.errors import ConfigError, StorageError

app = typer.Typer(
    name="courier",
    help="Courier — relay a chat space to a Claude session, with schedules and heartbeats.",
    add_completion=False,
)

console = Console()


def _load_config() -> CourierConfig:
    try:
        return CourierConfig.load()
    except ConfigError as e:
        console.print(f"[red]{escape(e.message)}[/red]")
        raise typer.Exit(1)


@app.command()
def run(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug output"),
) -> None:
    """Start the relay: listen for chat events, run schedules and heartbeats."""
    config = _load_config()
    try:
        config.require_runtime()
    except ConfigError as e:
        console.print(f"[red]{escape(e.message)}[/red]")
        raise typer.Exit(1)

    try:
        asyncio.run(_run(config, verbose))
    except StorageError as e:
        console.print(f"[red]Fatal: {escape(e.message)}[/red]")
        raise typer.Exit(1)
    except KeyboardInterrupt:
        pass


async def _run(config: CourierConfig, verbose: bool) -> None:
    from courier.bridge.claude import ClaudeCLIBridge
    from courier.bridge.conversation import ConversationBridge
    from courier.bridge.guard import InvocationGuard
    from courier.chat.auth import (
        CHAT_BOT_SCOPE,
        PUBSUB_SCOPE,
        REACTIONS_SCOPE,
        GoogleTokenSource,
    )
    from courier.chat.google import GoogleChatTransport, subscription_path
    from courier.context.library import ContextLibrary
    from courier.core.logging import setup_logging
    from courier.heartbeat.controller import HeartbeatController
    from courier.agent.dispatcher import Dispatcher
    from courier.scheduler.engine import SchedulerEngine
    from courier.scheduler.store import SchedulerStore
    from courier.sessions.store import SessionStore
    from courier.transcript.pruner import TranscriptPruner

    paths = config.paths
    setup_logging(paths, verbose=verbose)
    logger = logging.getLogger("courier")

    # Persisted state; a malformed file stops startup here
    sessions = SessionStore(paths.sessions_file)
    sessions.load()
    schedules = SchedulerStore(paths.schedules_file)
    schedules.load()

    # Chat transport
    tokens = GoogleTokenSource([CHAT_BOT_SCOPE, PUBSUB_SCOPE], config.chat.credentials_path)
    reaction_tokens = None
    if config.chat.reactions_enabled:
        reaction_tokens = GoogleTokenSource(
            [REACTIONS_SCOPE],
            config.chat.credentials_path,
            subject=config.chat.reaction_user_email,
        )
        logger.info(f"Reactions enabled (impersonating {config.chat.reaction_user_email})")
    transport = GoogleChatTransport(
        subscription=subscription_path(config.chat.subscription, tokens.project_id),
        tokens=tokens,
        reaction_tokens=reaction_tokens,
        max_message_length=config.chat.max_message_length,
    )

    # AI bridges: interactive calls get the extra flags, scheduled runs do not
    claude = config.claude
    soul_path = Path(claude.soul_path)
    interactive_bridge = ClaudeCLIBridge(
        model=claude.model,
        timeout_seconds=claude.timeout_seconds,
        soul_path=soul_path,
        executable=claude.executable,
        extra_args=claude.interactive_args,
    )
    scheduled_bridge = ClaudeCLIBridge(
        model=claude.model,
        timeout_seconds=claude.timeout_seconds,
        soul_path=soul_path,
        executable=claude.executable,
    )
    logger.info(f"Model: {claude.model}, timeout {claude.timeout_seconds:g}s")

    guard = InvocationGuard()
    conversation = ConversationBridge(interactive_bridge, sessions, guard)
    library = ContextLibrary(paths.telos_dir)

    heartbeat: HeartbeatController | None = None
    if config.heartbeat.configured:
        heartbeat = HeartbeatController(
            config=config.heartbeat,
            conversation=conversation,
            send=transport.send_message,
            pruner=TranscriptPruner(sessions, paths.transcripts_dir),
            checklist_path=paths.checklist_file,
            library=library,
        )

    scheduler: SchedulerEngine | None = None
    if config.scheduler.enabled:
        scheduler = SchedulerEngine(
            store=schedules,
            bridge=scheduled_bridge,
            guard=guard,
            send=transport.send_message,
            poll_interval=config.scheduler.poll_interval,
        )

    dispatcher = Dispatcher(
        transport=transport,
        conversation=conversation,
        schedules=schedules,
        library=library,
        uploads_dir=paths.uploads_dir,
        heartbeat=heartbeat,
    )

    try:
        if scheduler:
            await scheduler.start()
        if heartbeat:
            await heartbeat.start()
        await transport.listen(dispatcher.handle)
    except Exception as e:
        logger.exception(f"Fatal: {e}")
        raise
    finally:
        logger.info("Shutting down")
        if heartbeat:
            await heartbeat.stop()
        if scheduler:
            await scheduler.stop()
        await transport.close()


@app.command()
def schedules() -> None:
    """Show every persisted schedule."""
    from courier.scheduler.store import SchedulerStore

    config = _load_config()
    path = config.paths.schedules_file
    if not path.exists():
        console.print(f"[dim]No schedules file at {path}.[/dim]")
        raise typer.Exit(0)

    store = SchedulerStore(path)
    try:
        store.load()
    except StorageError as e:
        console.print(f"[red]{escape(e.message)}[/red]")
        raise typer.Exit(1)

    if not store.jobs:
        console.print("[dim]No schedules.[/dim]")
        raise typer.Exit(0)

    table = Table(title="Schedules", border_style="cyan")
    table.add_column("#", justify="right")
    table.add_column("Space")
    table.add_column("Cron")
    table.add_column("Prompt")
    table.add_column("Next run")
    table.add_column("Enabled")
    for job in store.jobs:
        table.add_row(
            str(job.id),
            job.space_name,
            job.cron,
            job.prompt,
            job.next_run.isoformat(),
            "yes" if job.enabled else "[red]no[/red]",
        )
    console.print(table)


@app.command()
def heartbeat() -> None:
    """Show heartbeat configuration and whether it would run now."""
    from courier.heartbeat.checklist import is_within_active_hours, load_checklist

    config = _load_config()
    hb = config.heartbeat
    if not hb.configured:
        console.print("[dim]Heartbeat is not configured (set HEARTBEAT_SPACE).[/dim]")
        raise typer.Exit(0)

    active = is_within_active_hours(hb.active_start, hb.active_end, hb.timezone)
    checklist = load_checklist(config.paths.checklist_file)
    console.print(f"[bold]Space:[/bold] {hb.space}")
    console.print(f"[bold]Interval:[/bold] {hb.interval_minutes} minutes")
    console.print(f"[bold]Active hours:[/bold] {hb.active_start}:00–{hb.active_end}:00 {hb.timezone}")
    console.print(f"[bold]Currently active:[/bold] {'yes' if active else 'no'}")
    console.print(f"[bold]Checklist:[/bold] {'loaded' if checklist else 'empty or missing'}")


@app.command()
def version() -> None:
    """Show Courier version."""
    from courier import __version__
    console.print(f"Courier v{__version__}")


if __name__ == "__main__":
    app()
