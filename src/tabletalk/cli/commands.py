"""Implementations of the CLI commands."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import TYPE_CHECKING

from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.prompt import Prompt

from tabletalk.cli.app import configure_logging
from tabletalk.config.loader import DEFAULT_CONFIG_PATH, ConfigError, load_config, save_config
from tabletalk.config.schema import TabletalkConfig

if TYPE_CHECKING:
    from tabletalk.agent.service import ChatService

console = Console()
logger = logging.getLogger(__name__)


def _load(config_path: str | None) -> TabletalkConfig | None:
    path = Path(config_path) if config_path else None
    try:
        return load_config(path)
    except ConfigError as e:
        console.print(f"[red]Failed to load config: {e}[/red]")
        console.print("Run [bold]tabletalk config-init[/bold] to create a config file.")
        return None


def serve_command(config_path: str | None = None) -> None:
    """Run the API server in the foreground.

    Args:
        config_path: Optional path to config file
    """
    import uvicorn

    from tabletalk.server.app import create_app

    config = _load(config_path)
    if config is None:
        return
    configure_logging(config.logging.level)

    try:
        app = create_app(config)
    except ConfigError as e:
        console.print(f"[red]{e}[/red]")
        return

    console.print(
        f"[green]Starting tabletalk server on {config.server.host}:{config.server.port}[/green]"
    )
    console.print(f"Model: {config.model.name}")
    console.print("\nPress Ctrl+C to stop")

    uvicorn.run(
        app,
        host=config.server.host,
        port=config.server.port,
        log_level=config.logging.level.lower(),
    )


def chat_command(config_path: str | None = None, sender: str = "cli") -> None:
    """Start an interactive chat session.

    Args:
        config_path: Optional path to config file
        sender: Sender identifier used for session memory
    """
    from tabletalk.agent.service import build_service

    config = _load(config_path)
    if config is None:
        return
    configure_logging("WARNING")

    try:
        service = build_service(config)
    except ConfigError as e:
        console.print(f"[red]{e}[/red]")
        return

    console.print(
        Panel.fit(
            f"[bold blue]tabletalk chat[/bold blue]\n"
            f"Model: {config.model.name}\n"
            f"Type /clear to reset memory, /exit to quit",
            border_style="blue",
        )
    )

    asyncio.run(_async_chat(service, sender))


async def _async_chat(service: ChatService, sender: str) -> None:
    """Async chat loop."""
    service.store.start_sweeper()
    try:
        while True:
            try:
                user_input = Prompt.ask("\n[bold cyan]You[/bold cyan]")
            except (KeyboardInterrupt, EOFError):
                break

            if not user_input.strip():
                continue
            if user_input.strip() in ("/exit", "/quit"):
                break
            if user_input.strip() == "/clear":
                service.clear_session(sender)
                console.print("[dim]Memory cleared[/dim]")
                continue

            with console.status("[bold green]Thinking...[/bold green]", spinner="dots"):
                reply = await service.handle_message(sender, user_input)

            console.print("\n[bold green]tabletalk[/bold green]")
            if reply.success:
                console.print(Markdown(reply.response or ""))
            else:
                console.print(f"[red]{reply.response or reply.error}[/red]")
    finally:
        await service.store.stop_sweeper()
        await service.close()

    console.print("\n[cyan]Goodbye![/cyan]")


def check_command(config_path: str | None = None) -> None:
    """Fetch one record from the projects table.

    Args:
        config_path: Optional path to config file
    """
    from tabletalk.datastore import TableResolver, create_datastore_client

    config = _load(config_path)
    if config is None:
        return

    async def _check() -> None:
        client = create_datastore_client(config, TableResolver(config.tables))
        try:
            records = await client.get_all("projects", max_records=1)
        finally:
            await client.close()
        console.print("[green]✓ Data store reachable[/green]")
        if records:
            console.print(f"Sample record: {records[0]['id']}")

    try:
        asyncio.run(_check())
    except Exception as e:
        console.print(f"[red]✗ Data store check failed: {e}[/red]")


def config_init_command(force: bool = False) -> None:
    """Write the default configuration to the default path.

    Args:
        force: Overwrite an existing file
    """
    if DEFAULT_CONFIG_PATH.exists() and not force:
        console.print(f"[yellow]Config already exists at {DEFAULT_CONFIG_PATH}[/yellow]")
        console.print("Use [bold]--force[/bold] to overwrite.")
        return

    save_config(TabletalkConfig(), DEFAULT_CONFIG_PATH)
    console.print(f"[green]✓ Wrote default config to {DEFAULT_CONFIG_PATH}[/green]")
