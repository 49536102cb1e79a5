"""Main CLI application using Typer."""

import logging

import typer
from rich.console import Console

from tabletalk import __version__

app = typer.Typer(
    name="tabletalk",
    help="Tabletalk - conversational CRUD over Airtable driven by an LLM",
    no_args_is_help=True,
)

console = Console()


def configure_logging(level: str) -> None:
    """Configure the root logger for CLI and server runs."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.command()
def version():
    """Show tabletalk version."""
    console.print(f"tabletalk version {__version__}")


@app.command()
def serve(
    config_path: str = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to config file (default: ~/.tabletalk/tabletalk.yaml)",
    ),
):
    """Start the tabletalk API server."""
    from tabletalk.cli.commands import serve_command

    serve_command(config_path=config_path)


@app.command()
def chat(
    config_path: str = typer.Option(None, "--config", "-c", help="Path to config file"),
    sender: str = typer.Option("cli", "--sender", "-s", help="Sender identifier"),
):
    """Start an interactive chat session."""
    from tabletalk.cli.commands import chat_command

    chat_command(config_path=config_path, sender=sender)


@app.command()
def check(
    config_path: str = typer.Option(None, "--config", "-c", help="Path to config file"),
):
    """Check connectivity to the data store."""
    from tabletalk.cli.commands import check_command

    check_command(config_path=config_path)


@app.command("config-init")
def config_init(
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite existing config"),
):
    """Write a default configuration file."""
    from tabletalk.cli.commands import config_init_command

    config_init_command(force=force)


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
