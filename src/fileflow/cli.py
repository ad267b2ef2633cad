"""Command-line interface for FileFlow.

This module sends files or pasted text to email recipients through a running
FileFlow relay, and can start the relay itself.

Usage:
    fileflow send-files report.pdf photo.png --to alice@example.com
    fileflow send-files *.log --to "bob@example.com, carol@example.com" --no-compress
    cat script.py | fileflow send-text --to dev@example.com --language python
    fileflow languages
    fileflow serve --port 8000

Example:
    $ fileflow --config /etc/fileflow.ini send-text notes.md \\
        --to team@example.com --language markdown --filename meeting-notes
"""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

from fileflow import __version__
from fileflow.client import GatewayClient
from fileflow.config_loader import Settings, load_settings
from fileflow.models import LANGUAGE_OPTIONS, PLAINTEXT, get_language
from fileflow.size_guard import format_file_size
from fileflow.submission import FileSubmission, Notice, SubmissionBase, TextSubmission

console = Console()
err_console = Console(stderr=True)


def run_async(coro):
    """Run an async coroutine synchronously."""
    return asyncio.run(coro)


def print_error(message: str) -> None:
    """Print an error message to stderr."""
    err_console.print(f"[red]Error:[/red] {message}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]✓[/green] {message}")


def print_notice(notice: Notice) -> None:
    if notice.is_error:
        print_error(f"{notice.title}: {notice.description}")
    else:
        print_success(f"{notice.title} {notice.description}")


def _gateway(settings: Settings, url: Optional[str], token: Optional[str]) -> GatewayClient:
    return GatewayClient(
        url or settings.gateway_url,
        token=token or settings.api_token,
        timeout=settings.gateway_timeout,
    )


def _add_recipients(submission: SubmissionBase, values: tuple[str, ...]) -> None:
    for value in values:
        submission.paste_recipients(value)


def _submit(submission: SubmissionBase, compress: bool) -> None:
    with console.status("Compressing and sending..." if compress else "Sending..."):
        result = run_async(submission.submit(compress=compress))
    if result is None:
        sys.exit(1)


@click.group()
@click.version_option(__version__)
@click.option("--config", "-c", "config_path", type=click.Path(dir_okay=False), default=None,
              help="INI configuration file (default: $FF_CONFIG or config.ini).")
@click.option("--log-level", default=None, help="Logging level (default from configuration).")
@click.pass_context
def main(ctx: click.Context, config_path: Optional[str], log_level: Optional[str]) -> None:
    """FileFlow - send files and text to email recipients."""
    try:
        settings = load_settings(config_path)
    except ValueError as exc:
        print_error(str(exc))
        sys.exit(1)
    level = (log_level or settings.log_level).upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format='[%(asctime)s] [%(levelname)s] %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
    )
    ctx.obj = settings


@main.command("send-files")
@click.argument("paths", nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False))
@click.option("--to", "-t", "recipients", multiple=True, required=True,
              help="Recipient address, or a comma/semicolon separated list. Repeatable.")
@click.option("--no-compress", is_flag=True, help="Send files as selected, without compression.")
@click.option("--url", default=None, help="Relay base URL (default from configuration).")
@click.option("--token", default=None, help="Relay API token (default from configuration).")
@click.pass_obj
def send_files(settings: Settings, paths: tuple[str, ...], recipients: tuple[str, ...],
               no_compress: bool, url: Optional[str], token: Optional[str]) -> None:
    """Send one or more files as email attachments."""
    submission = FileSubmission(_gateway(settings, url, token), on_notice=print_notice)
    submission.add_paths(paths)
    _add_recipients(submission, recipients)
    if submission.attachments:
        console.print(
            f"{len(submission.attachments)} file(s), {format_file_size(submission.total_size)} "
            f"to {len(submission.recipients)} recipient(s)"
        )
    _submit(submission, compress=not no_compress)


@main.command("send-text")
@click.argument("source", type=click.File("r", encoding="utf-8"), default="-")
@click.option("--to", "-t", "recipients", multiple=True, required=True,
              help="Recipient address, or a comma/semicolon separated list. Repeatable.")
@click.option("--language", "-l", default=PLAINTEXT, show_default=True,
              help="Content kind, see 'fileflow languages'.")
@click.option("--filename", "-f", default="", help="Base name of the attachment.")
@click.option("--no-compress", is_flag=True, help="Send the text without compression.")
@click.option("--url", default=None, help="Relay base URL (default from configuration).")
@click.option("--token", default=None, help="Relay API token (default from configuration).")
@click.pass_obj
def send_text(settings: Settings, source, recipients: tuple[str, ...], language: str, filename: str,
              no_compress: bool, url: Optional[str], token: Optional[str]) -> None:
    """Send text or code read from SOURCE (default: stdin) as an attachment."""
    if get_language(language) is None:
        print_error(f"Unknown language '{language}'. Run 'fileflow languages' for the list.")
        sys.exit(1)
    submission = TextSubmission(_gateway(settings, url, token), on_notice=print_notice)
    submission.add_text(source.read())
    submission.language = language
    submission.filename = filename
    _add_recipients(submission, recipients)
    _submit(submission, compress=not no_compress)


@main.command("languages")
def languages() -> None:
    """List the content kinds accepted by send-text."""
    table = Table(title="Languages")
    table.add_column("Value", style="cyan")
    table.add_column("Label")
    table.add_column("Extension", style="green")
    for option in LANGUAGE_OPTIONS:
        table.add_row(option.value, option.label, f".{option.extension}")
    console.print(table)


@main.command("serve")
@click.option("--host", "-h", default=None, help="Host to bind to (default from configuration).")
@click.option("--port", "-p", type=int, default=None, help="Port to listen on (default from configuration).")
@click.pass_obj
def serve(settings: Settings, host: Optional[str], port: Optional[int]) -> None:
    """Run the FileFlow relay."""
    import uvicorn

    from fileflow.server import build_app

    bind_host = host or settings.http_host
    bind_port = port or settings.http_port
    console.print(f"[bold]FileFlow relay[/bold] on http://{bind_host}:{bind_port}")
    uvicorn.run(build_app(settings), host=bind_host, port=bind_port)


if __name__ == "__main__":
    main()
