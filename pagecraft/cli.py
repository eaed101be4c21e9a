"""
PageCraft CLI

Command-line interface for building web pages through conversation.

Usage:
    pagecraft chat                              # Interactive REPL mode
    pagecraft ask "A landing page for a cafe"   # Single turn, continues saved chat
    pagecraft history                           # Show the saved conversation
    pagecraft html --document -o page.html      # Export the latest markup
    pagecraft new                               # Clear the saved conversation
"""

import asyncio
import logging
import re
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from pagecraft import __version__
from pagecraft.config import Settings, get_settings
from pagecraft.conversations import (
    BusyError,
    Conversation,
    ConversationController,
    ConversationStore,
    GenerationService,
    ValidationError,
)
from pagecraft.llm import BaseLLMProvider, LLMProviderFactory
from pagecraft.storage import JsonFileStorage, KeyValueStorage, MemoryStorage

console = Console()

PREVIEW_DOCUMENT_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <script src="https://cdn.tailwindcss.com"></script>
</head>
<body>
{body}
</body>
</html>
"""


def configure_cli_logging(settings: Settings, verbose: bool) -> None:
    if verbose:
        settings.logging.configure()
        return
    logging.basicConfig(level=logging.CRITICAL)
    for logger_name in ("pagecraft", "httpx", "openai", "asyncio", "google", "grpc"):
        logging.getLogger(logger_name).setLevel(logging.CRITICAL)


# ============================================================================
# Wiring
# ============================================================================


def create_storage(settings: Settings) -> KeyValueStorage:
    if settings.storage.backend == "memory":
        return MemoryStorage()
    return JsonFileStorage(settings.storage.directory)


def create_store_from_config(settings: Settings) -> ConversationStore:
    return ConversationStore(create_storage(settings), key=settings.storage.conversation_key)


def create_provider_from_config(settings: Settings) -> BaseLLMProvider:
    return LLMProviderFactory.create_default_provider(settings.llm)


def create_controller_from_config(
    settings: Settings,
    generation_service: GenerationService | None = None,
) -> ConversationController:
    store = create_store_from_config(settings)
    service = generation_service or create_provider_from_config(settings)
    return ConversationController(store, service)


async def _close_service(controller: ConversationController) -> None:
    service = controller.generation_service
    if isinstance(service, BaseLLMProvider):
        await service.close()


# ============================================================================
# Rendering
# ============================================================================


class StreamPrinter:
    """Store observer that echoes new assistant text while a turn streams."""

    def __init__(self, output: Console, controller: ConversationController):
        self.output = output
        self.controller = controller
        self._message_id: str | None = None
        self._printed = ""

    def __call__(self, conversation: Conversation) -> None:
        if not self.controller.is_loading:
            return
        if not conversation.messages:
            self._message_id = None
            self._printed = ""
            return
        message = conversation.messages[-1]
        if message.role != "assistant":
            return
        if message.id != self._message_id:
            self._message_id = message.id
            self._printed = ""
        text = message.raw_text
        if text.startswith(self._printed):
            new_text = text[len(self._printed):]
        else:
            new_text = "\n" + text
        if new_text:
            self.output.print(new_text, end="", markup=False, highlight=False, soft_wrap=True)
        self._printed = text


def _preview_document(html: str) -> str:
    return PREVIEW_DOCUMENT_TEMPLATE.format(body=html)


def _truncate(text: str, limit: int = 60) -> str:
    flat = " ".join(text.split())
    return flat if len(flat) <= limit else flat[: limit - 3] + "..."


def _print_history(conversation: Conversation) -> None:
    if not conversation.messages:
        console.print("[yellow]No conversation yet.[/yellow]")
        return
    table = Table(title="Conversation", show_lines=False)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Role", style="cyan")
    table.add_column("Time")
    table.add_column("Text")
    table.add_column("HTML", justify="right")
    for index, message in enumerate(conversation.messages, start=1):
        table.add_row(
            str(index),
            message.role,
            message.created_at.astimezone().strftime("%Y-%m-%d %H:%M"),
            _truncate(message.raw_text),
            str(len(message.html_fragment)) if message.html_fragment else "-",
        )
    console.print(table)


def _print_turn_outcome(controller: ConversationController) -> None:
    console.print()
    if controller.error:
        console.print(f"[red]{controller.error}[/red]")
        return
    html = controller.store.latest_html()
    if html:
        console.print(
            f"[green]Page updated ({len(html):,} characters of HTML).[/green] "
            "[dim]Run 'pagecraft html' to export it.[/dim]"
        )


def _should_exit_chat(text: str) -> bool:
    normalized = text.strip().lower()
    if normalized in {"exit", "quit", "q", "/exit", "/quit", "bye", "goodbye"}:
        return True
    return bool(re.search(r"\b(end|stop|quit|exit)\b.*\b(chat|conversation)\b", normalized))


# ============================================================================
# Commands
# ============================================================================


@click.group()
@click.version_option(version=__version__, prog_name="PageCraft")
@click.option("--verbose", is_flag=True, help="Show application logs.")
@click.pass_context
def cli(ctx: click.Context, verbose: bool):
    """PageCraft - Describe a web page, get HTML/CSS back, refine it turn by turn."""
    settings = get_settings()
    configure_cli_logging(settings, verbose or settings.debug)
    ctx.obj = settings


@cli.command()
@click.option("--fresh", is_flag=True, help="Start a new conversation instead of resuming.")
@click.pass_obj
def chat(settings: Settings, fresh: bool):
    """Interactive REPL mode for building a page."""
    console.print(
        Panel.fit(
            "[bold green]PageCraft Interactive Mode[/bold green]\n"
            "Describe the page you want, then ask for changes.\n"
            "Commands: /new, /load, /html, /history. Type 'exit' to leave.",
            border_style="green",
        )
    )

    async def run_chat():
        try:
            controller = create_controller_from_config(settings)
        except ValueError as e:
            console.print(f"[red]Failed to initialize: {e}[/red]")
            sys.exit(1)

        controller.store.subscribe(StreamPrinter(console, controller))
        try:
            if fresh:
                await controller.start_new()
            elif controller.load_previous():
                console.print(
                    f"[dim]Resumed conversation with {len(controller.store)} messages.[/dim]\n"
                )

            while True:
                try:
                    text = console.input("[bold cyan]You:[/bold cyan] ")
                except (EOFError, KeyboardInterrupt):
                    console.print("\n[yellow]Goodbye![/yellow]")
                    break

                command = text.strip().lower()
                if _should_exit_chat(text):
                    console.print("[yellow]Goodbye![/yellow]")
                    break
                if command == "/new":
                    await controller.start_new()
                    console.print("[green]Started a new conversation.[/green]\n")
                    continue
                if command == "/load":
                    if controller.load_previous():
                        console.print("[green]Loaded the saved conversation.[/green]\n")
                    else:
                        console.print("[yellow]Nothing to load.[/yellow]\n")
                    continue
                if command == "/history":
                    _print_history(controller.store.conversation)
                    continue
                if command == "/html":
                    html = controller.store.latest_html()
                    if html:
                        console.print(Syntax(html, "html", word_wrap=True))
                    else:
                        console.print("[yellow]No HTML generated yet.[/yellow]")
                    continue
                if not command:
                    continue

                console.print("[bold magenta]Assistant:[/bold magenta] ", end="")
                try:
                    await controller.submit(text)
                except (ValidationError, BusyError) as e:
                    console.print(f"\n[red]{e.message}[/red]")
                    continue
                except asyncio.CancelledError:
                    # Ctrl-C under asyncio.run cancels this task; keep the REPL alive.
                    asyncio.current_task().uncancel()
                    console.print("\n[yellow]Interrupted. Type 'exit' to quit.[/yellow]")
                    continue
                _print_turn_outcome(controller)
                console.print()
        finally:
            await _close_service(controller)

    asyncio.run(run_chat())


@cli.command()
@click.argument("request")
@click.option("--fresh", is_flag=True, help="Start a new conversation instead of resuming.")
@click.pass_obj
def ask(settings: Settings, request: str, fresh: bool):
    """Run a single turn against the saved conversation and exit."""

    async def run_turn() -> int:
        try:
            controller = create_controller_from_config(settings)
        except ValueError as e:
            console.print(f"[red]Error: {e}[/red]")
            return 1

        controller.store.subscribe(StreamPrinter(console, controller))
        try:
            if fresh:
                await controller.start_new()
            else:
                controller.load_previous()
            await controller.submit(request)
        except ValidationError as e:
            console.print(f"[red]{e.message}[/red]")
            return 1
        finally:
            await _close_service(controller)

        _print_turn_outcome(controller)
        return 1 if controller.error else 0

    sys.exit(asyncio.run(run_turn()))


@cli.command()
@click.pass_obj
def history(settings: Settings):
    """Show the saved conversation."""
    store = create_store_from_config(settings)
    _print_history(store.restore())


@cli.command()
@click.option(
    "-o",
    "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write the markup to a file instead of stdout.",
)
@click.option("--document", is_flag=True, help="Wrap the fragment in a standalone page.")
@click.pass_obj
def html(settings: Settings, output: Path | None, document: bool):
    """Print or export the latest generated HTML."""
    store = create_store_from_config(settings)
    store.restore()
    fragment = store.latest_html()
    if not fragment:
        console.print("[yellow]No HTML generated yet.[/yellow]")
        sys.exit(1)

    markup = _preview_document(fragment) if document else fragment
    if output is None:
        click.echo(markup)
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(markup, encoding="utf-8")
    console.print(f"[green]Wrote {output}[/green]")


@cli.command()
@click.option("--yes", is_flag=True, help="Skip confirmation prompt.")
@click.pass_obj
def new(settings: Settings, yes: bool):
    """Clear the saved conversation."""
    store = create_store_from_config(settings)
    if not store.has_saved_state():
        console.print("No saved conversation.")
        return
    if not yes and not click.confirm("Delete the saved conversation?", default=False):
        console.print("Aborted.")
        return
    store.reset()
    console.print("[green]Conversation cleared.[/green]")


if __name__ == "__main__":
    cli()
