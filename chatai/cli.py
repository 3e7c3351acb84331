"""
Chat AI CLI

Terminal front end for the session store.

Usage:
    chatai chat                 # Interactive REPL mode
    chatai ask "Hello there"    # Single message mode
    chatai set-key              # Store the API key (hidden prompt)
    chatai history              # Show the saved conversation
    chatai clear                # Delete all saved messages
    chatai status               # Show configuration and key status
"""

import asyncio
import logging
import sys
from contextlib import asynccontextmanager

import click
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from chatai import __version__
from chatai.config import Settings, get_settings
from chatai.llm import BaseInferenceClient, GeminiClient
from chatai.llm.gemini import install_key_redaction
from chatai.models import Message, SessionSnapshot
from chatai.session import SessionStore
from chatai.storage import InMemoryStore, KeyValueStore, create_store

console = Console()

EXIT_COMMANDS = {"exit", "quit", "q", "/exit", "/quit"}
CLEAR_COMMAND = "/clear"
KEY_COMMAND = "/key"


def configure_cli_logging(verbose: bool = False) -> None:
    get_settings().logging.configure()
    install_key_redaction()
    # HTTP library request lines carry the ?key= query, even when verbose.
    for logger_name in ("httpx", "httpcore"):
        logging.getLogger(logger_name).setLevel(logging.WARNING)
    if not verbose:
        logging.getLogger("chatai").setLevel(logging.WARNING)


# ============================================================================
# Session Wiring
# ============================================================================


def build_storage(settings: Settings, ephemeral: bool = False) -> KeyValueStore:
    if ephemeral:
        return InMemoryStore()
    return create_store(settings.storage)


def build_client(settings: Settings) -> BaseInferenceClient:
    return GeminiClient.from_settings(settings.gemini)


@asynccontextmanager
async def open_session(ephemeral: bool = False):
    """Yield a loaded SessionStore and close its client afterwards."""
    settings = get_settings()
    async with build_client(settings) as client:
        store = SessionStore(
            build_storage(settings, ephemeral),
            client,
            single_flight=settings.session.single_flight,
        )
        store.load_initial_state()
        yield store


# ============================================================================
# Rendering
# ============================================================================


def _format_time(message: Message) -> str:
    return message.timestamp.astimezone().strftime("%H:%M")


def print_message(message: Message) -> None:
    if message.is_user:
        console.print(Text.assemble(("You ", "bold cyan"), (_format_time(message), "dim")))
        console.print(Text(message.text))
        return
    console.print(
        Panel(
            Markdown(message.text),
            title="[bold green]AI[/bold green]",
            subtitle=_format_time(message),
            title_align="left",
            subtitle_align="right",
            border_style="green",
        )
    )


def _mask_key(key: str) -> str:
    if not key:
        return "not set"
    if len(key) <= 8:
        return "****"
    return f"{key[:4]}…{key[-4:]}"


def _print_missing_key_hint() -> None:
    console.print(
        "[yellow]No API key set.[/yellow] Run [bold]chatai set-key[/bold] "
        f"or type [bold]{KEY_COMMAND}[/bold] in chat."
    )


class TranscriptPrinter:
    """Session listener that prints messages as they are appended."""

    def __init__(self, shown: int = 0, echo_user: bool = False) -> None:
        self.shown = shown
        self.echo_user = echo_user

    def __call__(self, snapshot: SessionSnapshot) -> None:
        if len(snapshot.messages) < self.shown:
            self.shown = 0
        for message in snapshot.messages[self.shown:]:
            if self.echo_user or not message.is_user:
                print_message(message)
        self.shown = len(snapshot.messages)


# ============================================================================
# Commands
# ============================================================================


@click.group()
@click.version_option(version=__version__, prog_name="Chat AI")
@click.option("--verbose", is_flag=True, help="Show log output from the client.")
def cli(verbose: bool):
    """Chat AI - Terminal chat client for the Gemini API."""
    configure_cli_logging(verbose)


@cli.command()
@click.option(
    "--ephemeral",
    is_flag=True,
    help="Keep the conversation in memory only (nothing is saved).",
)
def chat(ephemeral: bool):
    """Interactive REPL mode for conversations."""
    console.print(
        Panel.fit(
            "[bold green]Chat AI - Gemini[/bold green]\n"
            f"Type your message. '{CLEAR_COMMAND}' clears the conversation, "
            f"'{KEY_COMMAND}' sets the API key, 'exit' leaves.",
            border_style="green",
        )
    )

    async def run_chat():
        async with open_session(ephemeral=ephemeral) as store:
            if store.messages:
                console.print(f"[dim]Loaded {len(store.messages)} earlier messages.[/dim]")
            if not store.api_key:
                _print_missing_key_hint()

            printer = TranscriptPrinter(shown=len(store.messages))
            unsubscribe = store.subscribe(printer)
            try:
                while True:
                    try:
                        text = console.input("[bold cyan]You:[/bold cyan] ")
                    except EOFError:
                        console.print("\n[yellow]Goodbye![/yellow]")
                        break
                    except KeyboardInterrupt:
                        console.print("\n[yellow]Interrupted. Type 'exit' to quit.[/yellow]")
                        continue

                    command = text.strip().lower()
                    if not command:
                        continue
                    if command in EXIT_COMMANDS:
                        console.print("[yellow]Goodbye![/yellow]")
                        break
                    if command == CLEAR_COMMAND:
                        store.clear_conversation()
                        console.print("[green]✓ Conversation cleared[/green]")
                        continue
                    if command == KEY_COMMAND:
                        key = click.prompt("API key", hide_input=True, default="", show_default=False)
                        store.set_credential(key.strip())
                        console.print("[green]✓ API key saved[/green]")
                        continue

                    with console.status("[cyan]Thinking...[/cyan]", spinner="dots"):
                        await store.send_message(text)
            finally:
                unsubscribe()

    asyncio.run(run_chat())


@cli.command()
@click.argument("text")
def ask(text: str):
    """Send a single message and print the reply."""

    async def run_ask() -> bool:
        async with open_session() as store:
            printer = TranscriptPrinter(shown=len(store.messages))
            unsubscribe = store.subscribe(printer)
            try:
                with console.status("[cyan]Thinking...[/cyan]", spinner="dots"):
                    await store.send_message(text)
            finally:
                unsubscribe()
            outcome = store.last_outcome
            return outcome is None or outcome.ok

    if not text.strip():
        console.print("[red]Message is empty[/red]")
        sys.exit(1)
    if not asyncio.run(run_ask()):
        sys.exit(1)


@cli.command(name="set-key")
@click.argument("key", required=False)
def set_key(key: str | None):
    """Store the API key used for requests.

    When KEY is omitted it is prompted for without echo. An empty key
    removes the stored one.
    """
    if key is None:
        key = click.prompt("API key", hide_input=True, default="", show_default=False)

    async def run_set_key():
        async with open_session() as store:
            store.set_credential(key.strip())

    asyncio.run(run_set_key())
    if key.strip():
        console.print("[green]✓ API key saved[/green]")
    else:
        console.print("[yellow]API key removed[/yellow]")


@cli.command()
@click.option("--yes", is_flag=True, help="Skip the confirmation prompt.")
def clear(yes: bool):
    """Delete all saved messages (the API key is kept)."""
    if not yes:
        click.confirm("Delete all messages?", abort=True)

    async def run_clear():
        async with open_session() as store:
            store.clear_conversation()

    asyncio.run(run_clear())
    console.print("[green]✓ All messages deleted[/green]")


@cli.command()
@click.option("--limit", type=int, default=None, help="Only show the last N messages.")
def history(limit: int | None):
    """Show the saved conversation."""

    async def run_history():
        async with open_session() as store:
            return store.snapshot

    snapshot = asyncio.run(run_history())
    if not snapshot.messages:
        console.print("[dim]No messages yet.[/dim]")
        if not snapshot.has_api_key:
            _print_missing_key_hint()
        return

    messages = snapshot.messages
    if limit is not None and limit >= 0:
        messages = messages[-limit:] if limit else ()
    for message in messages:
        print_message(message)


@cli.command()
def status():
    """Show configuration and API key status."""
    settings = get_settings()

    async def run_status():
        async with open_session() as store:
            return store.snapshot

    snapshot = asyncio.run(run_status())

    table = Table(title="Chat AI Status", show_header=False)
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    table.add_row("Model", settings.gemini.model)
    table.add_row("Endpoint", settings.gemini.endpoint)
    if settings.storage.backend == "file":
        table.add_row("Storage", str(settings.storage.data_dir))
    else:
        table.add_row("Storage", "memory")
    table.add_row("Messages", str(len(snapshot.messages)))
    table.add_row("API key", _mask_key(snapshot.api_key))
    console.print(table)


def main():
    cli()


if __name__ == "__main__":
    main()
