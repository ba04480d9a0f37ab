import asyncio
import signal
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from trading_assistant.config import DEFAULT_CONFIG_PATH, Config
from trading_assistant.config_provider import ConfigProvider
from trading_assistant.core.assistant import TradingAssistant
from trading_assistant.domain.messages import AgentMessage, MessageType
from trading_assistant.engine.chat_session import ChatSession
from trading_assistant.infra.utils import setup_logging

app = typer.Typer()
console = Console()
CONFIG_HELP = f"Path to the JSON config file (default {DEFAULT_CONFIG_PATH.as_posix()})."
EXIT_COMMANDS = {"/exit", "/quit"}

MESSAGE_STYLES = {
    MessageType.USER: ("You", "bold cyan"),
    MessageType.THOUGHT: ("Thought", "magenta"),
    MessageType.ACTION: ("Action", "blue"),
    MessageType.OBSERVATION: ("Observation", "green"),
    MessageType.ASSISTANT: ("Assistant", "bold green"),
    MessageType.ERROR: ("Error", "bold red"),
}


def _load_config(config_path: Optional[Path]) -> Config:
    config = ConfigProvider(config_path).load()
    setup_logging(config.log_level, console=console)
    return config


def render_message(message: AgentMessage) -> None:
    """Prints one agent message as it is appended."""

    label, style = MESSAGE_STYLES[message.type]
    if message.warning:
        label, style = "Warning", "bold yellow"
    header = f"[{style}]{label}:[/{style}]"
    if message.type is MessageType.ACTION and message.args is not None:
        console.print(f"{header} {escape(message.content)} [dim]{escape(str(message.args))}[/dim]")
    elif message.type is MessageType.OBSERVATION and message.execution_time_ms is not None:
        console.print(f"{header} [dim]({message.execution_time_ms} ms)[/dim]")
        console.print(escape(message.content))
    else:
        console.print(f"{header} {escape(message.content)}")
    if message.attachments:
        console.print(f"[dim]Attachments: {escape(', '.join(message.attachments))}[/dim]")


def render_step(step: int) -> None:
    console.print(f"[dim]Step {step}...[/dim]")


def _build_assistant(config: Config) -> TradingAssistant:
    assistant = TradingAssistant(config, on_step=render_step)
    assistant.messages.subscribe(render_message)
    return assistant


@contextmanager
def _stop_on_interrupt(session: ChatSession) -> Iterator[None]:
    """Routes Ctrl+C to the session while a submission runs."""

    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, session.stop)
    except (NotImplementedError, RuntimeError):
        yield
        return
    try:
        yield
    finally:
        loop.remove_signal_handler(signal.SIGINT)


def _tools_table(assistant: TradingAssistant) -> Table:
    table = Table(title="Tools")
    table.add_column("Name", style="cyan")
    table.add_column("Description")
    for tool in assistant.catalog.list_tools():
        table.add_row(tool["name"], tool["description"])
    return table


def _history_table(assistant: TradingAssistant, limit: int) -> Table:
    table = Table(title="Tool executions")
    table.add_column("Id", style="dim")
    table.add_column("Tool", style="cyan")
    table.add_column("Status")
    table.add_column("Time (ms)", justify="right")
    table.add_column("Timestamp", style="dim")
    for record in assistant.tools.get_execution_history(limit):
        status = "[green]ok[/green]" if record.success else f"[red]{escape(record.error or 'failed')}[/red]"
        table.add_row(
            record.id,
            record.tool_name,
            status,
            str(record.execution_time_ms),
            record.timestamp.strftime("%H:%M:%S"),
        )
    return table


async def _health_table(assistant: TradingAssistant) -> Table:
    table = Table(title="Service health")
    table.add_column("Service", style="cyan")
    table.add_column("Status")
    table.add_column("Detail")
    checks = [
        ("LLM", await assistant.llm.health_check()),
        ("Image recognition", await assistant.images.health_check()),
    ]
    for name, status in checks:
        color = "green" if status.connected else "red"
        table.add_row(
            name,
            f"[{color}]{status.status}[/{color}]",
            escape(status.error or status.message or ""),
        )
    return table


async def _ask(assistant: TradingAssistant, text: str, images: List[Path]) -> None:
    try:
        with _stop_on_interrupt(assistant.session):
            await assistant.session.submit(text, images)
    finally:
        await assistant.aclose()


async def _chat(assistant: TradingAssistant) -> None:
    try:
        while True:
            try:
                line = await asyncio.to_thread(console.input, "[bold cyan]>[/bold cyan] ")
            except EOFError:
                break
            line = line.strip()
            if not line:
                continue
            if line in EXIT_COMMANDS:
                break
            if line == "/tools":
                console.print(_tools_table(assistant))
            elif line.startswith("/history"):
                parts = line.split()
                limit = int(parts[1]) if len(parts) > 1 and parts[1].isdigit() else 20
                console.print(_history_table(assistant, limit))
            elif line == "/health":
                console.print(await _health_table(assistant))
            elif line == "/clear":
                assistant.messages.clear()
                assistant.tools.clear_execution_history()
                console.print("[dim]Conversation cleared.[/dim]")
            elif line.startswith("/"):
                console.print(f"[yellow]Unknown command:[/yellow] {escape(line)}")
            else:
                with _stop_on_interrupt(assistant.session):
                    await assistant.session.submit(line)
    finally:
        await assistant.aclose()


async def _health(assistant: TradingAssistant) -> Table:
    try:
        return await _health_table(assistant)
    finally:
        await assistant.aclose()


@app.command()
def ask(
    text: str = typer.Argument("", help="Message for the assistant."),
    image: Optional[List[Path]] = typer.Option(
        None, "--image", "-i", help="Image file to recognize first; repeatable."
    ),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help=CONFIG_HELP),
):
    """
    Send one message to the assistant and print the run.
    """
    try:
        assistant = _build_assistant(_load_config(config))
        asyncio.run(_ask(assistant, text, list(image or [])))
    except Exception as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(code=1)


@app.command()
def chat(
    config: Optional[Path] = typer.Option(None, "--config", "-c", help=CONFIG_HELP),
):
    """
    Start an interactive session. Type /exit to leave.
    """
    try:
        assistant = _build_assistant(_load_config(config))
        console.print(
            "[bold green]Trading assistant ready.[/bold green] "
            "[dim]Commands: /tools, /history [N], /health, /clear, /exit[/dim]"
        )
        asyncio.run(_chat(assistant))
    except Exception as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(code=1)


@app.command()
def tools(
    config: Optional[Path] = typer.Option(None, "--config", "-c", help=CONFIG_HELP),
):
    """
    List the registered tools.
    """
    try:
        assistant = TradingAssistant(_load_config(config))
        console.print(_tools_table(assistant))
        asyncio.run(assistant.aclose())
    except Exception as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(code=1)


@app.command()
def health(
    config: Optional[Path] = typer.Option(None, "--config", "-c", help=CONFIG_HELP),
):
    """
    Check the LLM and image recognition services.
    """
    try:
        assistant = TradingAssistant(_load_config(config))
        console.print(asyncio.run(_health(assistant)))
    except Exception as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
