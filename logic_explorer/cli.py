"""Typer-based CLI for Logic Explorer."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from . import __version__
from .cli_setup import set_llm, show_llm, unset_llm
from .errors import LifecycleError, ProviderError, ValidationError
from .languages import DEFAULT_LANGUAGE, LANGUAGES, language_for_path, normalize_language
from .models import LineRange
from .provider import LLMAnalysisProvider
from .render import render_analysis, render_selection
from .session import ExplorerSession

console = Console()

app = typer.Typer(
    help="🧭 Logic Explorer: line-mapped AI explanations for source code.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

app.command("set-llm")(set_llm)
app.command("unset-llm")(unset_llm)
app.command("show-llm")(show_llm)

EXPLORE_HELP = """Commands:
  click N      select line N
  shift N      extend the selection from its anchor to line N
  hover N      hover line N
  node ID      select the lines of flowchart node ID
  dive         deep dive on the current selection
  show         print the annotated listing
  analyze      re-run the analysis
  reset        discard the analysis
  help         show this help
  quit         leave"""


def version_callback(value: bool):
    if value:
        typer.echo(f"Logic Explorer v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging."),
):
    """Logic Explorer: analyze code with an LLM and map the result back onto its lines."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def parse_line_range(text: str) -> LineRange:
    """Parse ``"4"`` or ``"3-7"`` into a :class:`LineRange`."""
    try:
        if "-" in text:
            start_text, end_text = text.split("-", 1)
            return LineRange.covering(int(start_text), int(end_text))
        return LineRange.single(int(text))
    except ValueError:
        raise typer.BadParameter(f"Invalid line range '{text}'. Use N or START-END with lines >= 1.")


def _resolve_language(path: Path, language: Optional[str]) -> str:
    if language:
        canonical = normalize_language(language)
        if canonical is None:
            raise typer.BadParameter(f"Unsupported language '{language}'. See `lx languages`.")
        return canonical
    return language_for_path(path) or DEFAULT_LANGUAGE


def _make_provider() -> LLMAnalysisProvider:
    try:
        return LLMAnalysisProvider()
    except ProviderError as exc:
        console.print(f"[red]❌ {escape(str(exc))}[/red]")
        raise typer.Exit(code=1)


def _open_session(path: Path, language: Optional[str]) -> ExplorerSession:
    text = path.read_text(encoding="utf-8", errors="replace")
    return ExplorerSession(
        _make_provider(),
        text=text,
        language=_resolve_language(path, language),
        program_name=path.name,
    )


def _run_analysis(session: ExplorerSession) -> None:
    try:
        session.lifecycle.check_request(session.text, session.lifecycle.language)
    except ValidationError as exc:
        console.print(f"[yellow]{escape(str(exc))}[/yellow]")
        raise typer.Exit(code=1)
    with console.status("Analyzing logic..."):
        try:
            asyncio.run(session.analyze())
        except ProviderError as exc:
            console.print(f"[red]❌ Analysis failed:[/red] {escape(str(exc))}")
            raise typer.Exit(code=1)


@app.command("analyze")
def analyze(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Source file to analyze."),
    language: Optional[str] = typer.Option(None, "--language", "-l", help="Language tag (inferred from extension)."),
    as_json: bool = typer.Option(False, "--json", help="Print the parsed analysis as JSON."),
):
    """Analyze a source file and print its line-mapped explanation."""
    session = _open_session(path, language)
    _run_analysis(session)
    if as_json:
        typer.echo(json.dumps(session.result.to_wire(), indent=2))
        return
    render_analysis(console, session)


@app.command("explain")
def explain(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Source file."),
    lines: str = typer.Option(..., "--lines", "-n", help="Line or range, e.g. 12 or 10-18."),
):
    """Deep dive on a range of lines without a full analysis."""
    line_range = parse_line_range(lines)
    text = path.read_text(encoding="utf-8", errors="replace")
    session = ExplorerSession(_make_provider(), text=text, program_name=path.name)
    with console.status(f"Explaining {line_range.label}..."):
        try:
            explanation = asyncio.run(session.deep_dive.request(text, line_range))
        except ProviderError as exc:
            console.print(f"[red]❌ Deep dive failed:[/red] {escape(str(exc))}")
            raise typer.Exit(code=1)
    console.print(f"[bold]{path.name} · {line_range.label}[/bold]")
    console.print(escape(explanation or ""))


@app.command("explore")
def explore(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Source file to explore."),
    language: Optional[str] = typer.Option(None, "--language", "-l", help="Language tag (inferred from extension)."),
):
    """Interactively select lines and request deep dives."""
    session = _open_session(path, language)
    _run_analysis(session)
    render_analysis(console, session)
    console.print(f"[dim]{EXPLORE_HELP}[/dim]")

    while True:
        raw = typer.prompt("lx", default="quit", show_default=False).strip()
        if not raw:
            continue
        command, _, arg = raw.partition(" ")
        command = command.lower()
        arg = arg.strip()
        if command in ("quit", "exit", "q"):
            break
        try:
            _explore_step(session, command, arg)
        except (LifecycleError, ValueError) as exc:
            console.print(f"[yellow]{escape(str(exc))}[/yellow]")
        except ProviderError as exc:
            console.print(f"[red]❌ {escape(str(exc))}[/red]")


def _explore_step(session: ExplorerSession, command: str, arg: str) -> None:
    if command == "click":
        session.click_line(int(arg))
        render_selection(console, session)
    elif command == "shift":
        session.click_line(int(arg), extend=True)
        render_selection(console, session)
    elif command == "hover":
        session.hover_line(int(arg) if arg else None)
        console.print(f"[dim]Hovering {session.selection.hovered_line}[/dim]")
    elif command == "node":
        if not session.index.lines_for_node(arg):
            console.print(f"[yellow]Node '{arg}' has no mapped lines.[/yellow]")
            return
        session.select_node(arg)
        render_selection(console, session)
    elif command == "dive":
        if session.selection.range is None:
            console.print("[yellow]Select lines first.[/yellow]")
            return
        with console.status(f"Deep dive on {session.selection.range.label}..."):
            asyncio.run(session.deep_dive_selection())
        render_selection(console, session)
    elif command == "show":
        render_analysis(console, session)
    elif command == "analyze":
        with console.status("Analyzing logic..."):
            result = asyncio.run(session.analyze())
        if result is None:
            console.print("[yellow]Nothing to analyze.[/yellow]")
            return
        render_analysis(console, session)
    elif command == "reset":
        session.reset()
        console.print("[dim]Analysis discarded; source kept.[/dim]")
    elif command == "help":
        console.print(EXPLORE_HELP)
    else:
        console.print(f"[yellow]Unknown command '{command}'. Type 'help'.[/yellow]")


@app.command("languages")
def languages():
    """List supported language tags."""
    for tag, label in LANGUAGES.items():
        typer.echo(f"{tag:<12} {label}")



if __name__ == "__main__":
    app()
