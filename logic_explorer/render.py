"""Rich renderers for analysis results and selections."""

from __future__ import annotations

from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .annotations import AnnotationIndex
from .line_index import SourceBuffer
from .models import AnalysisResult, SelectionState, Severity
from .session import ExplorerSession

SEVERITY_STYLES = {
    Severity.LOW: "cyan",
    Severity.MEDIUM: "yellow",
    Severity.HIGH: "bold red",
}


def render_summary(console: Console, result: AnalysisResult, title: str = "Summary") -> None:
    console.print(Panel(escape(result.summary or "(no summary)"), title=title, border_style="cyan"))


def render_listing(
    console: Console,
    buffer: SourceBuffer,
    index: AnnotationIndex,
    selection: Optional[SelectionState] = None,
) -> None:
    """Print the source with line numbers, issue markers, and explanations."""
    selection = selection or SelectionState()
    table = Table(show_header=True, header_style="bold", box=None, pad_edge=False)
    table.add_column("#", justify="right", style="dim", no_wrap=True)
    table.add_column("", no_wrap=True)
    table.add_column("Code", overflow="fold")
    table.add_column("Explanation", style="italic", overflow="fold")

    for number, code in buffer.numbered():
        issue = index.issue_for(number)
        marker = Text("●", style=SEVERITY_STYLES[issue.severity]) if issue else Text("")
        row_style = None
        if selection.range is not None and selection.range.contains(number):
            row_style = "reverse"
        elif selection.hovered_line == number:
            row_style = "on grey23"
        table.add_row(
            str(number),
            marker,
            Text(code),
            Text(index.explanation_for(number) or ""),
            style=row_style,
        )
    console.print(table)

    outside = index.out_of_range_lines()
    if outside:
        console.print(
            f"[dim]Annotations also reference lines past the end of the file: "
            f"{', '.join(str(n) for n in outside)}[/dim]"
        )


def render_issues(console: Console, result: AnalysisResult) -> None:
    console.print("[bold]Critical risks[/bold]")
    if not result.issues:
        console.print("  [green]No issues detected.[/green]")
    for issue in result.issues:
        style = SEVERITY_STYLES[issue.severity]
        console.print(f"  [{style}]{issue.severity.value.upper():<6}[/{style}] L{issue.line}  {escape(issue.text)}")


def render_best_practices(console: Console, result: AnalysisResult) -> None:
    console.print("[bold]Optimizations[/bold]")
    if not result.best_practices:
        console.print("  [dim]None suggested.[/dim]")
    for practice in result.best_practices:
        console.print(f"  L{practice.line}  {escape(practice.text)}")


def render_glossary(console: Console, result: AnalysisResult) -> None:
    if not result.glossary:
        return
    table = Table(title="Glossary", show_lines=False)
    table.add_column("Term", style="bold cyan")
    table.add_column("Definition")
    table.add_column("Relevance", style="dim")
    for entry in result.glossary:
        table.add_row(Text(entry.term), Text(entry.definition), Text(entry.relevance))
    console.print(table)


def render_flowchart(console: Console, result: AnalysisResult) -> None:
    if not result.flowchart_source.strip():
        return
    console.print(Panel(Text(result.flowchart_source), title="Control map (Mermaid)", border_style="magenta"))
    if result.node_lines:
        nodes = ", ".join(
            f"{n.node_id}→{','.join(str(line) for line in n.lines) or '-'}" for n in result.node_lines
        )
        console.print(f"[dim]Nodes: {escape(nodes)}[/dim]")


def render_analysis(console: Console, session: ExplorerSession) -> None:
    result = session.result
    if result is None:
        console.print("[yellow]No analysis loaded.[/yellow]")
        return
    render_summary(console, result, title=session.program_name)
    render_listing(console, session.lifecycle.buffer, session.index, session.selection.state)
    render_issues(console, result)
    render_best_practices(console, result)
    render_glossary(console, result)
    render_flowchart(console, result)


def render_selection(console: Console, session: ExplorerSession) -> None:
    """Print the selection's combined explanation and any matching deep dive."""
    line_range = session.selection.range
    if line_range is None:
        console.print("[dim]Select a line to inspect its logic.[/dim]")
        return
    console.print(Panel(escape(session.selected_explanation() or ""), title=f"Selection: {line_range.label}"))
    for issue in session.selected_issues():
        style = SEVERITY_STYLES[issue.severity]
        console.print(f"  [{style}]{issue.severity.value}[/{style}] L{issue.line}: {escape(issue.text)}")
    deep_dive = session.active_deep_dive()
    if deep_dive:
        paragraphs = [p for p in deep_dive.split("\n") if p.strip()]
        console.print(Panel(escape("\n\n".join(paragraphs)), title="Deep dive", border_style="green"))
    elif session.deep_dive.pending and session.deep_dive.result.for_range == line_range:
        console.print("[dim]Deep dive in progress...[/dim]")
