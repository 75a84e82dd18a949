"""LLM provider configuration commands."""

from __future__ import annotations

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from . import config_manager

console = Console()


def _mask(api_key: str) -> str:
    if not api_key:
        return "[dim](not set)[/dim]"
    return api_key[:8] + "•" * min(max(len(api_key) - 8, 0), 16)


def set_llm(
    provider: str = typer.Argument(..., help="LLM provider: ollama, openai, anthropic, gemini, groq, openrouter"),
    model: str = typer.Option(None, "--model", "-m", help="Model name (uses provider default if not set)."),
    api_key: str = typer.Option(None, "--api-key", "-k", help="API key for cloud providers."),
    endpoint: str = typer.Option(None, "--endpoint", "-e", help="Custom endpoint URL."),
):
    """Switch the LLM provider used for analysis and deep dives.

    Examples:
        lx set-llm gemini -k YOUR_API_KEY -m gemini-2.0-flash
        lx set-llm openrouter -k YOUR_API_KEY
        lx set-llm ollama -m qwen2.5-coder:7b
    """
    provider = provider.lower().strip()
    if provider not in config_manager.ALL_PROVIDERS:
        console.print(
            f"[red]❌ Unknown provider '{provider}'. Choose from: "
            f"{', '.join(config_manager.ALL_PROVIDERS)}[/red]"
        )
        raise typer.Exit(code=1)

    defaults = config_manager.get_provider_config(provider)
    resolved_model = model or defaults.get("model", "")
    resolved_endpoint = endpoint or defaults.get("endpoint", "")
    resolved_api_key = api_key or ""

    if provider != "ollama" and not resolved_api_key:
        console.print(f"[yellow]⚠ No API key given; {provider} requests will fail until one is set "
                      f"(or LOGIC_EXPLORER_API_KEY is exported).[/yellow]")

    if not config_manager.save_config(provider, resolved_model, resolved_api_key, resolved_endpoint):
        console.print("[red]❌ Failed to save configuration.[/red]")
        raise typer.Exit(code=1)

    console.print(f"[green]✓[/green] LLM set to [bold]{provider}[/bold] ({resolved_model})")


def unset_llm():
    """Remove the stored LLM configuration so Ollama defaults apply."""
    if not config_manager.clear_config():
        console.print("[dim]No LLM configuration found. Nothing to unset.[/dim]")
        return
    console.print("[green]✓[/green] LLM configuration removed; using Ollama defaults.")


def show_llm():
    """Show the current LLM provider configuration."""
    cfg = config_manager.load_config()
    table = Table(title="LLM Configuration", show_header=False, box=None)
    table.add_column(style="bold cyan")
    table.add_column()
    table.add_row("Provider", escape(cfg.get("provider", "ollama")))
    table.add_row("Model", escape(cfg.get("model", "")))
    if cfg.get("endpoint"):
        table.add_row("Endpoint", escape(cfg["endpoint"]))
    table.add_row("API Key", _mask(cfg.get("api_key", "")))
    table.add_row("Config", str(config_manager.CONFIG_FILE))
    console.print(table)
