"""CLI entry point for vaultclip."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Annotated

import typer
import yaml
from rich import print as rprint
from rich.logging import RichHandler
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from vaultclip.config import VaultclipConfig, load_config
from vaultclip.config.loader import DEFAULT_CONFIG_TEMPLATE, PROJECT_CONFIG
from vaultclip.llm import CLI_TOOLS, ArticleBackend, ConfigError, ConversionError, create_backend
from vaultclip.notes import FetchError, NoteProcessor, fetch_url_content
from vaultclip.output import ArticleWriter

app = typer.Typer(
    name="vaultclip",
    help="Save the articles linked from your notes vault as Markdown.",
)

config_app = typer.Typer(help="Manage vaultclip configuration.")
app.add_typer(config_app, name="config")

# Global state
_config: VaultclipConfig | None = None

_LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}


class _JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "time": self.formatTime(record),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)
        return json.dumps(entry)


def _configure_logging(cfg: VaultclipConfig, verbose: bool) -> None:
    level = logging.DEBUG if verbose else _LOG_LEVELS[cfg.log_level]
    if cfg.log_format == "json":
        handler: logging.Handler = logging.StreamHandler()
        handler.setFormatter(_JsonFormatter())
    else:
        handler = RichHandler(show_path=False, rich_tracebacks=True)
    logging.basicConfig(level=level, handlers=[handler], format="%(message)s", force=True)


def _get_config() -> VaultclipConfig:
    if _config is None:
        return load_config()
    return _config


@app.callback()
def main(
    config: Annotated[
        str | None, typer.Option("--config", "-c", help="Path to vaultclip.yaml")
    ] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Debug logging")] = False,
) -> None:
    """Global options."""
    global _config
    try:
        _config = load_config(config)
    except ValueError as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    _configure_logging(_config, verbose)


def _build_backend(cfg: VaultclipConfig, kind: str | None) -> ArticleBackend:
    settings = cfg.backend
    if kind:
        settings = settings.model_copy(update={"kind": kind, "use_mock": False})
    try:
        return create_backend(settings)
    except ConfigError as e:
        rprint(f"[red]Configuration error:[/red] {e}")
        raise typer.Exit(1)


def _is_url(source: str) -> bool:
    return source.startswith(("http://", "https://"))


@app.command()
def convert(
    source: str = typer.Argument(..., help="HTML file or http(s) URL to convert"),
    output: str | None = typer.Option(None, "--output", "-o", help="Write markdown to file"),
    backend: Annotated[
        str | None, typer.Option("--backend", "-b", help="Override the configured backend kind")
    ] = None,
) -> None:
    """Convert a single page to article Markdown."""
    cfg = _get_config()
    article_backend = _build_backend(cfg, backend)

    try:
        if _is_url(source):
            markup = asyncio.run(fetch_url_content(source, timeout=cfg.vault.fetch_timeout))
        else:
            markup = Path(source).read_text(encoding="utf-8")
    except (FetchError, OSError) as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    try:
        markdown = asyncio.run(article_backend.convert(markup, source))
    except ConversionError as e:
        rprint(f"[red]Conversion failed:[/red] {e}")
        raise typer.Exit(1)

    if output:
        Path(output).write_text(markdown, encoding="utf-8")
        rprint(f"[green]Written to[/green] {output}")
    else:
        rprint(Syntax(markdown, "markdown", theme="monokai"))

    rprint(
        Panel(
            f"[dim]Source:[/dim]   {source}\n"
            f"[dim]Backend:[/dim]  {article_backend.name}\n"
            f"[dim]Size:[/dim]     {len(markup)} chars in, {len(markdown)} chars out",
            title="Conversion Result",
            border_style="green",
        )
    )


@app.command()
def process(
    notes_dir: Annotated[
        str | None, typer.Argument(help="Notes directory (defaults to vault.notes_path)")
    ] = None,
    dry_run: bool = typer.Option(False, "--dry-run", help="Preview without writing"),
    keep_links: bool = typer.Option(
        False, "--keep-links", help="Leave processed links in the source notes"
    ),
    output: Annotated[
        str | None, typer.Option("--output", "-o", help="Override output directory")
    ] = None,
) -> None:
    """Convert every link found in the vault's notes into article files."""
    cfg = _get_config()
    notes_path = Path(notes_dir or cfg.vault.notes_path)
    if not notes_path.is_dir():
        rprint(f"[red]Error:[/red] Notes directory not found: {notes_path}")
        raise typer.Exit(1)

    article_backend = _build_backend(cfg, None)

    out_cfg = cfg.output
    if output:
        out_cfg = out_cfg.model_copy(update={"base_dir": output})
    vault_cfg = cfg.vault
    if keep_links:
        vault_cfg = vault_cfg.model_copy(update={"delete_links": False})

    dry_run = dry_run or out_cfg.dry_run
    processor = NoteProcessor(article_backend, ArticleWriter(out_cfg), vault_cfg)
    rprint(f"[bold]Processing[/bold] {notes_path} (backend: {article_backend.name})...")
    results = asyncio.run(processor.process_directory(notes_path, dry_run=dry_run))

    if not results:
        rprint("[yellow]No markdown files found in notes directory.[/yellow]")
        raise typer.Exit(0)

    table = Table(title=f"Notes ({len(results)})")
    table.add_column("Note", style="cyan")
    table.add_column("Saved", justify="right", style="green")
    table.add_column("Skipped", justify="right", style="yellow")
    table.add_column("Failed", justify="right", style="red")
    for r in results:
        table.add_row(r.note.name, str(len(r.written)), str(len(r.skipped)), str(len(r.failed)))
    rprint(table)

    for r in results:
        if r.error:
            rprint(f"  [red]note error:[/red] {r.note.name} ({r.error})")
        for url, reason in r.failed.items():
            rprint(f"  [red]failed:[/red] {url} ({reason})")
        if dry_run:
            for url, dest in r.written.items():
                rprint(f"  [dim]would write[/dim] {dest} [dim]from[/dim] {url}")
                rprint(
                    Panel(
                        Syntax(r.previews.get(url, ""), "markdown", theme="monokai"),
                        title="Preview",
                        border_style="dim",
                    )
                )


@app.command()
def backends() -> None:
    """List the available backend kinds and what each one needs."""
    table = Table(title="Backends")
    table.add_column("Kind", style="cyan")
    table.add_column("Description")
    table.add_column("Required settings", style="yellow")
    table.add_row("mock", "Offline HTML reduction, no external calls", "-")
    table.add_row("api", "Google Gemini API", "api_key_env")
    table.add_row("ollama", "Local Ollama server", "ollama_base_url, ollama_model")
    table.add_row("openrouter", "OpenRouter chat completions", "openrouter_api_key_env")
    table.add_row(
        "cli",
        f"External tool ({', '.join(CLI_TOOLS)})",
        "cli_command, cli_tool",
    )
    rprint(table)


@config_app.command("show")
def config_show() -> None:
    """Show current resolved configuration."""
    cfg = _get_config()
    rprint(Syntax(yaml.dump(cfg.model_dump(), default_flow_style=False), "yaml"))


@config_app.command("init")
def config_init(
    force: bool = typer.Option(False, "--force", help="Overwrite existing config"),
) -> None:
    """Create default vaultclip.yaml in current directory."""
    target = Path(PROJECT_CONFIG)
    if target.exists() and not force:
        rprint(f"[yellow]{target} already exists.[/yellow] Use --force to overwrite.")
        raise typer.Exit(1)
    target.write_text(DEFAULT_CONFIG_TEMPLATE)
    rprint(f"[green]Created[/green] {target}")
