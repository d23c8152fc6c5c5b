"""
Command-line interface for the tech digest pipeline.

Uses Typer for commands and rich for console output. Environment variables
from a local .env file are loaded before the configuration is read, so
credentials such as OPENAI_API_KEY or EMAIL_PASSWORD can live there.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, NoReturn

from dotenv import load_dotenv
import typer
from rich.console import Console
from rich.table import Table

from .config import AppConfig, get_api_key, load_config, validate_config
from .core.types import DeliveryStatus
from .errors import ConfigurationError
from .logging_utils import setup_logging
from .runner import RunResult, open_store, run_stages
from .store.seed import load_seed_file, seed_store

app = typer.Typer(add_completion=False, help="Personalized industry newsletter pipeline.")
console = Console()

ConfigOption = typer.Option(None, "--config", "-c", help="Path to YAML config file.")
LogLevelOption = typer.Option(None, "--log-level", help="Logging level.")


def _load(config: Path | None, log_level: str | None = None) -> AppConfig:
    load_dotenv()
    if config is not None and not config.exists():
        _fail(f"Config file not found: {config}")
    try:
        cfg = load_config(str(config) if config else None)
    except ConfigurationError as exc:
        _fail(str(exc))
    if log_level:
        cfg.logging.level = log_level
    setup_logging(cfg.logging)
    return cfg


def _fail(message: str) -> NoReturn:
    console.print(f"[red]Configuration error:[/red] {message}")
    raise typer.Exit(code=1)


def _run(cfg: AppConfig, stages: Iterable[str], progress: bool) -> RunResult:
    try:
        return run_stages(cfg, list(stages), show_progress=progress, console=console)
    except ConfigurationError as exc:
        _fail(str(exc))


def _print_result(result: RunResult) -> None:
    if result.ingest is not None:
        s = result.ingest
        console.print(
            f"Ingest: {s.articles_inserted} new articles from {s.sources_processed} sources "
            f"({s.sources_failed} failed, {s.articles_seen} seen)"
        )
    if result.relevance is not None:
        s = result.relevance
        console.print(
            f"Score: {s.scored}/{s.selected} articles scored, {s.summarized} summarized "
            f"({s.score_failures} score failures, {s.summary_failures} summary failures)"
        )
    if result.delivery is not None:
        s = result.delivery
        console.print(
            f"Deliver: {s.sent} sent, {s.failed} failed, {s.skipped_not_due} not due, "
            f"{s.skipped_already_sent} already sent, {s.skipped_no_articles} without articles"
        )


@app.command("init-db")
def init_db(config: Path | None = ConfigOption):
    """Create all tables and indexes. Safe to run repeatedly."""
    cfg = _load(config)
    store = open_store(cfg)
    console.print(f"Schema ready: {', '.join(store.table_names())}")


@app.command()
def seed(
    file: Path = typer.Option(..., "--file", "-f", exists=True, readable=True, help="YAML with sources and users."),
    config: Path | None = ConfigOption,
):
    """Load sources and users from a YAML file (insert-or-skip)."""
    cfg = _load(config)
    try:
        raw = load_seed_file(file)
        store = open_store(cfg)
        stats = seed_store(store, raw)
    except ConfigurationError as exc:
        _fail(str(exc))
    console.print(
        f"Sources: {stats.sources_added} added, {stats.sources_skipped} already present. "
        f"Users: {stats.users_added} added, {stats.users_skipped} already present."
    )


@app.command("source-toggle")
def source_toggle(
    url: str = typer.Argument(..., help="Feed URL of the source."),
    active: bool = typer.Option(True, "--active/--inactive"),
    config: Path | None = ConfigOption,
):
    """Activate or deactivate a source."""
    cfg = _load(config)
    store = open_store(cfg)
    if not store.set_source_active(url, active):
        console.print(f"[yellow]No source with URL {url}[/yellow]")
        raise typer.Exit(code=1)
    console.print(f"Source {url} is now {'active' if active else 'inactive'}")


@app.command()
def status(
    config: Path | None = ConfigOption,
    failures: int = typer.Option(10, "--failures", help="Number of recent failed deliveries to show."),
):
    """Show row counts and recent failed deliveries."""
    cfg = _load(config)
    store = open_store(cfg)

    counts = Table(title="Tables")
    counts.add_column("Table")
    counts.add_column("Rows", justify="right")
    for name, count in store.table_counts().items():
        counts.add_row(name, str(count))
    console.print(counts)

    failed = store.deliveries(status=DeliveryStatus.FAILED, limit=failures)
    if not failed:
        console.print("No failed deliveries.")
        return
    table = Table(title="Recent failed deliveries")
    table.add_column("Date")
    table.add_column("User")
    table.add_column("Error")
    for delivery in failed:
        table.add_row(delivery.delivery_date.isoformat(), delivery.user_email, delivery.error_message or "")
    console.print(table)


@app.command()
def check(config: Path | None = ConfigOption):
    """Verify database access, provider key and mail configuration."""
    cfg = _load(config)
    table = Table(title="Configuration check")
    table.add_column("Check")
    table.add_column("Result")
    ok = True

    try:
        store = open_store(cfg)
        store.table_counts()
        table.add_row("database", f"[green]ok[/green] ({cfg.database.url.split('://')[0]})")
    except Exception as exc:  # noqa: BLE001
        ok = False
        table.add_row("database", f"[red]{exc}[/red]")

    if get_api_key(cfg.provider):
        table.add_row("provider", f"[green]ok[/green] ({cfg.provider.name}/{cfg.provider.model or 'default model'})")
    else:
        ok = False
        table.add_row("provider", f"[red]API key for '{cfg.provider.name}' not configured[/red]")

    try:
        validate_config(cfg, ["deliver"])
        table.add_row("mail", f"[green]ok[/green] ({cfg.mail.backend})")
    except ConfigurationError as exc:
        ok = False
        table.add_row("mail", f"[red]{exc}[/red]")

    console.print(table)
    if not ok:
        raise typer.Exit(code=1)


@app.command()
def ingest(
    config: Path | None = ConfigOption,
    progress: bool = typer.Option(True, "--progress/--no-progress"),
    log_level: str | None = LogLevelOption,
):
    """Fetch active sources and store new articles."""
    cfg = _load(config, log_level)
    _print_result(_run(cfg, ["ingest"], progress))


@app.command()
def score(
    config: Path | None = ConfigOption,
    progress: bool = typer.Option(True, "--progress/--no-progress"),
    log_level: str | None = LogLevelOption,
):
    """Score and summarize unscored articles."""
    cfg = _load(config, log_level)
    _print_result(_run(cfg, ["score"], progress))


@app.command()
def deliver(
    config: Path | None = ConfigOption,
    progress: bool = typer.Option(True, "--progress/--no-progress"),
    log_level: str | None = LogLevelOption,
):
    """Send digests to users who are due today."""
    cfg = _load(config, log_level)
    _print_result(_run(cfg, ["deliver"], progress))


@app.command("run-all")
def run_all(
    config: Path | None = ConfigOption,
    progress: bool = typer.Option(True, "--progress/--no-progress"),
    log_level: str | None = LogLevelOption,
):
    """Run ingest, score and deliver in order."""
    cfg = _load(config, log_level)
    _print_result(_run(cfg, ["ingest", "score", "deliver"], progress))


if __name__ == "__main__":
    app()
