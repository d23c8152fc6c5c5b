"""
Pipeline orchestration for the newsletter batch stages.

This module wires configuration into the stage collaborators and runs:
1. Ingest: fetch active sources and store new articles
2. Score: rate and summarize unscored articles with the LLM oracle
3. Deliver: send due users their digest

Each stage can run on its own; `run_all` runs them in order. Stages are
independent batch passes, so a crashed run is repaired by running again.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable

from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn

from .config import AppConfig, validate_config
from .feeds.fetcher import FeedFetcher
from .llm.oracle import ScoringOracle
from .llm.providers.factory import create_provider
from .llm.tracing import flush, setup_langfuse, start_span
from .logging_utils import get_logger, log_event
from .mail.sender import MailSender, create_sender
from .stages.delivery import DeliveryStats, run_delivery
from .stages.ingest import IngestStats, run_ingest
from .stages.relevance import RelevanceStats, run_relevance
from .store.repository import Store
from .throttle import Throttle

logger = get_logger(__name__)

STAGES = ("ingest", "score", "deliver")


@dataclass
class RunResult:
    ingest: IngestStats | None = None
    relevance: RelevanceStats | None = None
    delivery: DeliveryStats | None = None


def open_store(cfg: AppConfig) -> Store:
    store = Store.from_url(cfg.database.url, echo=cfg.database.echo)
    store.create_schema()
    return store


def build_oracle(cfg: AppConfig) -> ScoringOracle:
    return ScoringOracle(create_provider(cfg.provider), cfg.relevance)


def run_stages(
    cfg: AppConfig,
    stages: Iterable[str],
    store: Store | None = None,
    sender: MailSender | None = None,
    oracle: ScoringOracle | None = None,
    now: datetime | None = None,
    show_progress: bool = False,
    console: Console | None = None,
) -> RunResult:
    """Run the requested stages in pipeline order.

    Args:
        cfg: Application configuration
        stages: Stage names from STAGES
        store: Store to use, opened from cfg.database when None
        sender: Mail sender for delivery, built from cfg.mail when None
        oracle: Scoring oracle, built from cfg.provider when None
        now: Reference time for ingestion and delivery
        show_progress: Whether to display a spinner per stage
        console: Rich console for progress output

    Returns:
        RunResult with stats for every stage that ran

    Raises:
        ConfigurationError: If a requested stage is missing configuration
    """
    requested = [stage for stage in STAGES if stage in set(stages)]
    unknown = set(stages) - set(STAGES)
    if unknown:
        raise ValueError(f"Unknown stages: {', '.join(sorted(unknown))}")
    if oracle is not None:
        # An injected oracle needs no provider credentials.
        validate_config(cfg, [stage for stage in requested if stage != "score"])
    else:
        validate_config(cfg, requested)
    setup_langfuse(cfg.langfuse)

    store = store or open_store(cfg)
    result = RunResult()
    log_event(logger, "Pipeline start", event="pipeline_start", stages=",".join(requested))

    progress = (
        Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            TimeElapsedColumn(),
            console=console or Console(),
            transient=True,
        )
        if show_progress
        else None
    )

    try:
        if progress is not None:
            progress.start()
        for stage in requested:
            task_id = progress.add_task(f"Running {stage}", total=None) if progress else None
            with start_span(f"tech_digest.{stage}", kind="chain"):
                if stage == "ingest":
                    result.ingest = run_ingest(store, FeedFetcher(cfg.fetch), cfg, now=now)
                elif stage == "score":
                    result.relevance = run_relevance(
                        store,
                        oracle or build_oracle(cfg),
                        cfg,
                        Throttle(cfg.relevance.call_interval_seconds),
                    )
                elif stage == "deliver":
                    result.delivery = run_delivery(store, sender or create_sender(cfg.mail), cfg, now=now)
            if progress is not None and task_id is not None:
                progress.update(task_id, description=f"Finished {stage}")
                progress.stop_task(task_id)
    finally:
        if progress is not None:
            progress.stop()
        flush()

    log_event(logger, "Pipeline complete", event="pipeline_complete", stages=",".join(requested))
    return result
