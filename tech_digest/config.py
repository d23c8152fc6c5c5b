"""
Configuration management using YAML files and dataclasses.

This module defines all configuration dataclasses and provides loading
from YAML files with defaults. Configuration sections:
- DatabaseConfig: SQLAlchemy database URL
- FetchConfig: HTTP feed fetching settings
- DedupConfig: In-batch deduplication settings
- ProviderConfig: LLM provider settings
- RelevanceConfig: Scoring batch, threshold and rate limit settings
- SelectionConfig: Candidate recency window
- NewsletterConfig: Digest presentation
- MailConfig: Outbound mail transport
- LoggingConfig: Logging behavior
- LangfuseConfig: Langfuse tracing settings
- AppConfig: Root configuration container

Credentials can also be supplied through environment variables, which
take precedence over empty values in the YAML file.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
import os
from typing import Any, Iterable

import yaml

from .core.types import FEED_ITEM_CAP, RECENCY_WINDOW_DAYS, RELEVANCE_THRESHOLD, SCORING_BATCH_SIZE
from .errors import ConfigurationError


@dataclass
class DatabaseConfig:
    """Configuration for the persistent store.

    Attributes:
        url: SQLAlchemy database URL (sqlite or postgresql)
        echo: Whether SQLAlchemy should log emitted SQL
    """

    url: str = "sqlite:///newsletter.db"
    echo: bool = False


@dataclass
class FetchConfig:
    """Configuration for HTTP feed fetching.

    Attributes:
        timeout_seconds: HTTP request timeout
        retries: Number of retry attempts for failed requests
        trust_env: Whether to respect system proxy settings
        user_agent: HTTP User-Agent header string
        max_items: Maximum number of items decoded per feed
    """

    timeout_seconds: float = 20.0
    retries: int = 2
    trust_env: bool = True
    user_agent: str = "tech-digest/0.1 (RSS reader)"
    max_items: int = FEED_ITEM_CAP


@dataclass
class DedupConfig:
    """Configuration for in-batch deduplication during ingestion.

    Attributes:
        enabled: Whether to drop near-identical titles within one feed
        title_similarity_threshold: Fuzzy match threshold (0-100) for title similarity
    """

    enabled: bool = True
    title_similarity_threshold: int = 92


@dataclass
class ProviderConfig:
    """Configuration for pluggable LLM providers.

    Attributes:
        name: Provider name ("openai", "openai_compatible" or "gemini")
        model: Model identifier (provider default when unset)
        api_key_env: Environment variable holding the API key
        base_url: Base URL for the provider API (provider default when unset)
        api_key: Optional inline API key (overrides env var)
        trust_env: Whether to respect system proxy settings for API requests
        timeout_seconds: Timeout for a single completion request
    """

    name: str = "openai"
    model: str | None = None
    api_key_env: str | None = None
    base_url: str | None = None
    api_key: str | None = None
    trust_env: bool = True
    timeout_seconds: float = 30.0


@dataclass
class RelevanceConfig:
    """Configuration for the relevance stage.

    Attributes:
        batch_size: Maximum number of unscored articles per run
        threshold: Minimum score for an article to be summarized and selected
        call_interval_seconds: Minimum pause between two oracle calls
        score_excerpt_chars: Characters of content sent with the scoring prompt
        summary_excerpt_chars: Characters of content sent with the summary prompt
    """

    batch_size: int = SCORING_BATCH_SIZE
    threshold: float = RELEVANCE_THRESHOLD
    call_interval_seconds: float = 1.0
    score_excerpt_chars: int = 500
    summary_excerpt_chars: int = 1000


@dataclass
class SelectionConfig:
    recency_days: int = RECENCY_WINDOW_DAYS


@dataclass
class NewsletterConfig:
    title: str = "Streaming Industry Newsletter"


@dataclass
class MailConfig:
    """Configuration for outbound mail.

    Attributes:
        backend: "smtp" to send, "console" to only log the message
        host: SMTP server hostname
        port: SMTP server port
        use_ssl: Connect with implicit TLS (SMTPS) instead of STARTTLS
        starttls: Upgrade plain connections with STARTTLS
        username: SMTP login
        password: SMTP password
        from_email: Sender address, defaults to the username
        from_name: Sender display name
        timeout_seconds: Socket timeout for the SMTP session
    """

    backend: str = "smtp"
    host: str = "smtp.gmail.com"
    port: int = 587
    use_ssl: bool = False
    starttls: bool = True
    username: str | None = None
    password: str | None = None
    from_email: str | None = None
    from_name: str = "Streaming Industry Newsletter"
    timeout_seconds: float = 30.0


@dataclass
class LoggingConfig:
    """Configuration for logging behavior.

    Attributes:
        level: Logging level ("DEBUG", "INFO", "WARNING", "ERROR")
        console: Whether to log to console
        file: Whether to log to file
        format: Log file format ("jsonl" or "plain")
        filename: Name of the main log file
        log_dir: Directory for log files
    """

    level: str = "INFO"
    console: bool = True
    file: bool = False
    format: str = "jsonl"
    filename: str = "run.jsonl"
    log_dir: str = "logs"


@dataclass
class LangfuseConfig:
    """Configuration for Langfuse tracing.

    Attributes:
        enabled: Whether to enable Langfuse tracing
        public_key: Langfuse public key (optional)
        secret_key: Langfuse secret key (optional)
        base_url: Langfuse base URL (optional)
        timeout_seconds: Timeout for Langfuse ingestion requests
        max_text_chars: Maximum characters for prompt/response payloads
    """

    enabled: bool = False
    public_key: str | None = None
    secret_key: str | None = None
    base_url: str | None = None
    timeout_seconds: int = 30
    max_text_chars: int = 20000


@dataclass
class AppConfig:
    """Root configuration container aggregating all config sections."""

    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    fetch: FetchConfig = field(default_factory=FetchConfig)
    dedup: DedupConfig = field(default_factory=DedupConfig)
    provider: ProviderConfig = field(default_factory=ProviderConfig)
    relevance: RelevanceConfig = field(default_factory=RelevanceConfig)
    selection: SelectionConfig = field(default_factory=SelectionConfig)
    newsletter: NewsletterConfig = field(default_factory=NewsletterConfig)
    mail: MailConfig = field(default_factory=MailConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    langfuse: LangfuseConfig = field(default_factory=LangfuseConfig)


_SECTIONS: dict[str, type] = {
    "database": DatabaseConfig,
    "fetch": FetchConfig,
    "dedup": DedupConfig,
    "provider": ProviderConfig,
    "relevance": RelevanceConfig,
    "selection": SelectionConfig,
    "newsletter": NewsletterConfig,
    "mail": MailConfig,
    "logging": LoggingConfig,
    "langfuse": LangfuseConfig,
}


def load_config(path: str | None) -> AppConfig:
    """Load configuration from a YAML file with defaults."""
    if not path:
        return apply_env_overrides(AppConfig())

    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    return apply_env_overrides(_merge_config(AppConfig(), raw))


def _merge_config(base: AppConfig, raw: dict[str, Any]) -> AppConfig:
    """Merge raw YAML config into base AppConfig."""
    data = asdict(base)
    for key, value in raw.items():
        if key not in data:
            continue
        if not isinstance(value, dict):
            raise ConfigurationError(f"Config section '{key}' must be a mapping")
        known = data[key]
        for name, item in value.items():
            if name not in known:
                raise ConfigurationError(f"Unknown config key '{key}.{name}'")
            known[name] = item
    return AppConfig(**{name: cls(**data[name]) for name, cls in _SECTIONS.items()})


def apply_env_overrides(cfg: AppConfig) -> AppConfig:
    """Fill database and mail settings from environment variables."""
    database_url = os.getenv("DATABASE_URL")
    if database_url:
        cfg.database.url = database_url

    mail = cfg.mail
    mail.host = os.getenv("EMAIL_HOST") or mail.host
    port = os.getenv("EMAIL_PORT")
    if port:
        try:
            mail.port = int(port)
        except ValueError:
            raise ConfigurationError("EMAIL_PORT must be an integer") from None
    secure = os.getenv("EMAIL_SECURE")
    if secure:
        mail.use_ssl = secure.strip().lower() == "true"
    mail.username = mail.username or os.getenv("EMAIL_USER")
    mail.password = mail.password or os.getenv("EMAIL_PASSWORD")
    mail.from_email = mail.from_email or mail.username
    return cfg


def get_api_key(cfg: ProviderConfig) -> str | None:
    """Get API key from inline config or environment variable."""
    if cfg.api_key:
        return cfg.api_key
    if cfg.api_key_env:
        return os.getenv(cfg.api_key_env)
    defaults = {
        "gemini": "GOOGLE_API_KEY",
        "openai": "OPENAI_API_KEY",
        "openai_compatible": "OPENAI_API_KEY",
        "openai-compatible": "OPENAI_API_KEY",
    }
    env_name = defaults.get(cfg.name.lower(), "OPENAI_API_KEY")
    return os.getenv(env_name)


def validate_config(cfg: AppConfig, stages: Iterable[str]) -> None:
    """Fail fast when a requested stage is missing a required credential.

    Args:
        cfg: Loaded application configuration
        stages: Stage names about to run ("ingest", "score", "deliver")

    Raises:
        ConfigurationError: Naming the first missing or invalid setting
    """
    requested = set(stages)
    if not cfg.database.url:
        raise ConfigurationError("Database URL not configured")
    if "score" in requested and not get_api_key(cfg.provider):
        raise ConfigurationError(f"API key for provider '{cfg.provider.name}' not configured")
    if "score" in requested and cfg.relevance.call_interval_seconds < 0:
        raise ConfigurationError("relevance.call_interval_seconds must not be negative")
    if "deliver" in requested:
        backend = cfg.mail.backend.lower()
        if backend not in {"smtp", "console"}:
            raise ConfigurationError(f"Unsupported mail backend: {cfg.mail.backend}")
        if backend == "smtp" and (not cfg.mail.username or not cfg.mail.password):
            raise ConfigurationError("Email configuration missing")
