"""End-to-end tests for stage orchestration and the Typer CLI."""

from __future__ import annotations

import pytest
from typer.testing import CliRunner

from tech_digest.cli import app
from tech_digest.core.types import Source
from tech_digest.errors import ConfigurationError
from tech_digest.runner import run_stages
from tech_digest.store.repository import Store


class StaticOracle:
    def score(self, title, content, source_name):
        return 0.9

    def summarize(self, title, content):
        return f"About {title}"


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in ("DATABASE_URL", "EMAIL_USER", "EMAIL_PASSWORD", "OPENAI_API_KEY", "GOOGLE_API_KEY"):
        monkeypatch.delenv(name, raising=False)


def test_score_then_deliver(store, cfg, add_article, add_user, spy_sender, now):
    add_article(title="Netflix AI")
    add_user()

    result = run_stages(cfg, ["deliver", "score"], store=store, sender=spy_sender, oracle=StaticOracle(), now=now)

    assert result.ingest is None
    assert result.relevance.scored == 1
    assert result.delivery.sent == 1
    assert "About Netflix AI" in spy_sender.sent[0]["html"]


def test_run_stages_validates_before_running(store, cfg):
    cfg.mail.backend = "smtp"
    with pytest.raises(ConfigurationError, match="Email configuration missing"):
        run_stages(cfg, ["deliver"], store=store)


def test_run_stages_requires_provider_key_without_injected_oracle(store, cfg):
    with pytest.raises(ConfigurationError, match="API key"):
        run_stages(cfg, ["score"], store=store)


def test_run_stages_rejects_unknown_stage(store, cfg):
    with pytest.raises(ValueError, match="publish"):
        run_stages(cfg, ["publish"], store=store)


def _write_config(tmp_path, backend: str = "console"):
    db = tmp_path / "newsletter.db"
    path = tmp_path / "config.yaml"
    path.write_text(
        f"database:\n  url: sqlite:///{db}\nmail:\n  backend: {backend}\nlogging:\n  console: false\n",
        encoding="utf-8",
    )
    return path, f"sqlite:///{db}"


def test_cli_init_seed_status(tmp_path):
    config, url = _write_config(tmp_path)
    seed = tmp_path / "newsletter.yaml"
    seed.write_text(
        "sources:\n"
        "  - name: Variety\n    url: https://variety.example/feed\n    category: Streaming Platforms\n"
        "users:\n"
        "  - email: reader@example.com\n    frequency: weekly\n    delivery_day: friday\n",
        encoding="utf-8",
    )
    runner = CliRunner()

    result = runner.invoke(app, ["init-db", "--config", str(config)])
    assert result.exit_code == 0, result.output
    assert "sent_articles" in result.output

    result = runner.invoke(app, ["seed", "--file", str(seed), "--config", str(config)])
    assert result.exit_code == 0, result.output
    assert "Sources: 1 added" in result.output

    result = runner.invoke(app, ["status", "--config", str(config)])
    assert result.exit_code == 0, result.output
    assert "No failed deliveries." in result.output

    store = Store.from_url(url)
    assert [u.delivery_day for u in store.active_users()] == [5]


def test_cli_source_toggle(tmp_path):
    config, url = _write_config(tmp_path)
    store = Store.from_url(url)
    store.create_schema()
    store.insert_source(Source(id=None, name="Variety", url="https://variety.example/feed"))
    runner = CliRunner()

    result = runner.invoke(app, ["source-toggle", "https://variety.example/feed", "--inactive", "--config", str(config)])
    assert result.exit_code == 0, result.output
    assert store.active_sources() == []

    result = runner.invoke(app, ["source-toggle", "https://missing.example/feed", "--config", str(config)])
    assert result.exit_code == 1


def test_cli_exits_nonzero_on_configuration_error(tmp_path):
    config, _ = _write_config(tmp_path, backend="smtp")

    result = CliRunner().invoke(app, ["deliver", "--no-progress", "--config", str(config)])

    assert result.exit_code == 1
    assert "Email configuration missing" in result.output


def test_cli_check_reports_missing_key(tmp_path):
    config, _ = _write_config(tmp_path)

    result = CliRunner().invoke(app, ["check", "--config", str(config)])

    assert result.exit_code == 1
    assert "database" in result.output
