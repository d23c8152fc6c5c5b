"""Tests for Langfuse tracing setup behavior."""

from __future__ import annotations

import sys
import types

from tech_digest.config import LangfuseConfig
from tech_digest.llm import tracing


def test_setup_langfuse_passes_base_url_env_as_host(monkeypatch):
    captured: dict = {}

    class DummyLangfuse:
        def __init__(self, **kwargs):
            captured.update(kwargs)

    fake_module = types.SimpleNamespace(Langfuse=DummyLangfuse)
    monkeypatch.setitem(sys.modules, "langfuse", fake_module)
    monkeypatch.setenv("LANGFUSE_PUBLIC_KEY", "pk-test")
    monkeypatch.setenv("LANGFUSE_SECRET_KEY", "sk-test")
    monkeypatch.setenv("LANGFUSE_BASE_URL", "https://us.cloud.langfuse.com")

    tracing.setup_langfuse(LangfuseConfig(enabled=True, timeout_seconds=45))

    assert captured["public_key"] == "pk-test"
    assert captured["secret_key"] == "sk-test"
    assert captured["host"] == "https://us.cloud.langfuse.com"
    assert "base_url" not in captured
    assert captured["timeout"] == 45
    tracing.setup_langfuse(LangfuseConfig(enabled=False))


def test_setup_langfuse_disables_tracer_when_keys_missing(monkeypatch):
    monkeypatch.delenv("LANGFUSE_PUBLIC_KEY", raising=False)
    monkeypatch.delenv("LANGFUSE_SECRET_KEY", raising=False)

    tracing.setup_langfuse(LangfuseConfig(enabled=True))

    assert tracing.get_tracer() is None


def test_spans_are_no_ops_without_tracer():
    tracing.setup_langfuse(LangfuseConfig(enabled=False))

    with tracing.start_span("oracle.score", kind="llm", input_value="prompt") as span:
        tracing.set_span_output(span, "0.5")
        tracing.record_span_error(span, RuntimeError("boom"))

    assert span is None
    tracing.flush()
