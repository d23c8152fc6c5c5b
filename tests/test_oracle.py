import pytest

from tech_digest.config import RelevanceConfig
from tech_digest.errors import ScoreParseError, TransientFetchError
from tech_digest.llm.oracle import ScoringOracle, clamp_score, parse_score
from tech_digest.llm.prompts import build_relevance_prompt, build_summary_prompt


class RecordingProvider:
    name = "recording"

    def __init__(self, responses):
        self.responses = list(responses)
        self.calls = []

    def complete(self, prompt, max_tokens, temperature):
        self.calls.append({"prompt": prompt, "max_tokens": max_tokens, "temperature": temperature})
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


@pytest.mark.parametrize(
    "text, expected",
    [("0.85", 0.85), (" 0.7\n", 0.7), ("Score: 0.9 out of 1", 0.9), ("1", 1.0), (".5", 0.5), ("1.7", 1.7)],
)
def test_parse_score_takes_first_number(text, expected):
    assert parse_score(text) == expected


@pytest.mark.parametrize("text", ["", None, "relevant", "n/a"])
def test_parse_score_rejects_text_without_number(text):
    with pytest.raises(ScoreParseError):
        parse_score(text)


def test_clamp_score():
    assert clamp_score(1.4) == 1.0
    assert clamp_score(-0.2) == 0.0
    assert clamp_score(0.42) == 0.42


def test_score_uses_short_low_temperature_completion():
    provider = RecordingProvider(["0.75"])
    oracle = ScoringOracle(provider, RelevanceConfig())

    assert oracle.score("Netflix AI", "x" * 2000, "Variety") == 0.75
    call = provider.calls[0]
    assert (call["max_tokens"], call["temperature"]) == (10, 0.1)
    assert "Article Title: Netflix AI" in call["prompt"]
    assert "Source: Variety" in call["prompt"]
    assert "x" * 501 not in call["prompt"]


def test_summarize_uses_longer_completion():
    provider = RecordingProvider(["  Netflix is dubbing more.  "])
    oracle = ScoringOracle(provider, RelevanceConfig())

    assert oracle.summarize("Netflix AI", "body") == "Netflix is dubbing more."
    assert (provider.calls[0]["max_tokens"], provider.calls[0]["temperature"]) == (150, 0.3)


def test_oracle_propagates_provider_errors():
    oracle = ScoringOracle(RecordingProvider([TransientFetchError("https://api", "timeout")]), RelevanceConfig())
    with pytest.raises(TransientFetchError):
        oracle.score("t", "c", "s")


def test_prompts_fill_missing_content():
    assert "No content available" in build_relevance_prompt("T", "", "S")
    prompt = build_summary_prompt("T", "y" * 1500)
    assert "Title: T" in prompt
    assert "y" * 1000 in prompt
    assert "y" * 1001 not in prompt
