from __future__ import annotations

import pytest

from careercoach.errors import AIServiceError
from careercoach.llm.client import AIClient, GenerationConfig, PlainText, StructuredJSON
from careercoach.llm.providers import ProviderConfig
from careercoach.types import FitAnalysis, ModelResponse


class StubProvider:
    def __init__(self, reply: str | Exception):
        self.config = ProviderConfig(name="stub", base_url="", api_key="", timeout_sec=1)
        self.reply = reply
        self.calls: list[dict] = []

    def complete_text(self, **kwargs) -> ModelResponse:
        self.calls.append(kwargs)
        if isinstance(self.reply, Exception):
            raise self.reply
        return ModelResponse(content=self.reply)


ANALYSIS_JSON = (
    '{"match_score": 64.6, "missing_keywords": ["SQL"], "keyword_density": [], '
    '"formatting_issues": [], "skills_gap": [], '
    '"recommendations": [{"priority": "High", "suggestion": "Add SQL", "location": "Skills"}]}'
)
STRUCTURED = GenerationConfig(model="gpt-5-mini", response_format=StructuredJSON(FitAnalysis))


def test_plain_text_is_returned_raw(settings) -> None:
    provider = StubProvider("  Hello there  ")
    client = AIClient(provider, settings=settings)

    assert client.generate("hi", GenerationConfig(model="m", response_format=PlainText())) == "  Hello there  "
    assert provider.calls[0]["json_schema"] is None


def test_structured_output_is_validated_into_schema(settings) -> None:
    provider = StubProvider(f"```json\n{ANALYSIS_JSON}\n```")
    result = AIClient(provider, settings=settings).generate("analyze", STRUCTURED)

    assert isinstance(result, FitAnalysis)
    assert result.match_score == 65
    assert result.recommendations[0].priority == "high"
    assert provider.calls[0]["schema_name"] == "FitAnalysis"
    assert provider.calls[0]["json_schema"]["type"] == "object"
    assert len(provider.calls) == 1


def test_fenced_and_bare_replies_parse_identically(settings) -> None:
    fenced = AIClient(StubProvider(f"```json\n{ANALYSIS_JSON}\n```"), settings=settings).generate("a", STRUCTURED)
    bare = AIClient(StubProvider(ANALYSIS_JSON), settings=settings).generate("a", STRUCTURED)
    assert fenced == bare


@pytest.mark.parametrize(
    "reply",
    [
        RuntimeError("timeout"),
        "",
        "   ",
        "not json",
        '{"missing_keywords": []}',
    ],
)
def test_failures_raise_ai_service_error(settings, reply) -> None:
    provider = StubProvider(reply)
    with pytest.raises(AIServiceError):
        AIClient(provider, settings=settings).generate("analyze", STRUCTURED)
    assert len(provider.calls) == 1


def test_empty_plain_text_is_an_error(settings) -> None:
    with pytest.raises(AIServiceError):
        AIClient(StubProvider(""), settings=settings).generate("hi", GenerationConfig(model="m"))
