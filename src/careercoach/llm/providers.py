from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any

from openai import OpenAI

from careercoach.config import Settings
from careercoach.errors import AIServiceError
from careercoach.types import ModelResponse

logger = logging.getLogger(__name__)

_LEADING_FENCE = re.compile(r"^```(?:json)?[ \t]*\n?", re.IGNORECASE)
_TRAILING_FENCE = re.compile(r"\n?```$")


@dataclass(slots=True)
class ProviderConfig:
    name: str
    base_url: str
    api_key: str
    timeout_sec: int
    api_style: str = "responses"


class LLMProvider:
    def __init__(self, config: ProviderConfig):
        self.config = config
        self.client = OpenAI(
            base_url=config.base_url,
            api_key=config.api_key,
            timeout=float(config.timeout_sec),
        )

    def complete_text(
        self,
        *,
        model: str,
        prompt: str,
        json_schema: dict[str, Any] | None = None,
        schema_name: str = "response",
    ) -> ModelResponse:
        if self.config.api_style == "chat_completions":
            return self._complete_via_chat_completions(
                model=model, prompt=prompt, json_schema=json_schema, schema_name=schema_name
            )
        return self._complete_via_responses(
            model=model, prompt=prompt, json_schema=json_schema, schema_name=schema_name
        )

    def _complete_via_responses(
        self,
        *,
        model: str,
        prompt: str,
        json_schema: dict[str, Any] | None,
        schema_name: str,
    ) -> ModelResponse:
        kwargs: dict[str, Any] = {}
        if json_schema is not None:
            kwargs["text"] = {
                "format": {
                    "type": "json_schema",
                    "name": schema_name,
                    "schema": json_schema,
                    "strict": False,
                }
            }
        response = self.client.responses.create(
            model=model,
            input=[
                {
                    "role": "user",
                    "content": [{"type": "input_text", "text": prompt}],
                }
            ],
            **kwargs,
        )
        text = getattr(response, "output_text", "") or ""
        raw = response.model_dump() if hasattr(response, "model_dump") else {}
        if not isinstance(raw, dict):
            raw = {"raw": raw}
        raw["api_path"] = "responses"
        return ModelResponse(content=text, raw=raw)

    def _complete_via_chat_completions(
        self,
        *,
        model: str,
        prompt: str,
        json_schema: dict[str, Any] | None,
        schema_name: str,
    ) -> ModelResponse:
        kwargs: dict[str, Any] = {}
        if json_schema is not None:
            kwargs["response_format"] = {
                "type": "json_schema",
                "json_schema": {"name": schema_name, "schema": json_schema, "strict": False},
            }
        response = self.client.chat.completions.create(
            model=model,
            messages=[{"role": "user", "content": prompt}],
            **kwargs,
        )

        text = self._extract_chat_text(response)
        raw = response.model_dump() if hasattr(response, "model_dump") else {}
        if not isinstance(raw, dict):
            raw = {"raw": raw}
        raw["api_path"] = "chat_completions"
        return ModelResponse(content=text, raw=raw)

    @staticmethod
    def _extract_chat_text(response: Any) -> str:
        choices = getattr(response, "choices", None) or []
        if not choices:
            return ""

        message = getattr(choices[0], "message", None)
        if message is None:
            return ""

        content = getattr(message, "content", "")
        if isinstance(content, str):
            return content
        if content is None:
            return ""
        return str(content)


def clean_json_text(content: str) -> str:
    """Strip a surrounding ```json / ``` fence, if any.

    Only a fence that opens the text is removed, together with a closing
    fence at the very end. Anything else is returned trimmed but untouched.
    """
    candidate = content.strip()
    if not candidate.startswith("```"):
        return candidate
    candidate = _LEADING_FENCE.sub("", candidate, count=1)
    candidate = _TRAILING_FENCE.sub("", candidate, count=1)
    return candidate.strip()


def parse_json(content: str) -> Any:
    candidate = clean_json_text(content)
    if not candidate:
        raise AIServiceError("empty JSON payload from model")
    try:
        return json.loads(candidate)
    except json.JSONDecodeError as exc:
        logger.warning("Failed to parse JSON model output: %s", exc)
        raise AIServiceError(f"model output is not valid JSON: {exc}") from exc


class ProviderPool:
    def __init__(self, settings: Settings):
        self.settings = settings
        self._openai: LLMProvider | None = None
        self._local: LLMProvider | None = None

    def active(self) -> LLMProvider:
        if self.settings.llm_provider == "local":
            return self.local()
        return self.openai()

    def openai(self) -> LLMProvider:
        if self._openai is None:
            self._openai = LLMProvider(
                ProviderConfig(
                    name="openai",
                    base_url=self.settings.openai_base_url,
                    api_key=self.settings.openai_api_key,
                    timeout_sec=self.settings.openai_timeout_sec,
                    api_style=self.settings.openai_api_style,
                )
            )
        return self._openai

    def local(self) -> LLMProvider:
        if self._local is None:
            self._local = LLMProvider(
                ProviderConfig(
                    name="local",
                    base_url=self.settings.local_llm_base_url,
                    api_key=self.settings.local_llm_api_key,
                    timeout_sec=self.settings.local_llm_timeout_sec,
                    api_style=self.settings.local_llm_api_style,
                )
            )
        return self._local
