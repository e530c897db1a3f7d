"""Schema-validated AI client.

``AIClient.generate`` makes exactly one provider call per invocation. Every
failure mode (transport error, empty reply, unparsable or non-conforming
JSON) comes back as :class:`~careercoach.errors.AIServiceError`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Protocol

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from careercoach.config import Settings, get_settings
from careercoach.errors import AIServiceError
from careercoach.llm.providers import LLMProvider, ProviderPool, parse_json

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class PlainText:
    pass


@dataclass(frozen=True, slots=True)
class StructuredJSON:
    schema: type[BaseModel]


ResponseFormat = PlainText | StructuredJSON


@dataclass(frozen=True, slots=True)
class GenerationConfig:
    model: str
    response_format: ResponseFormat = PlainText()


class TextGenerator(Protocol):
    def generate(self, prompt: str, config: GenerationConfig) -> Any: ...


class AIClient:
    def __init__(self, provider: LLMProvider | None = None, *, settings: Settings | None = None):
        self.settings = settings or get_settings()
        self.provider = provider or ProviderPool(self.settings).active()

    def generate(self, prompt: str, config: GenerationConfig) -> BaseModel | str:
        fmt = config.response_format
        json_schema = None
        schema_name = "response"
        if isinstance(fmt, StructuredJSON):
            json_schema = fmt.schema.model_json_schema()
            schema_name = fmt.schema.__name__

        try:
            response = self.provider.complete_text(
                model=config.model,
                prompt=prompt,
                json_schema=json_schema,
                schema_name=schema_name,
            )
        except Exception as exc:
            logger.warning(
                "AI call failed provider=%s model=%s error=%s",
                self.provider.config.name,
                config.model,
                exc,
            )
            raise AIServiceError(f"AI call failed: {exc}") from exc

        text = response.content
        if not text or not text.strip():
            raise AIServiceError("No response from AI")

        if not isinstance(fmt, StructuredJSON):
            return text

        data = parse_json(text)
        try:
            return fmt.schema.model_validate(data)
        except PydanticValidationError as exc:
            logger.warning("Model output does not match %s: %s", schema_name, exc)
            raise AIServiceError(f"model output does not match {schema_name}") from exc
