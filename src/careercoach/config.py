from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "CareerCoach"
    app_env: str = "development"
    app_host: str = "127.0.0.1"
    app_port: int = 8788
    log_level: str = "INFO"

    database_url: str = "sqlite:///./data/careercoach.db"
    data_dir: Path = Path("./data")

    llm_provider: str = "openai"

    openai_api_key: str = ""
    openai_base_url: str = "https://api.openai.com/v1"
    openai_api_style: str = "responses"
    openai_timeout_sec: int = 60

    local_llm_base_url: str = "http://localhost:11434/v1"
    local_llm_api_key: str = "local"
    local_llm_api_style: str = "chat_completions"
    local_llm_timeout_sec: int = 90

    model_analysis: str = "gpt-5-mini"
    model_writer: str = "gpt-5-mini"
    model_interviewer: str = "gpt-5-mini"
    model_grader: str = "gpt-5-mini"

    resume_variant_count: int = 3
    cover_letter_variant_count: int = 3
    question_count: int = 5
    grading_context_chars: int = 1000
    max_prompt_chars: int = 20000

    fetch_timeout_sec: int = 30

    cors_origins: str = "http://127.0.0.1:8788"

    @field_validator("app_env")
    @classmethod
    def validate_env(cls, value: str) -> str:
        allowed = {"development", "staging", "production", "test"}
        if value not in allowed:
            raise ValueError(f"app_env must be one of {sorted(allowed)}")
        return value

    @field_validator("llm_provider")
    @classmethod
    def validate_provider(cls, value: str) -> str:
        allowed = {"openai", "local"}
        if value not in allowed:
            raise ValueError(f"llm_provider must be one of {sorted(allowed)}")
        return value

    @field_validator("openai_api_style", "local_llm_api_style")
    @classmethod
    def validate_api_style(cls, value: str) -> str:
        allowed = {"responses", "chat_completions"}
        if value not in allowed:
            raise ValueError(f"api style must be one of {sorted(allowed)}")
        return value

    @property
    def cors_origin_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
