"""Configuration management for the article translator CLI."""

import os
from dataclasses import dataclass
from pathlib import Path

import yaml

DEFAULT_LANGUAGE = "hi-IN"
DEFAULT_CHUNK_BUDGET = 1000
API_KEY_ENV_VAR = "ARTICLE_TRANSLATOR_SARVAM_API_KEY"


def config_path() -> Path:
    return Path.home() / ".config" / "article-translator" / "config.yaml"


@dataclass
class Config:
    """CLI configuration."""

    sarvam_api_key: str | None = None
    default_language: str = DEFAULT_LANGUAGE
    chunk_budget: int = DEFAULT_CHUNK_BUDGET

    @classmethod
    def load(cls) -> "Config":
        """Load config from ~/.config/article-translator/config.yaml, then apply env overrides."""
        data = {}
        path = config_path()
        if path.exists():
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}

        api_key = os.environ.get(API_KEY_ENV_VAR) or data.get("sarvam_api_key")
        return cls(
            sarvam_api_key=api_key.strip() if isinstance(api_key, str) and api_key.strip() else None,
            default_language=str(data.get("default_language", DEFAULT_LANGUAGE)),
            chunk_budget=int(data.get("chunk_budget", DEFAULT_CHUNK_BUDGET)),
        )

    def save(self):
        """Save config to file. The API key is only written when it came from the file."""
        path = config_path()
        path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "default_language": self.default_language,
            "chunk_budget": self.chunk_budget,
        }
        if self.sarvam_api_key and not os.environ.get(API_KEY_ENV_VAR):
            data["sarvam_api_key"] = self.sarvam_api_key
        with open(path, "w", encoding="utf-8") as f:
            yaml.safe_dump(data, f)
