from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from backend.app.services.extraction_rules import (
    DEFAULT_CHUNK_BUDGET,
    FALLBACK_THRESHOLD,
    STRONG_CANDIDATE_THRESHOLD,
)
from backend.app.services.sarvam_client import (
    DEFAULT_SARVAM_BASE_URL,
    DEFAULT_SOURCE_LANGUAGE_CODE,
    DEFAULT_TRANSLATE_MODEL,
)

DEFAULT_DATA_DIR = ".article-translator"
_DATA_DIR_RELATIVE_DEFAULTS: tuple[tuple[str, Path], ...] = (("log_dir", Path("logs")),)
_PATH_FIELDS: tuple[str, ...] = (
    "data_dir",
    *(field_name for field_name, _ in _DATA_DIR_RELATIVE_DEFAULTS),
)
_BOOLEAN_COERCION_FIELDS: tuple[str, ...] = (
    "enable_preprocessing",
    "telemetry_enabled",
)


def _default_in_data_dir(relative_path: Path) -> Path:
    return Path(DEFAULT_DATA_DIR) / relative_path


def _data_dir_default_note(relative_path: Path) -> str:
    return f"Defaults to `${{ARTICLE_TRANSLATOR_DATA_DIR}}/{relative_path}` when not explicitly set."


def _resolve_path(value: str | Path) -> Path:
    return Path(value).expanduser().resolve()


def _parse_bool_with_default(value: Any, *, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        if value in (0, 1):
            return bool(value)
        return default
    if not isinstance(value, str):
        return default

    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    return default


def _normalize_optional_text(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    normalized = value.strip()
    return normalized or None


class AppSettings(BaseSettings):
    """
    Canonical runtime configuration.

    Every option is read from an `ARTICLE_TRANSLATOR_*` environment variable
    (or `.env`), falling back to the default declared here.
    """

    model_config = SettingsConfigDict(
        env_prefix="ARTICLE_TRANSLATOR_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    # Core paths.
    data_dir: Path = Field(
        default=Path(DEFAULT_DATA_DIR),
        description="Root runtime directory for logs and local state.",
    )

    # Extraction and chunking.
    chunk_budget: int = Field(
        default=DEFAULT_CHUNK_BUDGET,
        gt=0,
        description="Maximum characters per chunk sent to the transform service.",
    )
    strong_candidate_threshold: float = Field(
        default=STRONG_CANDIDATE_THRESHOLD,
        description="Score an article candidate must exceed to be rendered structurally.",
    )
    fallback_threshold: float = Field(
        default=FALLBACK_THRESHOLD,
        description="Score the main/body fallback must exceed before degrading to flat text.",
    )

    # Sarvam AI transform service.
    sarvam_api_key: str | None = Field(
        default=None,
        description="Sarvam API subscription key. Translation endpoints are disabled without it.",
    )
    sarvam_base_url: str = Field(
        default=DEFAULT_SARVAM_BASE_URL,
        description="Sarvam API base URL.",
    )
    sarvam_http_timeout_seconds: float = Field(
        default=30.0,
        description="HTTP timeout for each Sarvam request.",
    )
    source_language_code: str = Field(
        default=DEFAULT_SOURCE_LANGUAGE_CODE,
        description="Language code of extracted articles.",
    )
    translate_model: str = Field(
        default=DEFAULT_TRANSLATE_MODEL,
        description="Sarvam translation model name.",
    )
    translate_register: Literal["formal", "modern-colloquial", "classic-colloquial", "code-mixed"] = (
        Field(
            default="formal",
            description="Translation register sent as the request `mode`.",
        )
    )
    speaker_gender: Literal["Male", "Female"] = Field(
        default="Male",
        description="Speaker gender hint sent with translation requests.",
    )
    enable_preprocessing: bool = Field(
        default=True,
        description="Ask the translation service to preprocess input text.",
    )

    # Logging.
    log_dir: Path = Field(
        default=_default_in_data_dir(Path("logs")),
        description=f"Directory for log files. {_data_dir_default_note(Path('logs'))}",
    )
    log_level: str = Field(
        default="INFO",
        description="Console log level (stdout).",
    )

    # Telemetry.
    telemetry_enabled: bool = Field(
        default=True,
        description="Enable lightweight internal telemetry events.",
    )
    telemetry_sink: Literal["none", "log", "memory"] = Field(
        default="log",
        description=(
            "Telemetry sink backend. `log` emits structured telemetry locally; "
            "`memory` keeps events in process; `none` disables sink output."
        ),
    )

    @field_validator("telemetry_sink", mode="before")
    @classmethod
    def _normalize_telemetry_sink(cls, value: Any) -> str:
        if not isinstance(value, str):
            raise ValueError("ARTICLE_TRANSLATOR_TELEMETRY_SINK must be a string.")
        normalized = value.strip().lower()
        if normalized in {"none", "log", "memory"}:
            return normalized
        raise ValueError("ARTICLE_TRANSLATOR_TELEMETRY_SINK must be set to: none, log, memory.")

    @field_validator("sarvam_base_url", mode="before")
    @classmethod
    def _normalize_sarvam_base_url(cls, value: Any) -> str:
        if not isinstance(value, str):
            raise ValueError("ARTICLE_TRANSLATOR_SARVAM_BASE_URL must be a string.")
        normalized = value.strip().rstrip("/")
        if not normalized:
            raise ValueError("ARTICLE_TRANSLATOR_SARVAM_BASE_URL must not be empty.")
        return normalized

    @field_validator(*_PATH_FIELDS, mode="before")
    @classmethod
    def _normalize_paths(cls, value: Any) -> Any:
        if value is None:
            return None
        return _resolve_path(value)

    @field_validator(*_BOOLEAN_COERCION_FIELDS, mode="before")
    @classmethod
    def _normalize_booleans(cls, value: Any, info: ValidationInfo) -> bool:
        field_name = info.field_name
        assert field_name is not None
        default_value = cls.model_fields[field_name].default
        assert isinstance(default_value, bool)
        return _parse_bool_with_default(value, default=default_value)

    @field_validator("sarvam_api_key", mode="before")
    @classmethod
    def _normalize_optional_strings(cls, value: Any) -> str | None:
        return _normalize_optional_text(value)


def _apply_path_defaults(settings: AppSettings) -> AppSettings:
    updates: dict[str, Path] = {}
    for field_name, relative_default in _DATA_DIR_RELATIVE_DEFAULTS:
        if field_name in settings.model_fields_set:
            continue
        updates[field_name] = settings.data_dir / relative_default
    if not updates:
        return settings
    return settings.model_copy(update=updates)


def _resolve_path_fields(settings: AppSettings) -> AppSettings:
    resolved_updates = {
        field_name: _resolve_path(getattr(settings, field_name)) for field_name in _PATH_FIELDS
    }
    return settings.model_copy(update=resolved_updates)


def load_settings() -> AppSettings:
    settings = AppSettings()
    settings = _apply_path_defaults(settings)
    return _resolve_path_fields(settings)
