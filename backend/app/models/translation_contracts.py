from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from backend.app.services.sarvam_client import parse_language_selection

ExtractionMethodName = Literal["candidate", "fallback", "flat", "pasted"]
TransformModeName = Literal["translate", "transliterate"]
TransformStatusName = Literal["success", "fallback_used", "failed_passthrough"]

MAX_HTML_CHARS = 5_000_000
MAX_TEXT_CHARS = 500_000


def _normalize_optional_text(value: object) -> str | None:
    if not isinstance(value, str):
        return None
    if not value.strip():
        return None
    return value


class ArticleExtractRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    html: str | None = Field(default=None, max_length=MAX_HTML_CHARS)
    text: str | None = Field(default=None, max_length=MAX_TEXT_CHARS)

    @field_validator("html", "text", mode="before")
    @classmethod
    def _blank_as_missing(cls, value: object) -> str | None:
        return _normalize_optional_text(value)

    @model_validator(mode="after")
    def _exactly_one_source(self) -> ArticleExtractRequest:
        if (self.html is None) == (self.text is None):
            raise ValueError("provide exactly one of html or text")
        return self


class ArticleMetadataModel(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: str | None = None
    author: str | None = None
    site_name: str | None = None
    published_at: str | None = None
    canonical_url: str | None = None


class ArticleExtractResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")

    text: str
    extraction_method: ExtractionMethodName
    title: str | None = None
    metadata: ArticleMetadataModel | None = None
    display_html: str


class ChunkRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    text: str = Field(max_length=MAX_TEXT_CHARS)
    budget: int | None = Field(default=None, gt=0)


class ChunkModel(BaseModel):
    model_config = ConfigDict(extra="forbid")

    index: int
    first_paragraph: int
    last_paragraph: int
    text: str
    oversized: bool


class ChunkResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")

    count: int
    chunks: list[ChunkModel]


class TranslateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    text: str = Field(min_length=1, max_length=MAX_TEXT_CHARS)
    language: str = Field(min_length=2, max_length=40)
    budget: int | None = Field(default=None, gt=0)

    @field_validator("language")
    @classmethod
    def _validate_language(cls, value: str) -> str:
        normalized = value.strip()
        parse_language_selection(normalized)
        return normalized


class TransformResultModel(BaseModel):
    model_config = ConfigDict(extra="forbid")

    index: int
    status: TransformStatusName
    attempts: int
    error: str | None = None


class TranslateResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")

    mode: TransformModeName
    target_language_code: str
    text: str
    display_html: str
    chunk_count: int
    results: list[TransformResultModel]


class RenderRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    text: str = Field(max_length=MAX_TEXT_CHARS)


class RenderResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")

    display_html: str
