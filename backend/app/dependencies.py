from __future__ import annotations

from functools import lru_cache

from backend.app.config import AppSettings, load_settings
from backend.app.services.content_selector import ContentSelector
from backend.app.services.sarvam_client import SarvamChunkTransformer, SarvamClient
from backend.app.services.translation_pipeline_service import ArticleTranslationService
from backend.app.telemetry import TelemetryClient, build_telemetry_client


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    return load_settings()


@lru_cache(maxsize=1)
def get_telemetry() -> TelemetryClient:
    settings = get_settings()
    return build_telemetry_client(
        enabled=settings.telemetry_enabled,
        sink=settings.telemetry_sink,
    )


@lru_cache(maxsize=1)
def get_translation_service() -> ArticleTranslationService:
    return build_translation_service(get_settings(), telemetry=get_telemetry())


def build_translation_service(
    settings: AppSettings,
    *,
    telemetry: TelemetryClient | None = None,
) -> ArticleTranslationService:
    transformer: SarvamChunkTransformer | None = None
    if settings.sarvam_api_key is not None:
        transformer = SarvamChunkTransformer(
            SarvamClient(
                api_key=settings.sarvam_api_key,
                base_url=settings.sarvam_base_url,
                http_timeout_seconds=settings.sarvam_http_timeout_seconds,
                source_language_code=settings.source_language_code,
                translate_model=settings.translate_model,
                translate_register=settings.translate_register,
                speaker_gender=settings.speaker_gender,
                enable_preprocessing=settings.enable_preprocessing,
            )
        )
    return ArticleTranslationService(
        transformer=transformer,
        chunk_budget=settings.chunk_budget,
        content_selector=ContentSelector(
            strong_threshold=settings.strong_candidate_threshold,
            fallback_threshold=settings.fallback_threshold,
        ),
        telemetry=telemetry,
    )


def reset_cached_dependencies() -> None:
    get_translation_service.cache_clear()
    get_telemetry.cache_clear()
    get_settings.cache_clear()
