from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Protocol

from backend.app.services.article_metadata import ArticleMetadata, extract_article_metadata
from backend.app.services.chunk_splitter import (
    PARAGRAPH_SEPARATOR,
    Chunk,
    split_into_chunks,
)
from backend.app.services.content_selector import (
    ContentSelector,
    ExtractionMethod,
    normalize_whitespace,
)
from backend.app.services.display_renderer import to_display_markup
from backend.app.services.extraction_rules import DEFAULT_CHUNK_BUDGET
from backend.app.services.sarvam_client import parse_language_selection
from backend.app.services.transform_orchestrator import (
    FinalDocument,
    TransformAborted,
    TransformOrchestrator,
    build_mode_policies,
)
from backend.app.telemetry import TelemetryClient

LOGGER = logging.getLogger("article_translator.pipeline")


class ChunkTransformer(Protocol):
    def translate(self, text: str, target_language_code: str) -> str:
        ...

    def transliterate(self, text: str, target_language_code: str) -> str:
        ...


class TranslationUnavailableError(RuntimeError):
    pass


@dataclass(frozen=True)
class ArticleExtraction:
    text: str
    method: ExtractionMethod | None
    title: str | None
    metadata: ArticleMetadata | None
    display_html: str


@dataclass(frozen=True)
class TranslationOutcome:
    final_document: FinalDocument
    display_html: str
    chunk_count: int


class ArticleTranslationService:
    def __init__(
        self,
        *,
        transformer: ChunkTransformer | None,
        chunk_budget: int = DEFAULT_CHUNK_BUDGET,
        content_selector: ContentSelector | None = None,
        telemetry: TelemetryClient | None = None,
    ) -> None:
        if chunk_budget <= 0:
            raise ValueError("chunk_budget must be positive.")
        self._transformer = transformer
        self._chunk_budget = chunk_budget
        self._content_selector = (
            content_selector if content_selector is not None else ContentSelector()
        )
        self._telemetry = telemetry if telemetry is not None else TelemetryClient.disabled()
        self._orchestrator: TransformOrchestrator | None = None
        if transformer is not None:
            self._orchestrator = TransformOrchestrator(
                policies=build_mode_policies(
                    translate=transformer.translate,
                    transliterate=transformer.transliterate,
                ),
                telemetry=self._telemetry,
            )

    @property
    def chunk_budget(self) -> int:
        return self._chunk_budget

    @property
    def translation_available(self) -> bool:
        return self._orchestrator is not None

    def extract_article(
        self,
        *,
        html: str | None = None,
        text: str | None = None,
    ) -> ArticleExtraction:
        if (html is None) == (text is None):
            raise ValueError("Provide exactly one of html or text.")

        if text is not None:
            cleaned = clean_pasted_text(text)
            self._telemetry.emit(
                "article.extract.finish",
                source="text",
                method=None,
                char_count=len(cleaned),
            )
            return ArticleExtraction(
                text=cleaned,
                method=None,
                title=None,
                metadata=None,
                display_html=to_display_markup(cleaned),
            )

        assert html is not None
        stopwatch = self._telemetry.timer()
        extracted = self._content_selector.extract(html)
        metadata = extract_article_metadata(html)
        if extracted.degraded:
            LOGGER.info("article extraction returned flat text title=%s", metadata.title)
        self._telemetry.emit(
            "article.extract.finish",
            source="html",
            method=extracted.method,
            score=extracted.score,
            selector=extracted.selector,
            char_count=len(extracted.text),
            duration_ms=stopwatch.elapsed_ms(),
        )
        return ArticleExtraction(
            text=extracted.text,
            method=extracted.method,
            title=metadata.title,
            metadata=metadata,
            display_html=to_display_markup(extracted.text),
        )

    def chunk(self, text: str, *, budget: int | None = None) -> list[Chunk]:
        return split_into_chunks(text, budget if budget is not None else self._chunk_budget)

    def translate(
        self,
        text: str,
        language: str,
        *,
        budget: int | None = None,
        cancel_event: threading.Event | None = None,
    ) -> TranslationOutcome:
        """
        Translate or transliterate `text` according to a language selection.

        Raises `TransformAborted` when a translate-mode chunk fails; no partial
        document is returned in that case.
        """
        if self._orchestrator is None:
            raise TranslationUnavailableError("Sarvam API key is not configured.")
        selection = parse_language_selection(language)
        chunks = self.chunk(text, budget=budget)
        stopwatch = self._telemetry.timer()
        try:
            document = self._orchestrator.transform(
                chunks,
                selection.target_language_code,
                selection.mode,
                cancel_event=cancel_event,
            )
        except TransformAborted as exc:
            LOGGER.warning(
                "article translation aborted mode=%s chunk_index=%s reason=%s",
                exc.mode,
                exc.chunk_index,
                exc.reason,
            )
            self._telemetry.emit(
                "article.translate.finish",
                outcome="aborted",
                mode=selection.mode,
                target_language_code=selection.target_language_code,
                chunk_count=len(chunks),
                duration_ms=stopwatch.elapsed_ms(),
            )
            raise

        self._telemetry.emit(
            "article.translate.finish",
            outcome="ok",
            mode=selection.mode,
            target_language_code=selection.target_language_code,
            chunk_count=len(chunks),
            passthrough_count=document.passthrough_count,
            duration_ms=stopwatch.elapsed_ms(),
        )
        return TranslationOutcome(
            final_document=document,
            display_html=to_display_markup(document.text),
            chunk_count=len(chunks),
        )


def clean_pasted_text(text: str) -> str:
    paragraphs = (
        normalize_whitespace(paragraph)
        for paragraph in text.replace("\r\n", "\n").split(PARAGRAPH_SEPARATOR)
    )
    return PARAGRAPH_SEPARATOR.join(paragraph for paragraph in paragraphs if paragraph)
