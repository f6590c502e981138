from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException
from structlog.contextvars import bind_contextvars, reset_contextvars

from backend.app.dependencies import get_translation_service
from backend.app.models.translation_contracts import (
    ArticleExtractRequest,
    ArticleExtractResponse,
    ArticleMetadataModel,
    ChunkModel,
    ChunkRequest,
    ChunkResponse,
    RenderRequest,
    RenderResponse,
    TransformResultModel,
    TranslateRequest,
    TranslateResponse,
)
from backend.app.services.display_renderer import to_display_markup
from backend.app.services.transform_orchestrator import TransformAborted
from backend.app.services.translation_pipeline_service import (
    ArticleTranslationService,
    TranslationUnavailableError,
)

router = APIRouter()

TranslationServiceDep = Annotated[ArticleTranslationService, Depends(get_translation_service)]


@router.post(
    "/articles/extract",
    response_model=ArticleExtractResponse,
    tags=["articles"],
    operation_id="articles_extract",
)
def extract_article(
    request: ArticleExtractRequest,
    service: TranslationServiceDep,
) -> ArticleExtractResponse:
    extraction = service.extract_article(html=request.html, text=request.text)
    metadata = extraction.metadata
    return ArticleExtractResponse(
        text=extraction.text,
        extraction_method=extraction.method if extraction.method is not None else "pasted",
        title=extraction.title,
        metadata=(
            ArticleMetadataModel(
                title=metadata.title,
                author=metadata.author,
                site_name=metadata.site_name,
                published_at=metadata.published_at,
                canonical_url=metadata.canonical_url,
            )
            if metadata is not None
            else None
        ),
        display_html=extraction.display_html,
    )


@router.post(
    "/articles/chunks",
    response_model=ChunkResponse,
    tags=["articles"],
    operation_id="articles_chunks",
)
def chunk_article(
    request: ChunkRequest,
    service: TranslationServiceDep,
) -> ChunkResponse:
    chunks = service.chunk(request.text, budget=request.budget)
    return ChunkResponse(
        count=len(chunks),
        chunks=[
            ChunkModel(
                index=chunk.index,
                first_paragraph=chunk.first_paragraph,
                last_paragraph=chunk.last_paragraph,
                text=chunk.text,
                oversized=chunk.oversized,
            )
            for chunk in chunks
        ],
    )


@router.post(
    "/articles/translate",
    response_model=TranslateResponse,
    tags=["articles"],
    operation_id="articles_translate",
)
def translate_article(
    request: TranslateRequest,
    service: TranslationServiceDep,
) -> TranslateResponse:
    context_tokens = bind_contextvars(translate_language=request.language)
    try:
        outcome = service.translate(request.text, request.language, budget=request.budget)
    except TranslationUnavailableError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    except TransformAborted as exc:
        raise HTTPException(
            status_code=502,
            detail={
                "message": "Translation failed.",
                "chunk_index": exc.chunk_index,
                "reason": exc.reason,
            },
        ) from exc
    finally:
        reset_contextvars(**context_tokens)

    document = outcome.final_document
    return TranslateResponse(
        mode=document.mode,
        target_language_code=document.target_language_code,
        text=document.text,
        display_html=outcome.display_html,
        chunk_count=outcome.chunk_count,
        results=[
            TransformResultModel(
                index=result.index,
                status=result.status,
                attempts=result.attempts,
                error=result.error,
            )
            for result in document.results
        ],
    )


@router.post(
    "/articles/render",
    response_model=RenderResponse,
    tags=["articles"],
    operation_id="articles_render",
)
def render_article(request: RenderRequest) -> RenderResponse:
    return RenderResponse(display_html=to_display_markup(request.text))
