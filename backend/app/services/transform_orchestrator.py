from __future__ import annotations

import logging
import threading
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Literal, Protocol

from backend.app.services.chunk_splitter import Chunk
from backend.app.telemetry import TelemetryClient

LOGGER = logging.getLogger("article_translator.transform")

TransformMode = Literal["translate", "transliterate"]
TransformStatus = Literal["success", "fallback_used", "failed_passthrough"]

TRANSFORM_MODES: tuple[TransformMode, ...] = ("translate", "transliterate")
TRANSLATE_JOINER = "\n\n"
TRANSLITERATE_JOINER = " "


class TransformChunkFailed(Exception):
    def __init__(self, reason: str, *, retryable: bool = False) -> None:
        super().__init__(reason)
        self.reason = reason
        self.retryable = retryable


class TransformAborted(RuntimeError):
    def __init__(self, *, mode: TransformMode, chunk_index: int, reason: str) -> None:
        super().__init__(f"{mode} failed on chunk {chunk_index}: {reason}")
        self.mode = mode
        self.chunk_index = chunk_index
        self.reason = reason


class TransformCancelled(RuntimeError):
    def __init__(self, *, completed_chunks: int) -> None:
        super().__init__(f"transform cancelled after {completed_chunks} chunk(s)")
        self.completed_chunks = completed_chunks


class ChunkTransformCall(Protocol):
    def __call__(self, text: str, target_language_code: str) -> str:
        ...


@dataclass(frozen=True)
class CallStrategy:
    name: str
    call: ChunkTransformCall


@dataclass(frozen=True)
class ModePolicy:
    strategies: tuple[CallStrategy, ...]
    joiner: str
    allow_passthrough: bool


@dataclass(frozen=True)
class TransformResult:
    index: int
    output: str
    status: TransformStatus
    attempts: int
    error: str | None = None


@dataclass(frozen=True)
class FinalDocument:
    text: str
    mode: TransformMode
    target_language_code: str
    results: tuple[TransformResult, ...]

    @property
    def fallback_count(self) -> int:
        return sum(1 for result in self.results if result.status == "fallback_used")

    @property
    def passthrough_count(self) -> int:
        return sum(1 for result in self.results if result.status == "failed_passthrough")


def build_mode_policies(
    *,
    translate: ChunkTransformCall,
    transliterate: ChunkTransformCall,
    transliterate_fallback: ChunkTransformCall | None = None,
) -> dict[TransformMode, ModePolicy]:
    transliterate_strategies = (
        CallStrategy(name="transliterate", call=transliterate),
        CallStrategy(
            name="transliterate_retry",
            call=transliterate_fallback if transliterate_fallback is not None else transliterate,
        ),
    )
    return {
        "translate": ModePolicy(
            strategies=(CallStrategy(name="translate", call=translate),),
            joiner=TRANSLATE_JOINER,
            allow_passthrough=False,
        ),
        "transliterate": ModePolicy(
            strategies=transliterate_strategies,
            joiner=TRANSLITERATE_JOINER,
            allow_passthrough=True,
        ),
    }


class TransformOrchestrator:
    """
    Runs the remote transform over chunks strictly in order.

    Each mode has an ordered list of capability-equivalent call strategies.
    A chunk succeeds with the first strategy that returns; when every
    strategy fails the chunk is either passed through unchanged or the whole
    operation is aborted, depending on the mode policy.
    """

    def __init__(
        self,
        *,
        policies: Mapping[TransformMode, ModePolicy],
        telemetry: TelemetryClient | None = None,
    ) -> None:
        self._policies = dict(policies)
        self._telemetry = telemetry if telemetry is not None else TelemetryClient.disabled()

    def transform(
        self,
        chunks: Sequence[Chunk | str],
        target_language_code: str,
        mode: TransformMode,
        *,
        cancel_event: threading.Event | None = None,
    ) -> FinalDocument:
        policy = self._policies.get(mode)
        if policy is None:
            raise ValueError(f"Unsupported transform mode: {mode}")

        stopwatch = self._telemetry.timer()
        results: list[TransformResult] = []
        for index, chunk in enumerate(chunks):
            if cancel_event is not None and cancel_event.is_set():
                LOGGER.info("transform cancelled mode=%s completed_chunks=%s", mode, len(results))
                raise TransformCancelled(completed_chunks=len(results))
            text = chunk.text if isinstance(chunk, Chunk) else chunk
            results.append(
                self._transform_chunk(
                    index=index,
                    text=text,
                    target_language_code=target_language_code,
                    mode=mode,
                    policy=policy,
                )
            )

        document = FinalDocument(
            text=policy.joiner.join(result.output for result in results),
            mode=mode,
            target_language_code=target_language_code,
            results=tuple(results),
        )
        self._telemetry.emit(
            "transform.finish",
            mode=mode,
            target_language_code=target_language_code,
            chunk_count=len(results),
            fallback_count=document.fallback_count,
            passthrough_count=document.passthrough_count,
            duration_ms=stopwatch.elapsed_ms(),
        )
        return document

    def _transform_chunk(
        self,
        *,
        index: int,
        text: str,
        target_language_code: str,
        mode: TransformMode,
        policy: ModePolicy,
    ) -> TransformResult:
        last_error: TransformChunkFailed | None = None
        for attempt, strategy in enumerate(policy.strategies, start=1):
            try:
                output = strategy.call(text, target_language_code)
            except TransformChunkFailed as exc:
                last_error = exc
                LOGGER.warning(
                    "chunk transform failed mode=%s chunk_index=%s strategy=%s reason=%s",
                    mode,
                    index,
                    strategy.name,
                    exc.reason,
                )
                continue

            status: TransformStatus = "success" if attempt == 1 else "fallback_used"
            self._telemetry.emit(
                "transform.chunk.success" if attempt == 1 else "transform.chunk.fallback",
                mode=mode,
                chunk_index=index,
                strategy=strategy.name,
                attempts=attempt,
            )
            return TransformResult(
                index=index,
                output=output,
                status=status,
                attempts=attempt,
                error=None if last_error is None else last_error.reason,
            )

        reason = last_error.reason if last_error is not None else "no transform strategy configured"
        if policy.allow_passthrough:
            self._telemetry.emit(
                "transform.chunk.passthrough",
                mode=mode,
                chunk_index=index,
                attempts=len(policy.strategies),
            )
            return TransformResult(
                index=index,
                output=text,
                status="failed_passthrough",
                attempts=len(policy.strategies),
                error=reason,
            )

        self._telemetry.emit(
            "transform.chunk.failed",
            mode=mode,
            chunk_index=index,
            attempts=len(policy.strategies),
        )
        raise TransformAborted(mode=mode, chunk_index=index, reason=reason) from last_error
