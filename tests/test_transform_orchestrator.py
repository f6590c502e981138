from __future__ import annotations

import threading

import pytest

from backend.app.services.chunk_splitter import split_into_chunks
from backend.app.services.transform_orchestrator import (
    TransformAborted,
    TransformCancelled,
    TransformChunkFailed,
    TransformOrchestrator,
    build_mode_policies,
)
from backend.app.telemetry import MemoryTelemetrySink, TelemetryClient
from tests.fakes import FakeTransformer

CHUNKS = ["alpha", "beta", "gamma"]


def _orchestrator(
    transformer: FakeTransformer,
    sink: MemoryTelemetrySink | None = None,
) -> TransformOrchestrator:
    telemetry = TelemetryClient(enabled=True, sink=sink) if sink is not None else None
    return TransformOrchestrator(
        policies=build_mode_policies(
            translate=transformer.translate,
            transliterate=transformer.transliterate,
        ),
        telemetry=telemetry,
    )


def test_translate_success_joins_with_paragraph_separator() -> None:
    document = _orchestrator(FakeTransformer()).transform(CHUNKS, "hi-IN", "translate")

    assert document.text == "[hi-IN] alpha\n\n[hi-IN] beta\n\n[hi-IN] gamma"
    assert [result.index for result in document.results] == [0, 1, 2]
    assert {result.status for result in document.results} == {"success"}


def test_translate_failure_aborts_without_a_document() -> None:
    transformer = FakeTransformer(failing_texts=frozenset({"beta"}))
    sink = MemoryTelemetrySink()

    with pytest.raises(TransformAborted) as exc_info:
        _orchestrator(transformer, sink).transform(CHUNKS, "hi-IN", "translate")

    assert exc_info.value.chunk_index == 1
    assert exc_info.value.reason == "HTTP 500"
    assert isinstance(exc_info.value.__cause__, TransformChunkFailed)
    # the third chunk is never sent
    assert [text for _, text, _ in transformer.calls] == ["alpha", "beta"]
    assert "transform.finish" not in sink.names()
    assert sink.names()[-1] == "transform.chunk.failed"


def test_transliterate_fallback_recovers_a_failed_chunk() -> None:
    transformer = FakeTransformer(failing_texts=frozenset({"beta"}), transliterate_failures=1)

    document = _orchestrator(transformer).transform(CHUNKS, "hi", "transliterate")

    assert document.text == "ALPHA BETA GAMMA"
    assert [result.status for result in document.results] == [
        "success",
        "fallback_used",
        "success",
    ]
    assert document.results[1].attempts == 2
    assert document.results[1].error == "HTTP 503"
    assert document.fallback_count == 1


def test_transliterate_passes_through_when_every_strategy_fails() -> None:
    transformer = FakeTransformer(failing_texts=frozenset({"beta"}), transliterate_failures=5)
    sink = MemoryTelemetrySink()

    document = _orchestrator(transformer, sink).transform(CHUNKS, "hi", "transliterate")

    assert document.text == "ALPHA beta GAMMA"
    assert document.results[1].status == "failed_passthrough"
    assert document.passthrough_count == 1
    assert "transform.chunk.passthrough" in sink.names()
    finish_name, finish_attributes = sink.events[-1]
    assert finish_name == "transform.finish"
    assert finish_attributes["passthrough_count"] == 1
    assert finish_attributes["chunk_count"] == 3


def test_separate_fallback_call_is_used_for_retries() -> None:
    transformer = FakeTransformer(failing_texts=frozenset({"beta"}), transliterate_failures=5)
    fallback_calls: list[str] = []

    def fallback(text: str, target_language_code: str) -> str:
        fallback_calls.append(text)
        return f"<{target_language_code}:{text}>"

    orchestrator = TransformOrchestrator(
        policies=build_mode_policies(
            translate=transformer.translate,
            transliterate=transformer.transliterate,
            transliterate_fallback=fallback,
        )
    )

    document = orchestrator.transform(CHUNKS, "ta", "transliterate")

    assert document.text == "ALPHA <ta:beta> GAMMA"
    assert fallback_calls == ["beta"]


def test_accepts_chunk_objects() -> None:
    chunks = split_into_chunks("One.\n\nTwo.", 4)

    document = _orchestrator(FakeTransformer()).transform(chunks, "bn-IN", "translate")

    assert document.text == "[bn-IN] One.\n\n[bn-IN] Two."


def test_empty_chunk_list_yields_empty_document() -> None:
    document = _orchestrator(FakeTransformer()).transform([], "hi-IN", "translate")

    assert document.text == ""
    assert document.results == ()


def test_cancellation_is_checked_between_chunks() -> None:
    cancel_event = threading.Event()
    transformer = FakeTransformer()

    def translate(text: str, target_language_code: str) -> str:
        cancel_event.set()
        return transformer.translate(text, target_language_code)

    orchestrator = TransformOrchestrator(
        policies=build_mode_policies(translate=translate, transliterate=transformer.transliterate)
    )

    with pytest.raises(TransformCancelled) as exc_info:
        orchestrator.transform(CHUNKS, "hi-IN", "translate", cancel_event=cancel_event)

    # the in-flight chunk completes before cancellation is honoured
    assert exc_info.value.completed_chunks == 1
    assert len(transformer.calls) == 1


def test_unknown_mode_is_rejected() -> None:
    with pytest.raises(ValueError):
        _orchestrator(FakeTransformer()).transform(CHUNKS, "hi-IN", "summarize")  # type: ignore[arg-type]


def test_telemetry_never_carries_chunk_text() -> None:
    sink = MemoryTelemetrySink()

    _orchestrator(FakeTransformer(), sink).transform(["secret words"], "hi-IN", "translate")

    for _, attributes in sink.events:
        assert "secret words" not in [str(value) for value in attributes.values()]
