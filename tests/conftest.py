from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from backend.app.dependencies import get_translation_service, reset_cached_dependencies
from backend.app.main import create_app
from backend.app.services.translation_pipeline_service import ArticleTranslationService
from tests.fakes import FakeTransformer


@pytest.fixture
def fake_transformer() -> FakeTransformer:
    return FakeTransformer()


@pytest.fixture
def runtime_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    data_dir = tmp_path / "runtime-data"
    data_dir.mkdir(parents=True, exist_ok=True)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("ARTICLE_TRANSLATOR_DATA_DIR", str(data_dir))
    monkeypatch.setenv("ARTICLE_TRANSLATOR_TELEMETRY_SINK", "none")
    monkeypatch.delenv("ARTICLE_TRANSLATOR_SARVAM_API_KEY", raising=False)
    reset_cached_dependencies()
    return data_dir


def _client_with_service(service: ArticleTranslationService) -> Iterator[TestClient]:
    app = create_app()
    app.dependency_overrides[get_translation_service] = lambda: service
    with TestClient(app) as test_client:
        yield test_client
    reset_cached_dependencies()


@pytest.fixture
def client(runtime_env: Path, fake_transformer: FakeTransformer) -> Iterator[TestClient]:
    _ = runtime_env
    yield from _client_with_service(ArticleTranslationService(transformer=fake_transformer))


@pytest.fixture
def unconfigured_client(runtime_env: Path) -> Iterator[TestClient]:
    _ = runtime_env
    yield from _client_with_service(ArticleTranslationService(transformer=None))
