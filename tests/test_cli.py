from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path

import pytest
import yaml
from atr.cli import main
from atr.commands import translation as translation_commands
from atr.config import Config
from click.testing import CliRunner

from backend.app.services.translation_pipeline_service import ArticleTranslationService
from tests.fakes import SCENARIO_HTML, FakeTransformer


@pytest.fixture(autouse=True)
def _isolated_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[Path]:  # pyright: ignore[reportUnusedFunction]
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.delenv("ARTICLE_TRANSLATOR_SARVAM_API_KEY", raising=False)
    yield home
    logger = logging.getLogger("article_translator")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.propagate = True


def _write(tmp_path: Path, name: str, content: str) -> str:
    path = tmp_path / name
    path.write_text(content, encoding="utf-8")
    return str(path)


def _use_transformer(monkeypatch: pytest.MonkeyPatch, transformer: FakeTransformer | None) -> None:
    def build_service(config: Config) -> ArticleTranslationService:
        return ArticleTranslationService(transformer=transformer, chunk_budget=config.chunk_budget)

    monkeypatch.setattr(translation_commands, "build_service", build_service)


def test_extract_prints_structured_text(tmp_path: Path) -> None:
    result = CliRunner().invoke(main, ["extract", _write(tmp_path, "page.html", SCENARIO_HTML)])

    assert result.exit_code == 0
    assert "Title\n\nHello world." in result.output


def test_extract_can_print_display_html(tmp_path: Path) -> None:
    source = _write(tmp_path, "page.html", SCENARIO_HTML)

    result = CliRunner().invoke(main, ["extract", source, "--html"])

    assert result.exit_code == 0
    assert "<h2>Title</h2>\n<p>Hello world.</p>" in result.output


def test_extract_pasted_text_from_stdin() -> None:
    result = CliRunner().invoke(main, ["extract", "-", "--text"], input="Some   pasted\ttext.")

    assert result.exit_code == 0
    assert "Some pasted text." in result.output


def test_chunk_shows_a_table(tmp_path: Path) -> None:
    source = _write(tmp_path, "article.txt", "aaaa\n\nbbbb\n\ncccc")

    result = CliRunner().invoke(main, ["chunk", source, "--budget", "10"])

    assert result.exit_code == 0
    assert "2 chunk(s)" in result.output


def test_render_escapes_markup(tmp_path: Path) -> None:
    source = _write(tmp_path, "article.txt", "**Bold** <b>raw</b>")

    result = CliRunner().invoke(main, ["render", source])

    assert result.exit_code == 0
    assert "<p><strong>Bold</strong> &lt;b&gt;raw&lt;/b&gt;</p>" in result.output


def test_translate_uses_language_option(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _use_transformer(monkeypatch, FakeTransformer())
    source = _write(tmp_path, "article.txt", "First para.\n\nSecond para.")

    result = CliRunner().invoke(main, ["translate", source, "--language", "ta-IN", "--budget", "15"])

    assert result.exit_code == 0
    assert "[ta-IN] First para.\n\n[ta-IN] Second para." in result.output


def test_translate_reports_passthrough(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _use_transformer(
        monkeypatch,
        FakeTransformer(failing_texts=frozenset({"Second para."}), transliterate_failures=5),
    )
    source = _write(tmp_path, "article.txt", "First para.\n\nSecond para.")

    result = CliRunner().invoke(
        main,
        ["translate", source, "-l", "transliterate-hi", "-b", "15"],
    )

    assert result.exit_code == 0
    assert "FIRST PARA. Second para." in result.output
    assert "1 chunk(s) left untransformed" in result.output


def test_translate_failure_exits_non_zero(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _use_transformer(monkeypatch, FakeTransformer(failing_texts=frozenset({"Second para."})))
    source = _write(tmp_path, "article.txt", "First para.\n\nSecond para.")

    result = CliRunner().invoke(main, ["translate", source, "-l", "hi-IN", "-b", "15"])

    assert result.exit_code == 1
    assert "Translation failed" in result.output
    assert "[hi-IN]" not in result.output


def test_translate_without_api_key_exits_non_zero(tmp_path: Path) -> None:
    source = _write(tmp_path, "article.txt", "Hello.")

    result = CliRunner().invoke(main, ["translate", source])

    assert result.exit_code == 1
    assert "No Sarvam API key configured" in result.output


def test_translate_rejects_malformed_language(tmp_path: Path) -> None:
    source = _write(tmp_path, "article.txt", "Hello.")

    result = CliRunner().invoke(main, ["translate", source, "--language", "Hindi"])

    assert result.exit_code == 2


def test_configure_persists_defaults(_isolated_home: Path) -> None:
    result = CliRunner().invoke(
        main,
        ["configure", "--language", "transliterate-ta", "--budget", "600", "--api-key", "k-1"],
    )

    assert result.exit_code == 0
    config_file = _isolated_home / ".config" / "article-translator" / "config.yaml"
    assert yaml.safe_load(config_file.read_text(encoding="utf-8")) == {
        "default_language": "transliterate-ta",
        "chunk_budget": 600,
        "sarvam_api_key": "k-1",
    }
    loaded = Config.load()
    assert loaded.default_language == "transliterate-ta"
    assert loaded.chunk_budget == 600


def test_environment_api_key_overrides_config_file(
    _isolated_home: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    config_file = _isolated_home / ".config" / "article-translator" / "config.yaml"
    config_file.parent.mkdir(parents=True)
    config_file.write_text("sarvam_api_key: from-file\n", encoding="utf-8")
    monkeypatch.setenv("ARTICLE_TRANSLATOR_SARVAM_API_KEY", "from-env")

    assert Config.load().sarvam_api_key == "from-env"
