from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from http.client import HTTPException
from typing import cast
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from backend.app.services.transform_orchestrator import TransformChunkFailed, TransformMode

LOGGER = logging.getLogger("article_translator.sarvam")

DEFAULT_SARVAM_BASE_URL = "https://api.sarvam.ai"
DEFAULT_SOURCE_LANGUAGE_CODE = "en-IN"
DEFAULT_TRANSLATE_MODEL = "sarvam-translate:v1"
TRANSLITERATE_SELECTION_PREFIX = "transliterate-"
LANGUAGE_CODE_PATTERN = re.compile(r"^[a-z]{2,3}(?:-[A-Z]{2})?$")
REGION_SUFFIX = "-IN"


class SarvamApiError(RuntimeError):
    def __init__(self, message: str, *, status_code: int | None, retryable: bool) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.retryable = retryable


@dataclass(frozen=True)
class LanguageSelection:
    mode: TransformMode
    target_language_code: str


def parse_language_selection(value: str) -> LanguageSelection:
    """
    Interpret a language picker value.

    `hi-IN` selects translation into Hindi; `transliterate-hi` selects
    transliteration into the Hindi script.
    """
    normalized = value.strip()
    if normalized.startswith(TRANSLITERATE_SELECTION_PREFIX):
        code = normalized[len(TRANSLITERATE_SELECTION_PREFIX) :]
        mode: TransformMode = "transliterate"
    else:
        code = normalized
        mode = "translate"
    if not LANGUAGE_CODE_PATTERN.fullmatch(code):
        raise ValueError(f"Unsupported language selection: {value!r}")
    return LanguageSelection(mode=mode, target_language_code=code)


def with_region(language_code: str) -> str:
    return language_code if "-" in language_code else f"{language_code}{REGION_SUFFIX}"


class SarvamClient:
    def __init__(
        self,
        *,
        api_key: str | None,
        base_url: str = DEFAULT_SARVAM_BASE_URL,
        http_timeout_seconds: float = 30.0,
        source_language_code: str = DEFAULT_SOURCE_LANGUAGE_CODE,
        translate_model: str = DEFAULT_TRANSLATE_MODEL,
        translate_register: str = "formal",
        speaker_gender: str = "Male",
        enable_preprocessing: bool = True,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._http_timeout_seconds = max(1.0, float(http_timeout_seconds))
        self._source_language_code = source_language_code
        self._translate_model = translate_model
        self._translate_register = translate_register
        self._speaker_gender = speaker_gender
        self._enable_preprocessing = enable_preprocessing

    @property
    def configured(self) -> bool:
        return self._api_key is not None

    def translate(self, text: str, target_language_code: str) -> str:
        payload = self._request_json(
            path="/translate",
            payload={
                "input": text,
                "source_language_code": self._source_language_code,
                "target_language_code": target_language_code,
                "speaker_gender": self._speaker_gender,
                "mode": self._translate_register,
                "model": self._translate_model,
                "enable_preprocessing": self._enable_preprocessing,
            },
        )
        return _to_optional_text(payload.get("translated_text")) or text

    def transliterate(self, text: str, target_language_code: str) -> str:
        payload = self._request_json(
            path="/transliterate",
            payload={
                "input": text,
                "source_language_code": self._source_language_code,
                "target_language_code": with_region(target_language_code),
            },
        )
        return _to_optional_text(payload.get("transliterated_text")) or text

    def _request_json(self, *, path: str, payload: dict[str, object]) -> dict[str, object]:
        if self._api_key is None:
            raise SarvamApiError(
                "Sarvam API key is not configured.",
                status_code=None,
                retryable=False,
            )
        request = Request(
            url=f"{self._base_url}{path}",
            data=json.dumps(payload, ensure_ascii=False).encode("utf-8"),
            headers={
                "Accept": "application/json",
                "Content-Type": "application/json",
                "API-Subscription-Key": self._api_key,
            },
            method="POST",
        )

        try:
            with urlopen(request, timeout=self._http_timeout_seconds) as response:
                raw_body = response.read().decode("utf-8", errors="replace")
        except HTTPError as exc:
            response_body = exc.read().decode("utf-8", errors="replace") if exc.fp else ""
            message = _extract_error_message(_decode_json_object(response_body)) or (
                f"HTTP {exc.code}"
            )
            LOGGER.warning("sarvam request failed path=%s status=%s", path, exc.code)
            raise SarvamApiError(
                message,
                status_code=exc.code,
                retryable=(exc.code >= 500 or exc.code in {408, 429}),
            ) from exc
        except URLError as exc:
            LOGGER.warning("sarvam request failed path=%s reason=%s", path, exc.reason)
            raise SarvamApiError(
                f"Sarvam request failed: {exc.reason}",
                status_code=None,
                retryable=True,
            ) from exc
        except TimeoutError as exc:
            raise SarvamApiError(
                "Sarvam request timed out.",
                status_code=None,
                retryable=True,
            ) from exc
        except (HTTPException, OSError) as exc:
            LOGGER.warning("sarvam connection failed path=%s error=%s", path, type(exc).__name__)
            raise SarvamApiError(
                f"Sarvam connection failed: {exc}",
                status_code=None,
                retryable=True,
            ) from exc

        return _decode_json_object(raw_body)


class SarvamChunkTransformer:
    """Adapts `SarvamClient` calls to the orchestrator's per-chunk failure contract."""

    def __init__(self, client: SarvamClient) -> None:
        self._client = client

    def translate(self, text: str, target_language_code: str) -> str:
        try:
            return self._client.translate(text, target_language_code)
        except SarvamApiError as exc:
            raise TransformChunkFailed(str(exc), retryable=exc.retryable) from exc

    def transliterate(self, text: str, target_language_code: str) -> str:
        try:
            return self._client.transliterate(text, target_language_code)
        except SarvamApiError as exc:
            raise TransformChunkFailed(str(exc), retryable=exc.retryable) from exc


def _decode_json_object(raw_body: str) -> dict[str, object]:
    if not raw_body.strip():
        return {}
    try:
        parsed = json.loads(raw_body)
    except json.JSONDecodeError:
        return {}
    if not isinstance(parsed, dict):
        return {}
    parsed_dict = cast(dict[object, object], parsed)
    return {key: value for key, value in parsed_dict.items() if isinstance(key, str)}


def _extract_error_message(payload: dict[str, object]) -> str | None:
    message = _to_optional_text(payload.get("message"))
    if message is not None:
        return message
    error = payload.get("error")
    if isinstance(error, dict):
        return _to_optional_text(cast(dict[str, object], error).get("message"))
    return _to_optional_text(error)


def _to_optional_text(value: object) -> str | None:
    if not isinstance(value, str):
        return None
    normalized = value.strip()
    if not normalized:
        return None
    return normalized
