from __future__ import annotations

from backend.app.services.transform_orchestrator import TransformChunkFailed

SCENARIO_HTML = "<nav>Home</nav><article><h1>Title</h1><p>Hello world.</p></article>"


class FakeTransformer:
    """Deterministic stand-in for the Sarvam client.

    Texts listed in `failing_texts` fail; in transliterate mode each of them
    fails only for its first `transliterate_failures` attempts.
    """

    def __init__(
        self,
        *,
        failing_texts: frozenset[str] = frozenset(),
        transliterate_failures: int = 1,
    ) -> None:
        self.failing_texts = failing_texts
        self.transliterate_failures = transliterate_failures
        self.calls: list[tuple[str, str, str]] = []
        self._transliterate_attempts: dict[str, int] = {}

    def translate(self, text: str, target_language_code: str) -> str:
        self.calls.append(("translate", text, target_language_code))
        if text in self.failing_texts:
            raise TransformChunkFailed("HTTP 500")
        return f"[{target_language_code}] {text}"

    def transliterate(self, text: str, target_language_code: str) -> str:
        self.calls.append(("transliterate", text, target_language_code))
        if text in self.failing_texts:
            attempts = self._transliterate_attempts.get(text, 0) + 1
            self._transliterate_attempts[text] = attempts
            if attempts <= self.transliterate_failures:
                raise TransformChunkFailed("HTTP 503")
        return text.upper()
