from __future__ import annotations

import copy
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Literal

from bs4 import BeautifulSoup, Tag

from backend.app.services.element_scorer import ElementScorer
from backend.app.services.extraction_rules import (
    CANDIDATE_SELECTORS,
    DISQUALIFYING_SELECTORS,
    DISQUALIFYING_TAGS,
    FALLBACK_ROOT_SELECTORS,
    FALLBACK_THRESHOLD,
    STRONG_CANDIDATE_THRESHOLD,
)
from backend.app.services.structural_renderer import render_element

LOGGER = logging.getLogger("article_translator.extraction")

ExtractionMethod = Literal["candidate", "fallback", "flat"]
HTML_PARSER = "html.parser"

_PROTECTED_TAGS: frozenset[str] = frozenset({"html", "body", "[document]"})


@dataclass(frozen=True)
class ScoredCandidate:
    element: Tag
    score: float
    selector: str


@dataclass(frozen=True)
class ExtractedContent:
    text: str
    method: ExtractionMethod
    score: float | None
    selector: str | None

    @property
    def degraded(self) -> bool:
        return self.method == "flat"


class ContentSelector:
    def __init__(
        self,
        *,
        scorer: ElementScorer | None = None,
        candidate_selectors: Iterable[str] = CANDIDATE_SELECTORS,
        fallback_root_selectors: Iterable[str] = FALLBACK_ROOT_SELECTORS,
        disqualifying_tags: Iterable[str] = DISQUALIFYING_TAGS,
        disqualifying_selectors: Iterable[str] = DISQUALIFYING_SELECTORS,
        strong_threshold: float = STRONG_CANDIDATE_THRESHOLD,
        fallback_threshold: float = FALLBACK_THRESHOLD,
    ) -> None:
        self._scorer = scorer if scorer is not None else ElementScorer()
        self._candidate_selectors = tuple(candidate_selectors)
        self._fallback_root_selectors = tuple(fallback_root_selectors)
        self._disqualifying_tags = list(disqualifying_tags)
        self._disqualifying_selectors = tuple(disqualifying_selectors)
        self._strong_threshold = strong_threshold
        self._fallback_threshold = fallback_threshold

    def select(self, document: str | Tag) -> str:
        return self.extract(document).text

    def extract(self, document: str | Tag) -> ExtractedContent:
        root = self.clean(document)

        best = self.best_candidate(root)
        if best is not None and best.score > self._strong_threshold:
            LOGGER.debug(
                "article candidate selected selector=%s score=%.1f",
                best.selector,
                best.score,
            )
            return ExtractedContent(
                text=render_element(best.element),
                method="candidate",
                score=best.score,
                selector=best.selector,
            )

        fallback = self._fallback_candidate(root)
        if fallback is not None and fallback.score > self._fallback_threshold:
            LOGGER.debug(
                "article fallback root selected selector=%s score=%.1f",
                fallback.selector,
                fallback.score,
            )
            return ExtractedContent(
                text=render_element(fallback.element),
                method="fallback",
                score=fallback.score,
                selector=fallback.selector,
            )

        LOGGER.info(
            "article extraction degraded to flat text best_score=%s fallback_score=%s",
            None if best is None else round(best.score, 1),
            None if fallback is None else round(fallback.score, 1),
        )
        body = root.body if root.body is not None else root
        return ExtractedContent(
            text=normalize_whitespace(body.get_text(" ")),
            method="flat",
            score=None,
            selector=None,
        )

    def clean(self, document: str | Tag) -> Tag:
        """Return a private copy of `document` with boilerplate subtrees removed."""
        if isinstance(document, str):
            root: Tag = BeautifulSoup(document, HTML_PARSER)
        else:
            root = copy.copy(document)
        return self._remove_disqualified(root)

    def best_candidate(self, root: Tag) -> ScoredCandidate | None:
        best: ScoredCandidate | None = None
        for selector in self._candidate_selectors:
            for element in root.select(selector):
                score = self._scorer.score(element)
                if best is None or score > best.score:
                    best = ScoredCandidate(element=element, score=score, selector=selector)
        return best

    def _fallback_candidate(self, root: Tag) -> ScoredCandidate | None:
        for selector in self._fallback_root_selectors:
            match = root.select_one(selector)
            if match is None:
                continue
            cleaned = self._remove_disqualified(copy.copy(match))
            return ScoredCandidate(
                element=cleaned,
                score=self._scorer.score(cleaned),
                selector=selector,
            )
        if not root.find(True):
            return None
        return ScoredCandidate(element=root, score=self._scorer.score(root), selector=":root")

    def _remove_disqualified(self, root: Tag) -> Tag:
        doomed: list[Tag] = (
            list(root.find_all(self._disqualifying_tags)) if self._disqualifying_tags else []
        )
        for selector in self._disqualifying_selectors:
            doomed.extend(root.select(selector))
        for element in doomed:
            if element is root or element.decomposed or element.name in _PROTECTED_TAGS:
                continue
            element.decompose()
        return root


def normalize_whitespace(text: str) -> str:
    return " ".join(text.split())


_DEFAULT_SELECTOR = ContentSelector()


def select_article_text(document: str | Tag) -> str:
    return _DEFAULT_SELECTOR.select(document)
