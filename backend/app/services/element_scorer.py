from __future__ import annotations

from collections.abc import Iterable, Mapping

from bs4 import Tag

from backend.app.services.extraction_rules import (
    CLASS_BONUS,
    CLASS_BONUS_KEYWORDS,
    CLASS_PENALTY,
    CLASS_PENALTY_KEYWORDS,
    HEADING_TAGS,
    HEADING_WEIGHT,
    LANDMARK_TAG_BONUSES,
    LINK_RATIO_LIMIT,
    LINK_RATIO_PENALTY,
    LINK_TAGS,
    LIST_TAGS,
    LIST_WEIGHT,
    PARAGRAPH_TAGS,
    PARAGRAPH_WEIGHT,
    TEXT_LENGTH_CAP,
    TEXT_LENGTH_DIVISOR,
)


class ElementScorer:
    """
    Estimates how likely a subtree is to be the main article body.

    Scores are a pure function of the subtree: text volume, block structure,
    link density and class-name keywords. Negative scores are valid and simply
    rank low.
    """

    def __init__(
        self,
        *,
        bonus_keywords: Iterable[str] = CLASS_BONUS_KEYWORDS,
        penalty_keywords: Iterable[str] = CLASS_PENALTY_KEYWORDS,
        landmark_bonuses: Mapping[str, float] = LANDMARK_TAG_BONUSES,
        class_bonus: float = CLASS_BONUS,
        class_penalty: float = CLASS_PENALTY,
    ) -> None:
        self._bonus_keywords = tuple(keyword.lower() for keyword in bonus_keywords)
        self._penalty_keywords = tuple(keyword.lower() for keyword in penalty_keywords)
        self._landmark_bonuses = dict(landmark_bonuses)
        self._class_bonus = class_bonus
        self._class_penalty = class_penalty

    def score(self, element: Tag) -> float:
        text_length = len(element.get_text().strip())
        score = min(text_length / TEXT_LENGTH_DIVISOR, TEXT_LENGTH_CAP)

        paragraph_count = 0
        heading_count = 0
        list_count = 0
        link_count = 0
        for descendant in element.find_all(True):
            name = descendant.name
            if name in PARAGRAPH_TAGS:
                paragraph_count += 1
            elif name in HEADING_TAGS:
                heading_count += 1
            elif name in LIST_TAGS:
                list_count += 1
            elif name in LINK_TAGS:
                link_count += 1

        score += paragraph_count * PARAGRAPH_WEIGHT
        score += heading_count * HEADING_WEIGHT
        score += list_count * LIST_WEIGHT

        link_ratio = link_count / max(paragraph_count, 1)
        if link_ratio > LINK_RATIO_LIMIT:
            score -= link_ratio * LINK_RATIO_PENALTY

        class_text = class_attribute_text(element)
        for keyword in self._bonus_keywords:
            if keyword in class_text:
                score += self._class_bonus
        for keyword in self._penalty_keywords:
            if keyword in class_text:
                score -= self._class_penalty

        score += self._landmark_bonuses.get(element.name or "", 0.0)
        return score


def class_attribute_text(element: Tag) -> str:
    raw = element.get("class")
    if raw is None:
        return ""
    if isinstance(raw, str):
        return raw.lower()
    return " ".join(str(token) for token in raw).lower()


_DEFAULT_SCORER = ElementScorer()


def score_element(element: Tag) -> float:
    return _DEFAULT_SCORER.score(element)
