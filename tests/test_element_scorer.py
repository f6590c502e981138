from __future__ import annotations

import pytest
from bs4 import BeautifulSoup, Tag

from backend.app.services.element_scorer import ElementScorer, class_attribute_text, score_element


def _first(html: str, selector: str) -> Tag:
    element = BeautifulSoup(html, "html.parser").select_one(selector)
    assert element is not None
    return element


def test_score_combines_text_blocks_and_class_keywords() -> None:
    element = _first('<div class="post-content"><p>xxxxxxxxxx</p></div>', "div")

    # 10 chars -> 1.0, one paragraph -> 5, "post" and "content" -> 20 each
    assert score_element(element) == pytest.approx(46.0)


def test_text_length_contribution_is_capped() -> None:
    element = _first(f"<div>{'a' * 5000}</div>", "div")

    assert score_element(element) == pytest.approx(100.0)


def test_headings_and_list_items_add_weight() -> None:
    element = _first("<section><h2></h2><h3></h3><ul><li></li><li></li></ul></section>", "section")

    # two headings at 3, one list and two items at 2
    assert score_element(element) == pytest.approx(12.0)


def test_link_dense_elements_are_penalized() -> None:
    element = _first("<div><p>a</p><a>1</a><a>2</a><a>3</a></div>", "div")

    # 0.4 text + 5 paragraph - (3 links / 1 paragraph) * 10
    assert score_element(element) == pytest.approx(-24.6)


def test_penalty_keywords_stack_and_scores_may_go_negative() -> None:
    element = _first('<div class="sidebar nav-menu"></div>', "div")

    assert score_element(element) == pytest.approx(-90.0)


def test_article_landmark_bonus_applies_to_tag_name() -> None:
    element = _first("<article></article>", "article")

    assert score_element(element) == pytest.approx(100.0)
    assert ElementScorer(landmark_bonuses={}).score(element) == pytest.approx(0.0)


def test_scoring_is_pure() -> None:
    element = _first(
        '<div class="story"><h1>Heading</h1><p>Body text.</p><a href="#">x</a></div>',
        "div",
    )
    before = str(element)

    first = score_element(element)
    second = score_element(element)

    assert first == second
    assert str(element) == before


def test_custom_keyword_tables_are_respected() -> None:
    element = _first('<div class="recipe"></div>', "div")
    scorer = ElementScorer(bonus_keywords=("recipe",), penalty_keywords=(), class_bonus=7.0)

    assert scorer.score(element) == pytest.approx(7.0)


def test_class_attribute_text_lowercases_tokens() -> None:
    element = _first('<div class="Main STORY"></div>', "div")

    assert class_attribute_text(element) == "main story"
    assert class_attribute_text(_first("<div></div>", "div")) == ""
