from __future__ import annotations

from dataclasses import dataclass

from bs4 import BeautifulSoup, Tag

from backend.app.services.content_selector import HTML_PARSER


@dataclass(frozen=True)
class ArticleMetadata:
    title: str | None
    author: str | None
    site_name: str | None
    published_at: str | None
    canonical_url: str | None


def extract_article_metadata(document: str | Tag) -> ArticleMetadata:
    root = BeautifulSoup(document, HTML_PARSER) if isinstance(document, str) else document
    meta = _collect_meta(root)

    def meta_value(key: str) -> str | None:
        return meta.get(key)

    title_tag = root.find("title")
    title_text = _normalize_optional_text(title_tag.get_text()) if title_tag is not None else None
    heading = root.find("h1")
    heading_text = _normalize_optional_text(heading.get_text(" ")) if heading is not None else None

    canonical_url: str | None = None
    for link in root.find_all("link"):
        rel = link.get("rel") or []
        rel_values = [rel] if isinstance(rel, str) else list(rel)
        if any(str(value).lower() == "canonical" for value in rel_values):
            canonical_url = _normalize_optional_text(link.get("href"))
            break

    return ArticleMetadata(
        title=(
            meta_value("og:title")
            or meta_value("twitter:title")
            or meta_value("title")
            or title_text
            or heading_text
        ),
        author=(
            meta_value("article:author")
            or meta_value("author")
            or meta_value("parsely-author")
            or meta_value("dc.creator")
        ),
        site_name=(
            meta_value("og:site_name")
            or meta_value("application-name")
            or meta_value("publisher")
        ),
        published_at=(
            meta_value("article:published_time")
            or meta_value("og:published_time")
            or meta_value("publish_date")
            or meta_value("pubdate")
            or meta_value("date")
        ),
        canonical_url=canonical_url or meta_value("og:url"),
    )


def _collect_meta(root: Tag) -> dict[str, str]:
    collected: dict[str, str] = {}
    for tag in root.find_all("meta"):
        key = (
            tag.get("property")
            or tag.get("name")
            or tag.get("itemprop")
            or tag.get("http-equiv")
        )
        normalized_key = _normalize_optional_text(key)
        normalized_value = _normalize_optional_text(tag.get("content"))
        if normalized_key is None or normalized_value is None:
            continue
        lowered = normalized_key.lower()
        if lowered not in collected:
            collected[lowered] = normalized_value
    return collected


def _normalize_optional_text(value: object) -> str | None:
    if not isinstance(value, str):
        return None
    normalized = " ".join(value.split())
    if not normalized:
        return None
    return normalized
