from __future__ import annotations

from types import MappingProxyType

DEFAULT_CHUNK_BUDGET = 1000
STRONG_CANDIDATE_THRESHOLD = 100.0
FALLBACK_THRESHOLD = 50.0

CANDIDATE_SELECTORS: tuple[str, ...] = (
    "article",
    '[role="main"]',
    '[itemprop="articleBody"]',
    ".content",
    ".article-content",
    ".post-content",
    ".entry-content",
    ".article-body",
    ".post-body",
    ".story-body",
    "main .content",
    ".main-content",
    "#content",
)

FALLBACK_ROOT_SELECTORS: tuple[str, ...] = ("main", "body")

DISQUALIFYING_TAGS: tuple[str, ...] = (
    "script",
    "style",
    "noscript",
    "template",
    "iframe",
    "nav",
    "header",
    "footer",
    "aside",
    "form",
)

# Class selectors match whole class tokens so state flags such as
# `comments-open` or `has-related` on an article container never disqualify it.
DISQUALIFYING_SELECTORS: tuple[str, ...] = (
    # ads
    ".ad",
    ".ads",
    ".advert",
    ".advertisement",
    ".ad-slot",
    ".ad-banner",
    ".ad-container",
    '[id^="ad-"]',
    ".sponsored",
    ".sponsored-content",
    # social share
    ".social-share",
    ".share-buttons",
    ".sharing",
    ".share-bar",
    # comments
    "#comments",
    "#respond",
    ".comments",
    ".comment-list",
    ".comments-area",
    ".comments-section",
    ".comment-respond",
    ".comment-form",
    # related content
    ".related",
    ".related-posts",
    ".related-articles",
    ".related-content",
    ".related-stories",
    ".recommended",
    ".recommended-posts",
    # newsletter signup
    ".newsletter",
    ".newsletter-signup",
    ".newsletter-form",
    ".subscribe",
    ".subscribe-box",
    # cookie / GDPR banners
    ".cookie-banner",
    ".cookie-notice",
    ".cookie-consent",
    ".gdpr",
    ".gdpr-banner",
    ".consent-banner",
    # breadcrumbs
    ".breadcrumb",
    ".breadcrumbs",
    # author bio
    ".author-bio",
    ".about-author",
    # tag / metadata blocks
    ".tags",
    ".tag-list",
    ".tag-cloud",
    ".post-tags",
    ".entry-tags",
    ".tags-links",
    ".post-meta",
    ".entry-meta",
    ".article-meta",
    # popups
    ".popup",
    ".modal",
    # boilerplate landmarks
    '[role="navigation"]',
    '[role="banner"]',
    '[role="contentinfo"]',
    '[role="complementary"]',
    '[role="dialog"]',
)

PARAGRAPH_TAGS: frozenset[str] = frozenset({"p"})
HEADING_TAGS: frozenset[str] = frozenset({"h1", "h2", "h3", "h4", "h5", "h6"})
LIST_TAGS: frozenset[str] = frozenset({"ul", "ol", "li"})
LINK_TAGS: frozenset[str] = frozenset({"a"})

PARAGRAPH_WEIGHT = 5.0
HEADING_WEIGHT = 3.0
LIST_WEIGHT = 2.0
TEXT_LENGTH_DIVISOR = 10.0
TEXT_LENGTH_CAP = 100.0
LINK_RATIO_LIMIT = 2.0
LINK_RATIO_PENALTY = 10.0

CLASS_BONUS_KEYWORDS: tuple[str, ...] = ("article", "post", "content", "story", "body", "text")
CLASS_BONUS = 20.0
CLASS_PENALTY_KEYWORDS: tuple[str, ...] = ("nav", "menu", "sidebar", "header", "footer")
CLASS_PENALTY = 30.0

# Semantic containers that are confident article regions on their own.
LANDMARK_TAG_BONUSES: MappingProxyType[str, float] = MappingProxyType({"article": 100.0})
