"""Keyword-based page categorization and signal extraction.

Used when LLM enrichment is disabled or fails, and always for page signals.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field

from bs4 import BeautifulSoup

from src.models.content_page import PageSignals

# --- Category keyword dictionaries ---

CONTENT_CATEGORIES: dict[str, list[str]] = {
    "HCP: Speak to Dr": [
        "speak to doctor",
        "consult physician",
        "medical advice",
        "healthcare provider",
        "hcp",
        "discuss with doctor",
    ],
    "Contact HCP": [
        "find doctor",
        "locate physician",
        "hcp locator",
        "doctor near me",
        "specialist finder",
        "clinic locations",
    ],
    "CVD": [
        "cardiovascular",
        "heart disease",
        "blood pressure",
        "cholesterol",
        "stroke",
        "heart health",
        "cardiac",
    ],
    "What is Obesity": [
        "obesity definition",
        "overweight",
        "adiposity",
        "chronic disease",
        "obesity causes",
        "weight classifications",
    ],
    "BMI": [
        "bmi",
        "body mass index",
        "bmi calculator",
        "weight calculator",
        "bmi chart",
        "bmi result",
        "calculate bmi",
        "imc",
        "indice de masse",
    ],
    "Menopause": [
        "menopause",
        "hormonal changes",
        "women health",
        "perimenopause",
        "post-menopausal",
        "hormones",
    ],
    "Joint Pain": [
        "joint pain",
        "arthritis",
        "knee pain",
        "mobility",
        "orthopedic",
        "back pain",
        "inflammation",
    ],
    "Success Stories": [
        "patient story",
        "success story",
        "testimonial",
        "journey",
        "transformation",
        "real people",
        "case study",
    ],
    "Diet & Exercise": [
        "diet",
        "nutrition",
        "exercise",
        "physical activity",
        "lifestyle",
        "healthy eating",
        "workout",
        "meal plan",
    ],
    "Treating Obesity": [
        "treatment",
        "medication",
        "wegovy",
        "mounjaro",
        "ozempic",
        "surgery",
        "bariatric",
        "therapy",
        "intervention",
    ],
    "General Information": [
        "information",
        "resources",
        "support",
        "faq",
        "help",
        "about",
    ],
}

DEFAULT_CATEGORY = "General Information"

CONTENT_TYPES: dict[str, str] = {
    "article": "Long-form educational content",
    "tool": "Interactive tools like calculators",
    "video": "Video content",
    "infographic": "Visual information graphics",
    "homepage": "Main landing pages",
    "navigation": "Navigation and utility pages",
    "form": "Contact or registration forms",
    "news": "News and updates",
    "research": "Scientific studies and research",
    "faq": "Frequently asked questions",
}

# Checked in order; first match wins
CONTENT_TYPE_URL_PATTERNS: list[tuple[str, tuple[str, ...]]] = [
    ("article", ("/article", "/blog", "/news")),
    ("tool", ("/calculator", "/tool")),
    ("video", ("/video",)),
    ("faq", ("/faq", "/questions")),
    ("research", ("/research", "/study")),
    ("form", ("/contact", "/form")),
]

MEDICATION_NAMES: list[str] = ["wegovy", "mounjaro", "ozempic", "saxenda", "zepbound"]

VIDEO_HOSTS: tuple[str, ...] = ("youtube.com", "youtube-nocookie.com", "vimeo.com", "wistia")

ARTICLE_WORD_COUNT = 500
WORDS_PER_MINUTE = 200


@dataclass
class CategorizationResult:
    """Result of keyword categorization."""

    category: str
    content_type: str
    confidence: float
    keywords: list[str] = field(default_factory=list)
    signals: PageSignals = field(default_factory=PageSignals)


def _override_category(text: str, url: str) -> str | None:
    """Strong single-phrase signals that beat keyword counting."""
    url_lower = url.lower()
    if (
        "bmi calculator" in text
        or "body mass index" in text
        or "calculate bmi" in text
        or "/bmi" in url_lower
        or "imc" in url_lower
    ):
        return "BMI"
    if "find a doctor" in text or "locate physician" in text:
        return "Contact HCP"
    if "speak to your doctor" in text or "consult your physician" in text:
        return "HCP: Speak to Dr"
    return None


def detect_content_type(url: str, content: str) -> str:
    """Detect content type from URL patterns, falling back to length."""
    url_lower = url.lower()
    content_lower = content.lower()

    for content_type, patterns in CONTENT_TYPE_URL_PATTERNS:
        if any(pattern in url_lower for pattern in patterns):
            return content_type

    if "video" in content_lower or "watch" in content_lower:
        return "video"
    if url_lower.endswith(("/", "/index", "/home")) and url_lower.count("/") <= 3:
        return "homepage"

    if len(content.split()) > ARTICLE_WORD_COUNT:
        return "article"
    return "navigation"


def _html_signals(html: str) -> tuple[bool, bool]:
    """Return (has_video, has_form) from page markup."""
    soup = BeautifulSoup(html, "html.parser")
    has_form = soup.find("form") is not None
    has_video = soup.find("video") is not None
    if not has_video:
        for iframe in soup.find_all("iframe"):
            src = str(iframe.get("src") or "").lower()
            if any(host in src for host in VIDEO_HOSTS):
                has_video = True
                break
    return has_video, has_form


def extract_signals(content: str, url: str, html: str | None = None) -> PageSignals:
    """Extract page feature signals from text, URL and optional HTML."""
    content_lower = content.lower()
    word_count = len(content.split())

    has_video = "video" in content_lower or "watch" in content_lower
    has_form = "<form" in content_lower or "submit" in content_lower
    if html:
        html_video, html_form = _html_signals(html)
        has_video = has_video or html_video
        has_form = has_form or html_form

    return PageSignals(
        has_video=has_video,
        has_calculator=(
            "calculator" in content_lower
            or "calculate" in content_lower
            or "calculator" in url.lower()
        ),
        has_form=has_form,
        has_references=(
            "reference" in content_lower or "citation" in content_lower or "[1]" in content
        ),
        reading_time=math.ceil(word_count / WORDS_PER_MINUTE) if word_count else None,
    )


def categorize_by_keywords(
    content: str,
    title: str,
    url: str,
    html: str | None = None,
) -> CategorizationResult:
    """Categorize a page by keyword hits.

    The category with the most keyword hits wins. Confidence grows 0.1 per hit
    from 0.5, capped at 0.9. Strong phrase overrides return 0.95.
    """
    text = f"{title} {content}".lower()
    category = DEFAULT_CATEGORY
    confidence = 0.5
    found_keywords: list[str] = []

    for candidate, keywords in CONTENT_CATEGORIES.items():
        matches = [keyword for keyword in keywords if keyword in text]
        if len(matches) > len(found_keywords):
            category = candidate
            confidence = min(0.9, 0.5 + len(matches) * 0.1)
            found_keywords = matches

    override = _override_category(text, url)
    if override is not None:
        category = override
        confidence = 0.95

    return CategorizationResult(
        category=category,
        content_type=detect_content_type(url, content),
        confidence=round(confidence, 2),
        keywords=found_keywords,
        signals=extract_signals(content, url, html),
    )


def extract_tags(content: str, url: str, meta_keywords: str | None = None) -> list[str]:
    """Build de-duplicated page tags from meta keywords, medications and URL."""
    tags: list[str] = []

    if meta_keywords:
        tags.extend(keyword.strip() for keyword in meta_keywords.split(",") if keyword.strip())

    content_lower = content.lower()
    tags.extend(name for name in MEDICATION_NAMES if name in content_lower)

    url_lower = url.lower()
    if any(part in url_lower for part in ("/blog/", "/news/", "/article/")) or len(content) > 2000:
        tags.append("article")
    if "/blog" in url_lower:
        tags.append("blog")
    if "/news" in url_lower:
        tags.append("news")
    if "/about" in url_lower:
        tags.append("about")

    return list(dict.fromkeys(tags))
