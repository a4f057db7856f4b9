"""
Shared fixtures: a well-optimised sample page, its degraded variants and a
PageSignals factory with passing defaults.
"""
from datetime import datetime, timezone

import pytest

from models import PageSignals, TextSignal

PAGE_URL = "https://example.com/guide"
GOOD_TITLE = "Complete SEO Audit Guide for Small Sites"
GOOD_DESCRIPTION = (
    "Learn how to audit titles, meta descriptions, headings, images and links "
    "on your website with this practical step by step checklist."
)
FIXED_TIMESTAMP = datetime(2024, 1, 1, tzinfo=timezone.utc)


def build_page(title=GOOD_TITLE, description=GOOD_DESCRIPTION, head_extra="", body_extra="", words=320):
    title_tag = f"<title>{title}</title>" if title is not None else ""
    description_tag = f'<meta name="description" content="{description}">' if description is not None else ""
    body_text = " ".join(["word"] * words)
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  {title_tag}
  {description_tag}
  <link rel="canonical" href="{PAGE_URL}">
  <link rel="icon" href="/favicon.ico">
  <meta property="og:title" content="SEO Audit Guide">
  <meta property="og:description" content="Audit your site">
  <meta property="og:image" content="https://example.com/og.webp">
  <meta name="twitter:card" content="summary">
  <script type="application/ld+json">{{"@context": "https://schema.org", "@type": "Article"}}</script>
  {head_extra}
</head>
<body>
  <h1>SEO Audit Guide</h1>
  <h2>Getting started</h2>
  <p>{body_text}</p>
  <img src="/hero.webp" alt="Audit dashboard">
  <a href="/pricing">Pricing</a>
  <a href="https://other.org/reference">Reference</a>
  {body_extra}
</body>
</html>"""


@pytest.fixture
def good_html():
    return build_page()


@pytest.fixture
def untitled_html():
    return build_page(title=None)


GOOD_SIGNALS = {
    "title": {"content": GOOD_TITLE, "length": len(GOOD_TITLE), "present": True},
    "meta_description": {"content": GOOD_DESCRIPTION, "length": len(GOOD_DESCRIPTION), "present": True},
    "meta_keywords": {"content": "", "length": 0, "present": False},
    "headings": {"h1": 1, "h2": 1, "h3": 0, "h4": 0, "h5": 0, "h6": 0},
    "h1_texts": ("SEO Audit Guide",),
    "images": {"total": 1, "without_alt": 0, "unoptimized": 0},
    "links": {"total": 2, "internal": 1, "external": 1},
    "technical": {
        "https": True,
        "charset": True,
        "viewport": True,
        "canonical": True,
        "favicon": True,
        "language": True,
        "has_schema": True,
        "schema_types": ["Article"],
        "robots": "",
        "noindex": False,
    },
    "content": {"word_count": 330, "length": 1900},
    "social": {"og_title": True, "og_description": True, "og_image": True, "twitter_card": True},
    "performance": {"load_time_ms": 420},
}


def good_signals_data() -> dict:
    """A fresh, fully populated signals mapping that passes every rule."""
    return {
        group: dict(values) if isinstance(values, dict) else values
        for group, values in GOOD_SIGNALS.items()
    }


@pytest.fixture
def make_signals():
    """Builds PageSignals from passing defaults; each override replaces fields within its group."""
    def _make(**overrides) -> PageSignals:
        data = good_signals_data()
        for group, values in overrides.items():
            if isinstance(values, TextSignal):
                values = values.model_dump()
            if isinstance(values, dict):
                data[group].update(values)
            else:
                data[group] = values
        return PageSignals.model_validate(data)
    return _make
