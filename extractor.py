import json
import logging
from urllib.parse import urlparse

from bs4 import BeautifulSoup

from models import (
    ContentSignals,
    HeadingCounts,
    ImageSignals,
    LinkSignals,
    PageSignals,
    PerformanceSignals,
    SocialSignals,
    TechnicalSignals,
    TextSignal,
)

FAVICON_RELS = {"icon", "shortcut icon", "apple-touch-icon"}
UNOPTIMIZED_IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png")
NON_NAVIGATIONAL_PREFIXES = ("#", "mailto:", "tel:")
INVALID_SCHEMA = "Invalid"
UNKNOWN_SCHEMA = "Unknown"


def _attr(tag, name: str) -> str:
    """Attribute value as a stripped string; multi-valued attributes are joined."""
    if tag is None:
        return ""
    value = tag.get(name)
    if isinstance(value, list):
        value = " ".join(value)
    return (value or "").strip()


def _meta_content(soup: BeautifulSoup, **attrs) -> str:
    return _attr(soup.find("meta", attrs=attrs), "content")


def _schema_types(payload) -> list[str]:
    """Collects @type values from a parsed JSON-LD block, walking arrays and @graph."""
    if isinstance(payload, list):
        types = []
        for item in payload:
            types.extend(_schema_types(item))
        return types or [UNKNOWN_SCHEMA]
    if not isinstance(payload, dict):
        return [UNKNOWN_SCHEMA]

    if graph := payload.get("@graph"):
        return _schema_types(graph)

    schema_type = payload.get("@type")
    if isinstance(schema_type, list):
        return [str(t) for t in schema_type] or [UNKNOWN_SCHEMA]
    return [str(schema_type)] if schema_type else [UNKNOWN_SCHEMA]


def extract_structured_data(soup: BeautifulSoup) -> tuple[bool, tuple[str, ...]]:
    scripts = soup.find_all("script", attrs={"type": "application/ld+json"})
    types = []
    for script in scripts:
        try:
            types.extend(_schema_types(json.loads(script.string or script.get_text())))
        except (ValueError, RecursionError) as e:
            logging.debug(f"Invalid JSON-LD block: {e}")
            types.append(INVALID_SCHEMA)
    return bool(scripts), tuple(types)


def extract_links(soup: BeautifulSoup, source_url: str) -> LinkSignals:
    hostname = urlparse(source_url).hostname or ""
    anchors = soup.find_all("a", href=True)
    internal = external = 0
    for anchor in anchors:
        href = _attr(anchor, "href")
        if href.startswith("/") or (hostname and hostname in href):
            internal += 1
        elif href and not href.lower().startswith(NON_NAVIGATIONAL_PREFIXES):
            external += 1
    return LinkSignals(total=len(anchors), internal=internal, external=external)


def extract_images(soup: BeautifulSoup) -> ImageSignals:
    image_tags = soup.find_all("img")
    without_alt = sum(1 for img in image_tags if not _attr(img, "alt"))
    unoptimized = 0
    for img in image_tags:
        src = _attr(img, "src").lower()
        if any(ext in src for ext in UNOPTIMIZED_IMAGE_EXTENSIONS) and ".webp" not in src:
            unoptimized += 1
    return ImageSignals(total=len(image_tags), without_alt=without_alt, unoptimized=unoptimized)


def _has_charset(soup: BeautifulSoup) -> bool:
    if _attr(soup.find("meta", charset=True), "charset"):
        return True
    for meta in soup.find_all("meta", attrs={"http-equiv": True}):
        if _attr(meta, "http-equiv").lower() == "content-type" and "charset=" in _attr(meta, "content").lower():
            return True
    return False


def extract_technical(soup: BeautifulSoup, source_url: str) -> TechnicalSignals:
    has_schema, schema_types = extract_structured_data(soup)
    robots = _meta_content(soup, name="robots")
    return TechnicalSignals(
        https=urlparse(source_url).scheme.lower() == "https",
        charset=_has_charset(soup),
        viewport="width=device-width" in _meta_content(soup, name="viewport"),
        canonical=bool(_attr(soup.find("link", rel="canonical"), "href")),
        favicon=soup.find("link", rel=lambda x: x and x.lower() in FAVICON_RELS) is not None,
        language=bool(_attr(soup.find("html"), "lang")),
        has_schema=has_schema,
        schema_types=schema_types,
        robots=robots,
        noindex="noindex" in robots.lower(),
    )


def count_words(soup: BeautifulSoup) -> int:
    if not soup.body:
        return 0
    return len(soup.body.get_text(separator=" ", strip=True).split())


def body_length(soup: BeautifulSoup) -> int:
    return len(soup.body.get_text().strip()) if soup.body else 0


def extract(html: str | None, source_url: str, load_time_ms: int) -> PageSignals:
    """
    Builds the PageSignals record for one fetched page.

    Missing elements yield empty strings, zero counts and false flags, so
    malformed or empty markup never raises.
    """
    soup = BeautifulSoup(html or "", "lxml")

    title = soup.title.get_text() if soup.title else ""
    headings = HeadingCounts(**{f"h{level}": len(soup.find_all(f"h{level}")) for level in range(1, 7)})

    return PageSignals(
        title=TextSignal.from_text(title),
        meta_description=TextSignal.from_text(_meta_content(soup, name="description")),
        meta_keywords=TextSignal.from_text(_meta_content(soup, name="keywords")),
        headings=headings,
        h1_texts=tuple(text for h1 in soup.find_all("h1") if (text := h1.get_text(strip=True))),
        images=extract_images(soup),
        links=extract_links(soup, source_url),
        technical=extract_technical(soup, source_url),
        content=ContentSignals(word_count=count_words(soup), length=body_length(soup)),
        social=SocialSignals(
            og_title=bool(_meta_content(soup, property="og:title")),
            og_description=bool(_meta_content(soup, property="og:description")),
            og_image=bool(_meta_content(soup, property="og:image")),
            twitter_card=bool(_meta_content(soup, name="twitter:card")),
        ),
        performance=PerformanceSignals(load_time_ms=max(0, int(round(load_time_ms or 0)))),
    )
