import logging
import random
import time

from bs4 import BeautifulSoup
from requests import Session

import config
from models import SitemapEntry
from scraper import FetchError, build_session, fetch_page


def _child_text(node, name: str) -> str | None:
    child = node.find(name)
    if child is None:
        return None
    text = child.get_text(strip=True)
    return text or None


def _parse_priority(raw: str | None) -> float | None:
    if raw is None:
        return None
    try:
        return float(raw)
    except ValueError:
        return None


def parse_urlset(soup: BeautifulSoup) -> list[SitemapEntry]:
    entries = []
    for node in soup.find_all("url"):
        if not (loc := _child_text(node, "loc")):
            continue
        entries.append(SitemapEntry(
            loc=loc,
            lastmod=_child_text(node, "lastmod"),
            changefreq=_child_text(node, "changefreq"),
            priority=_parse_priority(_child_text(node, "priority")),
        ))
    return entries


def parse_sitemap_index(soup: BeautifulSoup) -> list[str]:
    return [loc for node in soup.find_all("sitemap") if (loc := _child_text(node, "loc"))]


def crawl_sitemap(
    sitemap_url: str,
    session: Session | None = None,
    max_sitemaps: int = config.SITEMAP_MAX_CHILDREN,
    max_urls: int = config.SITEMAP_MAX_URLS,
    max_depth: int = config.SITEMAP_MAX_DEPTH,
    pause: bool = True,
) -> list[SitemapEntry]:
    """
    Collects URL records from a sitemap or sitemap index.

    Child sitemaps of an index are fetched in order (the first `max_sitemaps`
    per index, up to `max_depth` levels); collection stops once more than
    `max_urls` records are gathered. A failing child is logged and skipped.

    Raises:
        FetchError: the root sitemap could not be fetched.
    """
    owns_session = session is None
    if owns_session:
        session = build_session()
    try:
        urls = _crawl(sitemap_url, session, max_sitemaps, max_urls, max_depth, pause, depth=0)
    finally:
        if owns_session:
            session.close()

    logging.info(f"Sitemap crawl completed. Found {len(urls)} total URLs")
    return urls


def _crawl(sitemap_url, session, max_sitemaps, max_urls, max_depth, pause, depth) -> list[SitemapEntry]:
    page = fetch_page(sitemap_url, session=session, timeout=config.SITEMAP_TIMEOUT)
    soup = BeautifulSoup(page.html, "xml")

    if soup.find("sitemapindex"):
        children = parse_sitemap_index(soup)
        if depth >= max_depth:
            logging.warning(f"Not following {len(children)} nested sitemaps in {sitemap_url}: depth limit reached")
            return []

        to_process = children[:max_sitemaps]
        logging.info(f"Found sitemap index with {len(children)} sitemaps, processing {len(to_process)}")
        urls = []
        for i, child_url in enumerate(to_process, start=1):
            if pause:
                time.sleep(random.uniform(0.2, 0.5))
            logging.info(f"Processing sitemap {i}/{len(to_process)}: {child_url}")
            try:
                urls.extend(_crawl(child_url, session, max_sitemaps, max_urls, max_depth, pause, depth + 1))
            except FetchError as e:
                logging.error(f"Failed to fetch sitemap {child_url}: {e.reason}")
                continue
            if len(urls) > max_urls:
                logging.info(f"Reached {max_urls} URL limit, stopping processing")
                break
        return urls

    entries = parse_urlset(soup)
    if not entries:
        logging.info(f"No URLs found in {sitemap_url}")
    return entries
