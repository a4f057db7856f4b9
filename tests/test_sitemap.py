from unittest.mock import MagicMock

import pytest
from bs4 import BeautifulSoup
from requests import exceptions

from scraper import FetchError
from sitemap import crawl_sitemap, parse_urlset

ROOT = "https://example.com/sitemap.xml"


def urlset(*locs):
    entries = "".join(f"<url><loc>{loc}</loc></url>" for loc in locs)
    return f'<?xml version="1.0" encoding="UTF-8"?><urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">{entries}</urlset>'


def sitemap_index(*locs):
    entries = "".join(f"<sitemap><loc>{loc}</loc></sitemap>" for loc in locs)
    return f'<?xml version="1.0" encoding="UTF-8"?><sitemapindex xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">{entries}</sitemapindex>'


def make_session(documents):
    """Session double serving `documents` by URL; anything else is a 404."""
    def get(url, timeout=None):
        response = MagicMock()
        response.status_code = 200 if url in documents else 404
        response.text = documents.get(url, "")
        if url not in documents:
            response.raise_for_status.side_effect = exceptions.HTTPError(f"404 Client Error for url: {url}")
        return response

    session = MagicMock()
    session.get.side_effect = get
    return session


class TestParseUrlset:
    def test_optional_fields(self):
        soup = BeautifulSoup("""<urlset>
            <url><loc>https://example.com/a</loc><lastmod>2024-01-01</lastmod>
                 <changefreq>weekly</changefreq><priority>0.8</priority></url>
            <url><loc>https://example.com/b</loc><priority>high</priority></url>
            <url><lastmod>2024-01-01</lastmod></url>
        </urlset>""", "xml")
        entries = parse_urlset(soup)

        assert [entry.loc for entry in entries] == ["https://example.com/a", "https://example.com/b"]
        assert entries[0].lastmod == "2024-01-01"
        assert entries[0].changefreq == "weekly"
        assert entries[0].priority == 0.8
        assert entries[1].priority is None


class TestCrawlSitemap:
    def test_plain_urlset(self):
        session = make_session({ROOT: urlset("https://example.com/", "https://example.com/about")})

        entries = crawl_sitemap(ROOT, session=session, pause=False)

        assert [entry.loc for entry in entries] == ["https://example.com/", "https://example.com/about"]

    def test_index_children_are_followed_in_order(self):
        session = make_session({
            ROOT: sitemap_index("https://example.com/posts.xml", "https://example.com/pages.xml"),
            "https://example.com/posts.xml": urlset("https://example.com/p1", "https://example.com/p2"),
            "https://example.com/pages.xml": urlset("https://example.com/about"),
        })

        entries = crawl_sitemap(ROOT, session=session, pause=False)

        assert [entry.loc for entry in entries] == [
            "https://example.com/p1", "https://example.com/p2", "https://example.com/about",
        ]

    def test_child_limit(self):
        children = [f"https://example.com/s{i}.xml" for i in range(5)]
        documents = {ROOT: sitemap_index(*children)}
        documents.update({child: urlset(child.replace(".xml", "/page")) for child in children})
        session = make_session(documents)

        entries = crawl_sitemap(ROOT, session=session, max_sitemaps=2, pause=False)

        assert len(entries) == 2
        assert session.get.call_count == 3

    def test_stops_once_url_limit_is_exceeded(self):
        children = [f"https://example.com/s{i}.xml" for i in range(4)]
        documents = {ROOT: sitemap_index(*children)}
        documents.update({
            child: urlset(*[f"{child}/{n}" for n in range(3)]) for child in children
        })
        session = make_session(documents)

        entries = crawl_sitemap(ROOT, session=session, max_urls=4, pause=False)

        assert len(entries) == 6
        assert session.get.call_count == 3

    def test_failing_child_is_skipped(self):
        session = make_session({
            ROOT: sitemap_index("https://example.com/broken.xml", "https://example.com/ok.xml"),
            "https://example.com/ok.xml": urlset("https://example.com/ok"),
        })

        entries = crawl_sitemap(ROOT, session=session, pause=False)

        assert [entry.loc for entry in entries] == ["https://example.com/ok"]

    def test_failing_root_raises(self):
        with pytest.raises(FetchError):
            crawl_sitemap(ROOT, session=make_session({}), pause=False)

    def test_nested_indexes_respect_depth(self):
        session = make_session({
            ROOT: sitemap_index("https://example.com/nested.xml"),
            "https://example.com/nested.xml": sitemap_index("https://example.com/deep.xml"),
            "https://example.com/deep.xml": urlset("https://example.com/deep"),
        })

        assert crawl_sitemap(ROOT, session=session, max_depth=1, pause=False) == []
        assert [e.loc for e in crawl_sitemap(ROOT, session=session, max_depth=2, pause=False)] == [
            "https://example.com/deep",
        ]

    def test_non_sitemap_document_yields_nothing(self):
        session = make_session({ROOT: "<html><body>Not a sitemap</body></html>"})
        assert crawl_sitemap(ROOT, session=session, pause=False) == []
