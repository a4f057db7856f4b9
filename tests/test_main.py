from unittest.mock import AsyncMock, patch

from fastapi.testclient import TestClient

from analyzer import audit
from main import app
from models import SitemapEntry
from scraper import FetchError
from tests.conftest import FIXED_TIMESTAMP

client = TestClient(app)


def test_root():
    response = client.get("/")
    assert response.status_code == 200
    assert "/audit" in response.json()["message"]


class TestAuditEndpoint:
    def test_returns_payload(self, untitled_html):
        result = audit(untitled_html, "https://example.com/", 420, timestamp=FIXED_TIMESTAMP)
        with patch("main.audit_url", return_value=result) as mock_audit:
            response = client.post("/audit", json={"url": "https://example.com"})

        assert response.status_code == 200
        mock_audit.assert_called_once_with("https://example.com/")
        data = response.json()
        assert data["score"] == 84
        assert data["grade"] == "A-"
        assert data["issues"] == ["Missing page title"]

    def test_fetch_failure_is_bad_gateway(self):
        with patch("main.audit_url", side_effect=FetchError("https://example.com/", "Connection refused")):
            response = client.post("/audit", json={"url": "https://example.com"})

        assert response.status_code == 502
        assert "Connection refused" in response.json()["detail"]

    def test_unexpected_error_is_internal(self):
        with patch("main.audit_url", side_effect=RuntimeError("boom")):
            response = client.post("/audit", json={"url": "https://example.com"})

        assert response.status_code == 500
        assert "boom" in response.json()["detail"]

    def test_invalid_url_is_rejected(self):
        response = client.post("/audit", json={"url": "not a url"})
        assert response.status_code == 422


class TestBatchAuditEndpoint:
    def test_returns_batch_response(self):
        batch = {"results": [], "total": 0, "processed": 0, "skipped": 0}
        with patch("main.batch_audit_async", new=AsyncMock(return_value=batch)) as mock_batch:
            response = client.post("/batch-audit", json={
                "urls": ["https://example.com/a", {"loc": "https://example.com/b"}],
            })

        assert response.status_code == 200
        assert response.json() == batch
        urls = mock_batch.await_args.args[0]
        assert urls[0] == "https://example.com/a"
        assert urls[1] == SitemapEntry(loc="https://example.com/b")

    def test_empty_list_is_rejected(self):
        response = client.post("/batch-audit", json={"urls": []})
        assert response.status_code == 400
        assert response.json()["detail"] == "URLs array is required"


class TestCrawlSitemapEndpoint:
    def test_returns_entries(self):
        entries = [SitemapEntry(loc="https://example.com/a", priority=0.5), SitemapEntry(loc="https://example.com/b")]
        with patch("main.crawl_sitemap", return_value=entries):
            response = client.post("/crawl-sitemap", json={"sitemapUrl": "https://example.com/sitemap.xml"})

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 2
        assert data["urls"][0] == {
            "loc": "https://example.com/a", "lastmod": None, "changefreq": None, "priority": 0.5,
        }

    def test_root_failure_is_bad_gateway(self):
        error = FetchError("https://example.com/sitemap.xml", "404 Client Error")
        with patch("main.crawl_sitemap", side_effect=error):
            response = client.post("/crawl-sitemap", json={"sitemapUrl": "https://example.com/sitemap.xml"})

        assert response.status_code == 502

    def test_missing_sitemap_url_is_rejected(self):
        response = client.post("/crawl-sitemap", json={})
        assert response.status_code == 422
