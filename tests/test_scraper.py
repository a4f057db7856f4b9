from unittest.mock import MagicMock

import pytest
from requests import exceptions

from scraper import BROWSER_HEADERS, FetchError, build_session, fetch_page, validate_url


def make_response(text="<html></html>", status_code=200, error=None):
    response = MagicMock()
    response.text = text
    response.status_code = status_code
    response.raise_for_status.side_effect = error
    return response


class TestValidateUrl:
    @pytest.mark.parametrize("url", ["https://example.com", "http://example.com/path?q=1"])
    def test_valid(self, url):
        assert validate_url(url) == url

    @pytest.mark.parametrize("url", ["", "example.com", "ftp://example.com", "https://", None])
    def test_invalid(self, url):
        with pytest.raises(FetchError) as exc_info:
            validate_url(url)
        assert exc_info.value.reason == "Invalid URL format"


class TestBuildSession:
    def test_retries_and_headers(self):
        session = build_session(retries=3)
        adapter = session.get_adapter("https://example.com")

        assert adapter.max_retries.total == 3
        assert 429 in adapter.max_retries.status_forcelist
        assert session.headers["User-Agent"] == BROWSER_HEADERS["User-Agent"]
        assert session.max_redirects == 5
        session.close()


class TestFetchPage:
    def test_success(self):
        session = MagicMock()
        session.get.return_value = make_response("<html><title>Hi</title></html>")

        page = fetch_page("https://example.com", session=session, timeout=3)

        session.get.assert_called_once_with("https://example.com", timeout=3)
        assert page.html == "<html><title>Hi</title></html>"
        assert page.status_code == 200
        assert page.load_time_ms >= 0
        session.close.assert_not_called()

    def test_network_error_is_wrapped(self):
        session = MagicMock()
        session.get.side_effect = exceptions.ConnectionError("connection refused")

        with pytest.raises(FetchError) as exc_info:
            fetch_page("https://example.com", session=session)

        assert exc_info.value.url == "https://example.com"
        assert "connection refused" in exc_info.value.reason

    def test_error_status_is_wrapped(self):
        session = MagicMock()
        session.get.return_value = make_response(status_code=404, error=exceptions.HTTPError("404 Client Error"))

        with pytest.raises(FetchError, match="404"):
            fetch_page("https://example.com/missing", session=session)

    def test_too_many_redirects_is_wrapped(self):
        session = MagicMock()
        session.get.side_effect = exceptions.TooManyRedirects("Exceeded 5 redirects.")

        with pytest.raises(FetchError, match="redirects"):
            fetch_page("https://example.com", session=session)

    def test_invalid_url_never_hits_the_network(self):
        session = MagicMock()
        with pytest.raises(FetchError):
            fetch_page("not-a-url", session=session)
        session.get.assert_not_called()
