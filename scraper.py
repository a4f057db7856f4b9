import logging
import time
from urllib.parse import urlparse

from requests import Session, exceptions
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

import config
from models import FetchedPage

#static browser-like headers
BROWSER_HEADERS = {
    'User-Agent': 'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36',
    'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,image/apng,*/*;q=0.8',
    'Accept-Language': 'en-US,en;q=0.9',
    'Accept-Encoding': 'gzip, deflate',
    'Upgrade-Insecure-Requests': '1',
}


class FetchError(Exception):
    """A page or sitemap could not be retrieved."""

    def __init__(self, url: str, reason: str):
        super().__init__(f"Failed to fetch {url}: {reason}")
        self.url = url
        self.reason = reason


def build_session(retries: int = config.RETRY_TOTAL) -> Session:
    session = Session()
    retry = Retry(total=retries, backoff_factor=1, status_forcelist=[429, 500, 502, 503, 504], allowed_methods=["GET", "HEAD"])
    adapter = HTTPAdapter(max_retries=retry)
    session.mount('http://', adapter)
    session.mount('https://', adapter)
    session.headers.update(BROWSER_HEADERS)
    session.max_redirects = config.MAX_REDIRECTS
    return session


def validate_url(url: str) -> str:
    parsed = urlparse(url or "")
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise FetchError(url, "Invalid URL format")
    return url


def fetch_page(url: str, session: Session | None = None, timeout: float = config.REQUEST_TIMEOUT) -> FetchedPage:
    """
    GETs `url` and times the full round trip.

    Raises:
        FetchError: invalid URL, network failure, too many redirects or a status >= 400.
    """
    validate_url(url)
    owns_session = session is None
    if owns_session:
        session = build_session()

    try:
        started = time.perf_counter()
        response = session.get(url, timeout=timeout)
        load_time_ms = int((time.perf_counter() - started) * 1000)
        response.raise_for_status()
    except exceptions.RequestException as e:
        logging.warning(f"Request for {url} failed: {e}")
        raise FetchError(url, str(e)) from e
    finally:
        if owns_session:
            session.close()

    logging.info(f"Fetched {url} ({response.status_code}) in {load_time_ms} ms")
    return FetchedPage(url=url, html=response.text, load_time_ms=load_time_ms, status_code=response.status_code)
