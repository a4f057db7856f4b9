import asyncio
import logging
import time

import httpx

import config
from models import FetchedPage
from scraper import BROWSER_HEADERS, FetchError, validate_url


async def fetch_pages_async(
    urls_to_fetch: list,
    concurrency: int = config.BATCH_CONCURRENCY,
    timeout: float = config.REQUEST_TIMEOUT,
    client: httpx.AsyncClient | None = None,
) -> list[tuple[str, FetchedPage | None, str | None]]:
    """
    Fetches every URL with at most `concurrency` requests in flight.

    Returns (url, page, error) triples in input order; exactly one of page
    and error is set, so one failing URL never aborts the others.
    """
    semaphore = asyncio.Semaphore(max(1, concurrency))
    owns_client = client is None
    if owns_client:
        client = httpx.AsyncClient(
            timeout=timeout,
            follow_redirects=True,
            max_redirects=config.MAX_REDIRECTS,
            headers=BROWSER_HEADERS,
        )

    async def fetch_one(url):
        async with semaphore:
            try:
                validate_url(url)
                started = time.perf_counter()
                response = await client.get(url)
                load_time_ms = int((time.perf_counter() - started) * 1000)
                response.raise_for_status()
                page = FetchedPage(url=url, html=response.text, load_time_ms=load_time_ms, status_code=response.status_code)
                return url, page, None
            except FetchError as e:
                return url, None, str(e)
            except httpx.HTTPError as e:
                logging.warning(f"Async request for {url} failed: {e}")
                return url, None, str(FetchError(url, str(e)))

    try:
        results = await asyncio.gather(*(fetch_one(url) for url in urls_to_fetch))
    finally:
        if owns_client:
            await client.aclose()

    return list(results)
