import os
from dotenv import load_dotenv

load_dotenv()


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"Environment variable {name} must be an integer, got {raw!r}")


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"Environment variable {name} must be a number, got {raw!r}")


# fetch layer
REQUEST_TIMEOUT = _env_float("SEO_REQUEST_TIMEOUT", 8.0)
SITEMAP_TIMEOUT = _env_float("SEO_SITEMAP_TIMEOUT", 10.0)
MAX_REDIRECTS = _env_int("SEO_MAX_REDIRECTS", 5)
RETRY_TOTAL = _env_int("SEO_RETRY_TOTAL", 2)

# batch orchestration
BATCH_MAX_URLS = _env_int("SEO_BATCH_MAX_URLS", 10)
BATCH_DELAY_SECONDS = _env_float("SEO_BATCH_DELAY_SECONDS", 0.5)
BATCH_CONCURRENCY = _env_int("SEO_BATCH_CONCURRENCY", 2)

# sitemap crawling
SITEMAP_MAX_CHILDREN = _env_int("SEO_SITEMAP_MAX_CHILDREN", 10)
SITEMAP_MAX_URLS = _env_int("SEO_SITEMAP_MAX_URLS", 1000)
SITEMAP_MAX_DEPTH = _env_int("SEO_SITEMAP_MAX_DEPTH", 2)

REPORTS_DIR = os.getenv("SEO_REPORTS_DIR", "reports")
LOG_LEVEL = os.getenv("SEO_LOG_LEVEL", "INFO").upper()
