import csv
import json
import logging
import os
import sys
import time
from datetime import datetime, timezone
from urllib.parse import urlparse

import config
from extractor import extract
from models import PRIORITY_ORDER, AuditResult, FetchedPage, Priority, SitemapEntry
from resolutions import attach_resolution
from rules import BUCKETS, evaluate
from scoring import score
from scraper import FetchError, fetch_page


def audit(html: str | None, url: str, load_time_ms: int, timestamp: datetime | None = None) -> AuditResult:
    """
    Runs the full pipeline for one page: extract signals, evaluate rules,
    score, and attach a resolution to every issue.

    Pure apart from the timestamp; identical inputs give identical results.
    """
    signals = extract(html, url, load_time_ms)
    evaluation = evaluate(signals)
    score_data = score(signals)

    # parallel to issues: issues_with_resolutions[i] resolves issues[i]
    resolved = [attach_resolution(issue) for issue in evaluation.issues]

    return AuditResult(
        url=url,
        total_score=score_data.total_score,
        grade=score_data.grade,
        breakdown=score_data.breakdown,
        issues=tuple(evaluation.issues),
        issues_with_resolutions=tuple(resolved),
        signals=signals,
        timestamp=timestamp or datetime.now(timezone.utc),
    )


def by_priority(resolved: list[dict]) -> list[dict]:
    """Payload resolutions reordered critical first; ties keep report order."""
    return sorted(resolved, key=lambda item: PRIORITY_ORDER[Priority(item["priority"])])


def audit_page(page: FetchedPage) -> AuditResult:
    return audit(page.html, page.url, page.load_time_ms)


def audit_url(url: str, session=None) -> AuditResult:
    """Fetches and audits one URL. Raises FetchError when the page cannot be retrieved."""
    result = audit_page(fetch_page(url, session=session))
    logging.info(f"Audit completed for {url}, score: {result.total_score} ({result.grade})")
    return result


# --- BATCH AUDITS ---

def _url_of(item) -> str:
    """Batch items are plain URLs, sitemap entries, or {"loc": ...} records."""
    if isinstance(item, SitemapEntry):
        return item.loc
    if isinstance(item, dict):
        return str(item.get("loc") or item.get("url") or "")
    return str(item)


def _success(url: str, result: AuditResult) -> dict:
    return {"url": url, "audit": result.to_payload(), "status": "success"}


def _failure(url: str, error: str) -> dict:
    return {"url": url, "error": error, "status": "error"}


def _batch_response(results: list, requested: int, max_urls: int) -> dict:
    response = {
        "results": results,
        "total": len(results),
        "processed": len(results),
        "skipped": max(0, requested - max_urls),
    }
    if requested > max_urls:
        response["note"] = f"Limited to {max_urls} URLs per batch"
    succeeded = sum(1 for r in results if r["status"] == "success")
    logging.info(f"Batch finished: {succeeded} succeeded, {len(results) - succeeded} failed")
    return response


def batch_audit(urls: list, session=None, max_urls: int = config.BATCH_MAX_URLS,
                delay: float = config.BATCH_DELAY_SECONDS) -> dict:
    """Audits URLs one after another with a pause between requests."""
    targets = [_url_of(item) for item in urls][:max_urls]
    results = []
    for index, url in enumerate(targets):
        logging.info(f"Auditing: {url}")
        try:
            results.append(_success(url, audit_url(url, session=session)))
        except FetchError as e:
            logging.error(f"Failed to audit {url}: {e.reason}")
            results.append(_failure(url, str(e)))
        except Exception as e:
            logging.exception(f"Unexpected error while auditing {url}")
            results.append(_failure(url, f"Audit failed for {url}: {e}"))
        if delay and index < len(targets) - 1:
            time.sleep(delay)
    return _batch_response(results, len(urls), max_urls)


async def batch_audit_async(urls: list, max_urls: int = config.BATCH_MAX_URLS,
                            concurrency: int = config.BATCH_CONCURRENCY, client=None) -> dict:
    """Same result shape as batch_audit, with pages fetched concurrently."""
    from utils.async_helper import fetch_pages_async

    targets = [_url_of(item) for item in urls][:max_urls]
    fetched = await fetch_pages_async(targets, concurrency=concurrency, client=client)

    results = []
    for url, page, error in fetched:
        if page is None:
            logging.error(f"Failed to audit {url}: {error}")
            results.append(_failure(url, error))
            continue
        try:
            results.append(_success(url, audit_page(page)))
        except Exception as e:
            logging.exception(f"Unexpected error while auditing {url}")
            results.append(_failure(url, f"Audit failed for {url}: {e}"))
    return _batch_response(results, len(urls), max_urls)


# --- EXPORTS ---

def export_to_json(report: dict | list, filename: str):
    """Exports an audit payload (or a list of them) to a JSON file."""
    with open(filename, 'w', encoding='utf-8') as f:
        json.dump(report, f, indent=4)
    logging.info(f"JSON report exported to {filename}")


def _issue_blob(payload: dict) -> str:
    return " | ".join(
        f"{item['issue']} [{item['priority']}]: {item['solution']}"
        for item in payload.get("issuesWithResolutions", [])
    )


def export_to_csv(payloads: list[dict], filename: str):
    """One row per audited URL: score, grade, breakdown columns and flattened issues."""
    header = ["URL", "Score", "Grade", *BUCKETS, "Issues Count", "Issues & Resolutions", "Timestamp"]
    with open(filename, 'w', encoding='utf-8', newline='') as f:
        writer = csv.writer(f)
        writer.writerow(header)
        for payload in payloads:
            breakdown = payload.get("scoreBreakdown", {})
            writer.writerow([
                payload["url"],
                payload["score"],
                payload["grade"],
                *[breakdown.get(bucket, 0) for bucket in BUCKETS],
                len(payload.get("issues", [])),
                _issue_blob(payload),
                payload.get("timestamp", ""),
            ])
    logging.info(f"CSV report exported to {filename}")


if __name__ == "__main__":
    logging.basicConfig(
        level=config.LOG_LEVEL,
        format='%(asctime)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    args = sys.argv[1:]

    if not args or not args[0].startswith("http"):
        print(" Error: Please provide a valid URL as the first argument.")
        print(" Usage: python analyzer.py <url> [--sitemap] [--limit N]")
        sys.exit(1)

    target_url = args.pop(0)
    from_sitemap = "--sitemap" in args
    limit = config.BATCH_MAX_URLS
    if "--limit" in args:
        try:
            limit = int(args[args.index("--limit") + 1])
        except (IndexError, ValueError):
            print(" Error: --limit expects a number.")
            sys.exit(1)

    domain_name = urlparse(target_url).netloc.replace(".", "_")
    os.makedirs(config.REPORTS_DIR, exist_ok=True)

    try:
        if from_sitemap:
            from sitemap import crawl_sitemap

            print(f" Crawling sitemap: {target_url}")
            entries = crawl_sitemap(target_url)
            batch = batch_audit(entries, max_urls=limit)
            payloads = [r["audit"] for r in batch["results"] if r["status"] == "success"]
            export_to_json(batch, os.path.join(config.REPORTS_DIR, f"{domain_name}_batch_audit.json"))
            export_to_csv(payloads, os.path.join(config.REPORTS_DIR, f"{domain_name}_batch_audit.csv"))
            print(f"\n Audited {batch['processed']} URLs ({batch['skipped']} skipped)")
            for r in batch["results"]:
                summary = f"{r['audit']['score']}/100 ({r['audit']['grade']})" if r["status"] == "success" else r["error"]
                print(f"  {r['url']}: {summary}")
        else:
            print(f" Starting SEO audit for: {target_url}")
            payload = audit_url(target_url).to_payload()
            export_to_json(payload, os.path.join(config.REPORTS_DIR, f"{domain_name}_seo_audit.json"))
            export_to_csv([payload], os.path.join(config.REPORTS_DIR, f"{domain_name}_seo_audit.csv"))
            print(f"\nOverall Score: {payload['score']}/100 ({payload['grade']})")
            print("Score Breakdown:", payload["scoreBreakdown"])
            print("\nTop Issues:")
            for item in by_priority(payload["issuesWithResolutions"])[:5]:
                print(f"  [{item['priority']}] {item['issue']} -> {item['solution']}")
    except FetchError as e:
        print(f" Could not retrieve data: {e}")
        sys.exit(1)
