import logging

import uvicorn
from fastapi import FastAPI, HTTPException
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel, ConfigDict, Field, HttpUrl

import config
from analyzer import audit_url, batch_audit_async
from models import SitemapEntry
from scraper import FetchError
from sitemap import crawl_sitemap

logging.basicConfig(
    level=config.LOG_LEVEL,
    format='%(asctime)s - %(levelname)s - %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)

app = FastAPI(title="SEO Audit API")


# Request models
class AuditRequest(BaseModel):
    url: HttpUrl


class BatchAuditRequest(BaseModel):
    urls: list[str | SitemapEntry] = Field(default_factory=list)


class SitemapRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    sitemap_url: HttpUrl = Field(alias="sitemapUrl")


@app.post("/audit")
async def audit_endpoint(req: AuditRequest):
    url = str(req.url)
    logging.info(f"Audit started for: {url}")
    try:
        result = await run_in_threadpool(audit_url, url)
    except FetchError as e:
        raise HTTPException(status_code=502, detail=f"Failed to audit website: {e.reason}")
    except Exception as e:
        logging.exception("An internal error occurred during the audit.")
        raise HTTPException(status_code=500, detail=f"An internal error occurred: {e}")
    return result.to_payload()


@app.post("/batch-audit")
async def batch_audit_endpoint(req: BatchAuditRequest):
    if not req.urls:
        raise HTTPException(status_code=400, detail="URLs array is required")
    logging.info(f"Batch audit started for {len(req.urls)} URLs")
    try:
        return await batch_audit_async(req.urls)
    except Exception as e:
        logging.exception("An internal error occurred during the batch audit.")
        raise HTTPException(status_code=500, detail=f"An internal error occurred: {e}")


@app.post("/crawl-sitemap")
async def crawl_sitemap_endpoint(req: SitemapRequest):
    sitemap_url = str(req.sitemap_url)
    logging.info(f"Crawling sitemap: {sitemap_url}")
    try:
        entries = await run_in_threadpool(crawl_sitemap, sitemap_url)
    except FetchError as e:
        raise HTTPException(status_code=502, detail=f"Failed to crawl sitemap: {e.reason}")
    except Exception as e:
        logging.exception("An internal error occurred while crawling the sitemap.")
        raise HTTPException(status_code=500, detail=f"An internal error occurred: {e}")
    return {
        "urls": [entry.model_dump(by_alias=True) for entry in entries],
        "total": len(entries),
    }


@app.get("/")
def root():
    return {"message": "SEO Audit API. Use POST /audit, POST /batch-audit or POST /crawl-sitemap."}


#directly running the main.py file
if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=8000)
