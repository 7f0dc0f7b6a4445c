"""FastAPI application for Sales Scout."""

from datetime import datetime
from functools import lru_cache
from typing import Optional
from urllib.parse import urlsplit

from fastapi import Depends, FastAPI, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field

from ..exceptions import (
    ConfigError,
    DuplicateProductError,
    ExtractionAbsent,
    FetchError,
    ProductNotFoundError,
    StoreError,
)
from ..orchestrator.coordinator import JobCoordinator
from ..scraping.fetcher import PageFetcher
from ..storage.models import BatchSummary, TrackedProduct, utcnow
from ..utils.config import get_config

app = FastAPI(
    title="Sales Scout API",
    description="API for tracking product sold counters and estimating set sales",
    version="1.0.0",
)

config = get_config()

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.api.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@lru_cache(maxsize=1)
def get_coordinator() -> JobCoordinator:
    """Shared coordinator, created on first use."""
    return JobCoordinator(config.model_dump())


class TrackRequest(BaseModel):
    """Body of POST /products."""

    model_config = ConfigDict(populate_by_name=True)

    url: str
    multiple_pattern: int = Field(alias="multiplePattern")
    product_name: str = Field(default="", alias="productName")


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def serialize_product(product: TrackedProduct) -> dict:
    return {
        "id": product.id,
        "url": product.url,
        "productName": product.product_name,
        "multiplePattern": product.multiple_pattern,
        "createdAt": product.created_at.isoformat() if product.created_at else None,
    }


def serialize_summary(summary: BatchSummary) -> dict:
    return {
        "started_at": summary.started_at.isoformat(),
        "finished_at": summary.finished_at.isoformat(),
        "total": summary.total,
        "succeeded": summary.succeeded,
        "failed": summary.failed,
        "results": [
            {
                "product_id": r.product_id,
                "url": r.url,
                "status": r.status,
                "error": r.error,
                "total_sold": r.observation.total_sold if r.observation else None,
            }
            for r in summary.results
        ],
    }


def url_allowed(url: str) -> bool:
    """Whether url is on an allowed host and under an allowed path prefix."""
    prefixes = config.api.allowed_url_prefixes
    if not prefixes:
        return True

    try:
        target = urlsplit(url)
    except ValueError:
        return False

    for prefix in prefixes:
        allowed = urlsplit(prefix)
        if (
            target.scheme == allowed.scheme
            and target.netloc.lower() == allowed.netloc.lower()
            and target.path.startswith(allowed.path)
        ):
            return True
    return False


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "Sales Scout API",
        "version": "1.0.0",
        "status": "running",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "timestamp": utcnow().isoformat(),
    }


@app.get("/fetch-sales")
async def fetch_sales(
    product_url: Optional[str] = Query(None, alias="productUrl", description="Product page URL"),
    coordinator: JobCoordinator = Depends(get_coordinator),
):
    """Fetch a product page and return its current sold counter.

    Nothing is stored; use POST /products to track a page over time.
    """
    if not product_url or not url_allowed(product_url):
        return error_response(400, "Please provide a valid product URL.")

    try:
        PageFetcher.validate_url(product_url)
    except FetchError:
        return error_response(400, "Please provide a valid product URL.")

    try:
        result = await coordinator.fetch_sales(product_url)
    except FetchError as e:
        logger.error(f"Error fetching {product_url}: {e}")
        return error_response(500, "Error while fetching the product page.")
    except ExtractionAbsent:
        return error_response(404, "No sales data found on the page.")

    return {
        **result.model_dump(by_alias=True),
        "lastUpdated": datetime.now().strftime("%H:%M:%S"),
    }


@app.post("/products", status_code=201)
async def track_product(
    request: TrackRequest, coordinator: JobCoordinator = Depends(get_coordinator)
):
    """Start tracking a product page."""
    try:
        product = coordinator.track_product(
            request.url, request.multiple_pattern, request.product_name
        )
    except ConfigError as e:
        return error_response(400, e.message)
    except DuplicateProductError as e:
        return error_response(409, e.message)
    except StoreError as e:
        logger.error(f"Error tracking {request.url}: {e}")
        return error_response(500, "Could not store the product.")

    return serialize_product(product)


@app.get("/products")
async def list_products(coordinator: JobCoordinator = Depends(get_coordinator)):
    """List tracked products."""
    try:
        products = coordinator.list_products()
    except StoreError as e:
        logger.error(f"Error listing products: {e}")
        return error_response(500, "Could not load tracked products.")

    return {
        "products": [serialize_product(p) for p in products],
        "total": len(products),
    }


@app.post("/products/{product_id}/scrape")
async def scrape_product(product_id: int, coordinator: JobCoordinator = Depends(get_coordinator)):
    """Scrape one tracked product now and store the observation."""
    try:
        observation = await coordinator.scrape_product(product_id)
    except ProductNotFoundError as e:
        return error_response(404, e.message)
    except ExtractionAbsent as e:
        return error_response(404, e.message)
    except FetchError as e:
        return error_response(502, e.message)
    except StoreError as e:
        logger.error(f"Error storing observation for {product_id}: {e}")
        return error_response(500, "Could not store the observation.")

    return {
        "product_id": observation.product_id,
        "timestamp": observation.timestamp.isoformat(),
        "total_sold": observation.total_sold,
    }


@app.get("/products/{product_id}/analysis")
async def analyze_product(product_id: int, coordinator: JobCoordinator = Depends(get_coordinator)):
    """Per-interval sales deltas and set estimates for a tracked product."""
    try:
        product, rows, summary = coordinator.analyze_product(product_id)
    except ProductNotFoundError as e:
        return error_response(404, e.message)
    except StoreError as e:
        logger.error(f"Error analyzing product {product_id}: {e}")
        return error_response(500, "Could not load the observations.")

    return {
        "product": serialize_product(product),
        "rows": [
            {**row.model_dump(), "timestamp": row.timestamp.isoformat()} for row in rows
        ],
        "summary": summary.model_dump(),
    }


@app.post("/scrape")
async def run_batch(coordinator: JobCoordinator = Depends(get_coordinator)):
    """Scrape every tracked product now."""
    try:
        summary = await coordinator.run_batch()
    except StoreError as e:
        logger.error(f"Batch scrape aborted: {e}")
        return error_response(500, "Could not load tracked products.")

    return serialize_summary(summary)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "sales_scout.api.main:app",
        host=config.api.host,
        port=config.api.port,
        reload=False,
    )
