"""Scrape job: fetch a tracked page, extract its counter, store the reading."""

import asyncio
from datetime import datetime
from typing import Callable, Iterable, Optional

from loguru import logger

from ..exceptions import ExtractionAbsent, FetchError, StoreError
from ..storage.models import (
    BatchSummary,
    ExtractionResult,
    JobResult,
    Observation,
    TrackedProduct,
    utcnow,
)
from .extractor import ProductExtractor
from .fetcher import PageFetcher


class ScrapeJob:
    """Composes PageFetcher -> ProductExtractor -> store.

    The store only needs ``append_observation(observation)`` and
    ``update_product_name(product_id, name)``.
    """

    def __init__(
        self,
        fetcher: PageFetcher,
        extractor: ProductExtractor,
        store,
        rate_limit_delay: float = 0.0,
        clock: Callable[[], datetime] = utcnow,
    ):
        """Initialize scrape job.

        Args:
            fetcher: Page fetcher
            extractor: Product extractor
            store: Persistence collaborator
            rate_limit_delay: Seconds to wait between products in a batch
            clock: Source of observation timestamps
        """
        self.fetcher = fetcher
        self.extractor = extractor
        self.store = store
        self.rate_limit_delay = rate_limit_delay
        self.clock = clock

    async def fetch_sales(self, url: str) -> ExtractionResult:
        """Fetch and extract a page without storing anything.

        Raises:
            FetchError: page could not be retrieved
            ExtractionAbsent: page has no usable sales data
        """
        markup = await self.fetcher.fetch(url)
        result = self.extractor.extract(markup)
        if result is None:
            raise ExtractionAbsent(url)
        return result

    async def execute(self, product: TrackedProduct) -> Observation:
        """Scrape one product and append the observation.

        Raises:
            FetchError, ExtractionAbsent, StoreError
        """
        result = await self.fetch_sales(product.url)

        observation = Observation(
            product_id=product.id,
            timestamp=self.clock(),
            total_sold=result.total_sold,
        )
        self.store.append_observation(observation)

        if not product.product_name and result.product_name:
            try:
                self.store.update_product_name(product.id, result.product_name)
                product.product_name = result.product_name
            except StoreError as e:
                logger.warning(f"Product {product.id}: name backfill failed: {e}")

        logger.info(f"Product {product.id}: total_sold={result.total_sold}")
        return observation

    async def run(self, product: TrackedProduct) -> Optional[Observation]:
        """Scrape one product; a fetch failure or missing data yields None.

        StoreError still propagates.
        """
        try:
            return await self.execute(product)
        except (FetchError, ExtractionAbsent) as e:
            logger.warning(f"Product {product.id}: {e}")
        return None

    async def _run_isolated(self, product: TrackedProduct) -> JobResult:
        """Run one product and fold any failure into its JobResult."""
        status, error, observation = "ok", None, None

        try:
            observation = await self.execute(product)
        except FetchError as e:
            status, error = "fetch_failed", str(e)
            logger.warning(f"Product {product.id}: {e}")
        except ExtractionAbsent as e:
            status, error = "no_data", str(e)
            logger.warning(f"Product {product.id}: {e}")
        except StoreError as e:
            status, error = "store_error", str(e)
            logger.error(f"Product {product.id}: {e}")
        except Exception as e:
            status, error = "error", f"{type(e).__name__}: {e}"
            logger.exception(f"Product {product.id}: unexpected error: {e}")

        return JobResult(
            product_id=product.id,
            url=product.url,
            status=status,
            error=error,
            observation=observation,
        )

    async def run_batch(self, products: Iterable[TrackedProduct]) -> BatchSummary:
        """Scrape products one after another.

        Each product is independent: one failure never stops the rest.

        Args:
            products: Tracked products to scrape

        Returns:
            Per-product results with success/failure counts
        """
        started_at = self.clock()
        results = []

        for index, product in enumerate(products):
            if index and self.rate_limit_delay:
                await asyncio.sleep(self.rate_limit_delay)
            results.append(await self._run_isolated(product))

        summary = BatchSummary(started_at=started_at, finished_at=self.clock(), results=results)
        logger.info(
            f"Batch finished: {summary.succeeded}/{summary.total} succeeded, "
            f"{summary.failed} failed in {summary.duration_seconds:.1f}s"
        )
        return summary
