"""Job coordination for Sales Scout."""

from typing import Dict, List, Optional, Tuple

from loguru import logger

from ..analysis.sales import SalesAnalyzer
from ..exceptions import ConfigError, FetchError, ProductNotFoundError, StoreError
from ..scraping.extractor import ProductExtractor
from ..scraping.fetcher import PageFetcher
from ..scraping.job import ScrapeJob
from ..storage.database import Database
from ..storage.models import (
    AnalysisRow,
    BatchSummary,
    ExtractionResult,
    Observation,
    SalesSummary,
    TrackedProduct,
)
from ..utils.config import get_config


class JobCoordinator:
    """Coordinates tracking, scraping, and analysis."""

    def __init__(
        self,
        config: Optional[Dict] = None,
        db: Optional[Database] = None,
        fetcher: Optional[PageFetcher] = None,
    ):
        """Initialize job coordinator.

        Args:
            config: Optional configuration dictionary
            db: Optional database (defaults to the configured one)
            fetcher: Optional page fetcher (defaults to one built from config)
        """
        if config is None:
            config = get_config().model_dump()

        self.config = config
        scraping = config.get("scraping", {})

        if db is None:
            database = config.get("database", {})
            db = Database(
                database.get("url", "sqlite:///data/db/sales.db"),
                echo=database.get("echo", False),
            )
        self.db = db

        self.fetcher = fetcher or PageFetcher(scraping)
        self.extractor = ProductExtractor(
            max_literal_length=scraping.get("max_literal_length", 2_000_000)
        )
        self.job = ScrapeJob(
            self.fetcher,
            self.extractor,
            self.db,
            rate_limit_delay=scraping.get("rate_limit_delay", 2.0),
        )
        self.analyzer = SalesAnalyzer()

    def track_product(
        self, url: str, multiple_pattern: int, product_name: str = ""
    ) -> TrackedProduct:
        """Register a product page for tracking.

        Raises:
            ConfigError: invalid URL or multiple_pattern
            DuplicateProductError: URL already tracked
        """
        self.analyzer.validate_multiple_pattern(multiple_pattern)
        try:
            PageFetcher.validate_url(url)
        except FetchError as e:
            raise ConfigError(e.reason, {"url": url}) from e

        return self.db.add_tracked_product(url, multiple_pattern, product_name)

    def list_products(self) -> List[TrackedProduct]:
        """All tracked products."""
        return self.db.get_tracked_products()

    def get_product(self, product_id: int) -> TrackedProduct:
        """Get a tracked product or raise ProductNotFoundError."""
        product = self.db.get_tracked_product(product_id)
        if product is None:
            raise ProductNotFoundError(product_id)
        return product

    async def fetch_sales(self, url: str) -> ExtractionResult:
        """On-demand extraction for an arbitrary URL, nothing is stored.

        Raises:
            FetchError, ExtractionAbsent
        """
        logger.info(f"Fetching sales for {url}")
        return await self.job.fetch_sales(url)

    async def scrape_product(self, product_id: int) -> Observation:
        """On-demand scrape of one tracked product.

        Raises:
            ProductNotFoundError, FetchError, ExtractionAbsent, StoreError
        """
        product = self.get_product(product_id)
        return await self.job.execute(product)

    async def run_batch(self) -> BatchSummary:
        """Scrape every tracked product sequentially and record the run.

        Raises:
            StoreError: tracked products could not be loaded
        """
        products = self.db.get_tracked_products()
        logger.info(f"Starting batch scrape of {len(products)} products")

        summary = await self.job.run_batch(products)

        try:
            self.db.record_scrape_run(summary)
        except StoreError as e:
            logger.error(str(e))

        for failure in summary.failures:
            logger.warning(f"  product {failure.product_id} [{failure.status}] {failure.error}")

        return summary

    def analyze_product(
        self, product_id: int
    ) -> Tuple[TrackedProduct, List[AnalysisRow], SalesSummary]:
        """Analyze the stored history of one product.

        Raises:
            ProductNotFoundError, StoreError
        """
        product = self.get_product(product_id)
        observations = self.db.get_observations(product_id)
        rows = self.analyzer.analyze(observations, product.multiple_pattern)
        return product, rows, self.analyzer.summarize(rows)
