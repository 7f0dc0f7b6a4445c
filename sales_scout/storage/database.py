"""Database operations and management"""

from contextlib import contextmanager
from pathlib import Path
from typing import Optional

from loguru import logger
from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from ..exceptions import DuplicateProductError, StoreError
from .models import (
    Base,
    BatchSummary,
    Observation,
    SalesObservation,
    ScrapeRun,
    TrackedProduct,
    utcnow,
)


class Database:
    """Database management class"""

    def __init__(self, db_url: str = "sqlite:///data/db/sales.db", echo: bool = False):
        self.db_url = db_url

        engine_args = {}
        url = make_url(db_url)
        if url.get_backend_name() == "sqlite":
            engine_args["connect_args"] = {"check_same_thread": False}
            if url.database and url.database != ":memory:":
                Path(url.database).parent.mkdir(parents=True, exist_ok=True)
            else:
                # In-memory database lives on a single shared connection
                engine_args["poolclass"] = StaticPool

        self.engine = create_engine(db_url, echo=echo, **engine_args)
        Base.metadata.create_all(self.engine)
        self.Session = sessionmaker(bind=self.engine, expire_on_commit=False)
        logger.info(f"Database initialized: {db_url}")

    @contextmanager
    def session(self):
        """Context manager for database sessions"""
        session = self.Session()
        try:
            yield session
            session.commit()
        except Exception as e:
            session.rollback()
            logger.error(f"Database session error: {e}")
            raise
        finally:
            session.close()

    # ------------------------------------------------------------------
    # Tracked products
    # ------------------------------------------------------------------

    def add_tracked_product(
        self, url: str, multiple_pattern: int, product_name: str = ""
    ) -> TrackedProduct:
        """Register a product page for tracking.

        Raises:
            DuplicateProductError: the URL is already tracked
        """
        try:
            with self.session() as session:
                product = TrackedProduct(
                    url=url,
                    product_name=product_name or "",
                    multiple_pattern=multiple_pattern,
                    created_at=utcnow(),
                )
                session.add(product)
                session.flush()
                logger.info(f"Tracking product {product.id}: {url} (x{multiple_pattern})")
                return product
        except IntegrityError as e:
            raise DuplicateProductError(url) from e
        except SQLAlchemyError as e:
            raise StoreError(f"Could not add product {url}: {e}") from e

    def get_tracked_product(self, product_id: int) -> Optional[TrackedProduct]:
        """Get a single tracked product by ID"""
        try:
            with self.session() as session:
                product = session.get(TrackedProduct, product_id)
                if product:
                    session.expunge(product)
                return product
        except SQLAlchemyError as e:
            raise StoreError(f"Could not load product {product_id}: {e}") from e

    def get_tracked_product_by_url(self, url: str) -> Optional[TrackedProduct]:
        """Get a tracked product by its page URL"""
        try:
            with self.session() as session:
                product = session.query(TrackedProduct).filter(TrackedProduct.url == url).first()
                if product:
                    session.expunge(product)
                return product
        except SQLAlchemyError as e:
            raise StoreError(f"Could not load product {url}: {e}") from e

    def get_tracked_products(self) -> list[TrackedProduct]:
        """Get all tracked products in registration order"""
        try:
            with self.session() as session:
                products = session.query(TrackedProduct).order_by(TrackedProduct.id).all()
                session.expunge_all()
                return products
        except SQLAlchemyError as e:
            raise StoreError(f"Could not list tracked products: {e}") from e

    def update_product_name(self, product_id: int, product_name: str) -> None:
        """Backfill the display name of a tracked product"""
        try:
            with self.session() as session:
                product = session.get(TrackedProduct, product_id)
                if product:
                    product.product_name = product_name
        except SQLAlchemyError as e:
            raise StoreError(f"Could not update name of product {product_id}: {e}") from e

    # ------------------------------------------------------------------
    # Observations
    # ------------------------------------------------------------------

    def append_observation(self, observation: Observation) -> Observation:
        """Append one observation to a product's time series"""
        try:
            with self.session() as session:
                session.add(
                    SalesObservation(
                        product_id=observation.product_id,
                        observed_at=observation.timestamp,
                        total_sold=observation.total_sold,
                    )
                )
        except (SQLAlchemyError, OverflowError) as e:
            raise StoreError(
                f"Could not store observation for product {observation.product_id}: {e}",
                {"product_id": observation.product_id},
            ) from e

        logger.debug(
            f"Stored observation: product {observation.product_id} total_sold={observation.total_sold}"
        )
        return observation

    def get_observations(
        self, product_id: int, limit: Optional[int] = None
    ) -> list[Observation]:
        """Get observations for a product, oldest first"""
        try:
            with self.session() as session:
                query = (
                    session.query(SalesObservation)
                    .filter(SalesObservation.product_id == product_id)
                    .order_by(SalesObservation.observed_at.asc(), SalesObservation.id.asc())
                )

                if limit:
                    query = query.limit(limit)

                return [
                    Observation(
                        product_id=row.product_id,
                        timestamp=row.observed_at,
                        total_sold=row.total_sold,
                    )
                    for row in query.all()
                ]
        except SQLAlchemyError as e:
            raise StoreError(
                f"Could not load observations for product {product_id}: {e}",
                {"product_id": product_id},
            ) from e

    def count_observations(self, product_id: Optional[int] = None) -> int:
        """Count stored observations, optionally for one product"""
        try:
            with self.session() as session:
                query = session.query(SalesObservation)
                if product_id is not None:
                    query = query.filter(SalesObservation.product_id == product_id)
                return query.count()
        except SQLAlchemyError as e:
            raise StoreError(f"Could not count observations: {e}") from e

    # ------------------------------------------------------------------
    # Scrape runs
    # ------------------------------------------------------------------

    def record_scrape_run(self, summary: BatchSummary) -> None:
        """Record a batch run completion"""
        if summary.failed == 0:
            status = "completed"
        elif summary.succeeded == 0:
            status = "failed"
        else:
            status = "partial"

        try:
            with self.session() as session:
                run = ScrapeRun(
                    started_at=summary.started_at,
                    completed_at=summary.finished_at,
                    status=status,
                    products_total=summary.total,
                    products_succeeded=summary.succeeded,
                    products_failed=summary.failed,
                    errors=[
                        {"product_id": r.product_id, "status": r.status, "error": r.error}
                        for r in summary.failures
                    ],
                    duration_seconds=summary.duration_seconds,
                )
                session.add(run)
        except SQLAlchemyError as e:
            raise StoreError(f"Could not record scrape run: {e}") from e

    def get_last_scrape_run(self) -> Optional[ScrapeRun]:
        """Get the most recent batch run record"""
        try:
            with self.session() as session:
                run = session.query(ScrapeRun).order_by(ScrapeRun.id.desc()).first()
                if run:
                    session.expunge(run)
                return run
        except SQLAlchemyError as e:
            raise StoreError(f"Could not load the last scrape run: {e}") from e
