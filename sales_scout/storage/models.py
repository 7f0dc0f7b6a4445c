"""Database models for Sales Scout."""

from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import (
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    JSON,
    String,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()

# Largest counter an INTEGER column can hold
MAX_TOTAL_SOLD = 2**63 - 1


def utcnow() -> datetime:
    """Current UTC time as a naive datetime, the form stored in the database."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


# ============================================================================
# Pydantic Models (for data transfer)
# ============================================================================


class ExtractionResult(BaseModel):
    """Product data pulled out of a page's embedded script."""

    model_config = ConfigDict(populate_by_name=True)

    product_name: str = Field(default="", alias="productName")
    total_sold: int = Field(ge=0, le=MAX_TOTAL_SOLD, alias="totalSold")


class Observation(BaseModel):
    """One reading of a product's cumulative sold counter."""

    product_id: int
    timestamp: datetime
    total_sold: int = Field(ge=0, le=MAX_TOTAL_SOLD)


class AnalysisRow(BaseModel):
    """Sales activity derived for the interval ending at one observation."""

    timestamp: datetime
    total_sold: int
    delta_sold: int
    estimated_sets: int
    remainder_sales: int


class SalesSummary(BaseModel):
    """Aggregate over a sequence of analysis rows."""

    observations: int = 0
    total_delta: int = 0
    total_sets: int = 0
    latest_total_sold: Optional[int] = None
    negative_intervals: int = 0


class JobResult(BaseModel):
    """Outcome of scraping one product inside a batch."""

    product_id: int
    url: str
    status: str  # ok, fetch_failed, no_data, store_error, error
    error: Optional[str] = None
    observation: Optional[Observation] = None

    @property
    def ok(self) -> bool:
        return self.status == "ok"


class BatchSummary(BaseModel):
    """Result of one sequential pass over all tracked products."""

    started_at: datetime
    finished_at: datetime
    results: List[JobResult] = Field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results if r.ok)

    @property
    def failed(self) -> int:
        return self.total - self.succeeded

    @property
    def failures(self) -> List[JobResult]:
        return [r for r in self.results if not r.ok]

    @property
    def duration_seconds(self) -> float:
        return (self.finished_at - self.started_at).total_seconds()


# ============================================================================
# SQLAlchemy Models (for database)
# ============================================================================


class TrackedProduct(Base):
    """A product page whose sold counter is observed over time."""

    __tablename__ = "tracked_products"

    id = Column(Integer, primary_key=True)
    url = Column(String, unique=True, nullable=False)
    product_name = Column(String, default="", nullable=False)
    multiple_pattern = Column(Integer, nullable=False)  # units per set
    created_at = Column(DateTime, default=utcnow)

    # Relationships
    observations = relationship(
        "SalesObservation", back_populates="product", cascade="all, delete-orphan"
    )

    def __repr__(self):
        return f"<TrackedProduct(id={self.id}, url='{self.url}', multiple={self.multiple_pattern})>"


class SalesObservation(Base):
    """Append-only time series of the total sold counter."""

    __tablename__ = "sales_observations"

    id = Column(Integer, primary_key=True)
    product_id = Column(Integer, ForeignKey("tracked_products.id"), index=True, nullable=False)
    observed_at = Column(DateTime, default=utcnow, index=True, nullable=False)
    total_sold = Column(Integer, nullable=False)

    # Relationships
    product = relationship("TrackedProduct", back_populates="observations")

    def __repr__(self):
        return f"<SalesObservation(id={self.id}, product_id={self.product_id}, total_sold={self.total_sold})>"


class ScrapeRun(Base):
    """Track batch scrape runs for monitoring and debugging."""

    __tablename__ = "scrape_runs"

    id = Column(Integer, primary_key=True)
    started_at = Column(DateTime, default=utcnow)
    completed_at = Column(DateTime)
    status = Column(String)  # completed, partial, failed

    products_total = Column(Integer, default=0)
    products_succeeded = Column(Integer, default=0)
    products_failed = Column(Integer, default=0)
    errors = Column(JSON)
    duration_seconds = Column(Float)

    def __repr__(self):
        return f"<ScrapeRun(id={self.id}, status='{self.status}', total={self.products_total})>"
