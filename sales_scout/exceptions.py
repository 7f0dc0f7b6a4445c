"""Custom exceptions for Sales Scout."""

from typing import Any, Optional


class SalesScoutError(Exception):
    """Base exception for Sales Scout."""

    def __init__(self, message: str, context: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}


class FetchError(SalesScoutError):
    """Page could not be retrieved (transport error, timeout, non-2xx)."""

    def __init__(self, url: str, reason: str, status_code: Optional[int] = None):
        super().__init__(
            f"Failed to fetch {url}: {reason}",
            {"url": url, "status_code": status_code},
        )
        self.url = url
        self.reason = reason
        self.status_code = status_code


class ExtractionAbsent(SalesScoutError):
    """Page was fetched but carries no usable sales data."""

    def __init__(self, url: str):
        super().__init__(f"No sales data found in {url}", {"url": url})
        self.url = url


class ConfigError(SalesScoutError):
    """Invalid configuration or registration input."""

    pass


class StoreError(SalesScoutError):
    """Persistence layer failure."""

    pass


class DuplicateProductError(StoreError):
    """A tracked product with the same URL already exists."""

    def __init__(self, url: str):
        super().__init__(f"Product already tracked: {url}", {"url": url})
        self.url = url


class ProductNotFoundError(SalesScoutError):
    """No tracked product with the given id."""

    def __init__(self, product_id: int):
        super().__init__(f"Product not found: {product_id}", {"product_id": product_id})
        self.product_id = product_id
