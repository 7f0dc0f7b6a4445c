"""Page fetching, product extraction and scrape jobs"""

from .extractor import ProductExtractor, find_balanced_literal
from .fetcher import PageFetcher
from .job import ScrapeJob

__all__ = ["PageFetcher", "ProductExtractor", "ScrapeJob", "find_balanced_literal"]
