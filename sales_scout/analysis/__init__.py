"""Analysis of stored sales observations"""

from .sales import SalesAnalyzer

__all__ = ["SalesAnalyzer"]
