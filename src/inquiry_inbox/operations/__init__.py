"""Use cases: bulk mutations, statistics, and the async service facade."""

from .bulk import BulkActionEngine, parse_bulk_action
from .service import InquiryService
from .statistics import StatisticsAggregator

__all__ = [
    "BulkActionEngine",
    "InquiryService",
    "StatisticsAggregator",
    "parse_bulk_action",
]
