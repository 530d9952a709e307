"""Aggregation of raw records into monthly summaries."""
from .models import Category, Record, DailyBucket, MonthlyAggregate, StoredDocument, DocumentRef
from .categories import CategoryStrategy, strategy_for, STRATEGIES
from .aggregator import Aggregator, group_by_month

__all__ = [
    "Category",
    "Record",
    "DailyBucket",
    "MonthlyAggregate",
    "StoredDocument",
    "DocumentRef",
    "CategoryStrategy",
    "strategy_for",
    "STRATEGIES",
    "Aggregator",
    "group_by_month",
]
