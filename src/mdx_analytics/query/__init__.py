"""Queries, trends and top items over stored documents."""
from .models import GroupBy, AnalyticsQuery, DataPoint, AnalyticsResult, PeriodTotals, TrendResult, TopItem
from .service import QueryService, regroup

__all__ = [
    "GroupBy",
    "AnalyticsQuery",
    "DataPoint",
    "AnalyticsResult",
    "PeriodTotals",
    "TrendResult",
    "TopItem",
    "QueryService",
    "regroup",
]
