"""
Metrics Source Adapters

財務指標ソースのアダプタ群
"""

from .base import FinancialMetrics, MetricsSource, HtmlMetricsSource, METRIC_FIELDS
from .yahoo_japan import YahooJapanMetricsSource
from .minkabu import MinkabuMetricsSource
from .yfinance_source import YFinanceMetricsSource

__all__ = [
    "FinancialMetrics",
    "MetricsSource",
    "HtmlMetricsSource",
    "METRIC_FIELDS",
    "YahooJapanMetricsSource",
    "MinkabuMetricsSource",
    "YFinanceMetricsSource",
]
