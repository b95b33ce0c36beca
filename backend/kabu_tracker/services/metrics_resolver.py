"""
Metrics Resolver

財務指標のフォールバックチェーン
- 設定された順にソースを試し、最初に 1 項目でも取得できたソースの結果を返す
- ソース間のマージは行わない (first source with data wins as-is)
"""

import logging
from typing import List, Optional, Sequence

from ..config import Settings
from .edinet_client import EdinetClient, EdinetMetricsSource
from .fmp_client import FMPClient, FMPMetricsSource
from .sources import (
    FinancialMetrics,
    MetricsSource,
    MinkabuMetricsSource,
    YahooJapanMetricsSource,
    YFinanceMetricsSource,
)

logger = logging.getLogger(__name__)


class MetricsResolver:
    """Ordered, linear fallback over metrics source adapters"""

    def __init__(self, sources: Sequence[MetricsSource]):
        self.sources: List[MetricsSource] = list(sources)

    @property
    def source_names(self) -> List[str]:
        return [source.name for source in self.sources]

    async def resolve(self, code: str) -> Optional[FinancialMetrics]:
        """
        財務指標を取得

        Args:
            code: 銘柄コード (4桁)

        Returns:
            The first source's record that has any field, or None if all fail
        """
        logger.info(f"[財務指標] 取得開始: {code} (sources: {', '.join(self.source_names)})")

        for source in self.sources:
            try:
                metrics = await source.fetch(code)
            except Exception as e:
                logger.error(f"[財務指標] {source.name} でエラー ({code}): {e}")
                continue

            if metrics is not None and metrics.has_data():
                logger.info(f"[財務指標] {source.name} から取得: {code}")
                return metrics

            logger.info(f"[財務指標] {source.name} から取得できず、次のソースを試行")

        logger.warning(f"[財務指標] すべてのソースから取得できませんでした: {code}")
        return None


def build_metrics_sources(settings: Settings) -> List[MetricsSource]:
    """
    Build the configured source list (METRICS_SOURCES, in order)

    Keyed sources without a key and unknown names are skipped with a warning.
    """
    timeout = settings.scrape_timeout_seconds
    sources: List[MetricsSource] = []

    for name in settings.metrics_sources_list:
        if name == "yahoo_jp":
            sources.append(YahooJapanMetricsSource(timeout=timeout))
        elif name == "minkabu":
            sources.append(MinkabuMetricsSource(timeout=timeout))
        elif name == "yfinance":
            sources.append(YFinanceMetricsSource())
        elif name == "fmp":
            if not settings.fmp_api_key:
                logger.warning("FMP source configured but FMP_API_KEY is not set; skipping")
                continue
            sources.append(FMPMetricsSource(FMPClient(settings.fmp_api_key, timeout=timeout)))
        elif name == "edinet":
            if not settings.edinet_api_key:
                logger.warning("EDINET source configured but EDINET_API_KEY is not set; skipping")
                continue
            client = EdinetClient(settings.edinet_api_key, search_days=settings.edinet_search_days, timeout=timeout)
            sources.append(EdinetMetricsSource(client))
        else:
            logger.warning(f"Unknown metrics source '{name}' ignored")

    return sources
