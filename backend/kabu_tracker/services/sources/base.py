"""
Base Metrics Source

財務指標ソースの基底クラス
- FinancialMetrics: 正規化された財務指標レコード
- MetricsSource: fetch(code) -> FinancialMetrics | None を実装するアダプタ
- HtmlMetricsSource: 1 回の GET + 項目ごとの正規表現パターン群で抽出
"""

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Optional, Pattern

from ..http_client import fetch_text

logger = logging.getLogger(__name__)

METRIC_FIELDS = (
    "dividend_payout_ratio",  # 配当性向 (%)
    "dividend_yield",         # 配当利回り (%)
    "equity_ratio",           # 自己資本比率 (%)
    "debt_equity_ratio",      # 負債資本倍率 (倍)
    "roe",                    # ROE (%)
    "per",                    # PER (倍)
    "pbr",                    # PBR (倍)
    "eps",                    # EPS (円)
    "bps",                    # BPS (円)
)


@dataclass
class FinancialMetrics:
    """財務指標 (transient, built per request)"""

    source: str
    dividend_payout_ratio: Optional[float] = None
    dividend_yield: Optional[float] = None
    equity_ratio: Optional[float] = None
    debt_equity_ratio: Optional[float] = None
    roe: Optional[float] = None
    per: Optional[float] = None
    pbr: Optional[float] = None
    eps: Optional[float] = None
    bps: Optional[float] = None

    def has_data(self) -> bool:
        """True when at least one metric was extracted"""
        return any(getattr(self, name) is not None for name in METRIC_FIELDS)

    def matched_fields(self) -> List[str]:
        return [name for name in METRIC_FIELDS if getattr(self, name) is not None]


def parse_number(raw: Optional[str]) -> Optional[float]:
    """Parse a scraped number such as '1,234.5'; None when not numeric"""
    if raw is None:
        return None
    try:
        return float(raw.replace(",", "").strip())
    except ValueError:
        return None


class MetricsSource(ABC):
    """財務指標ソースのアダプタ"""

    name: str = "base"

    @abstractmethod
    async def fetch(self, code: str) -> Optional[FinancialMetrics]:
        """
        財務指標を取得

        Args:
            code: 銘柄コード (4桁)

        Returns:
            FinancialMetrics with at least one field, or None
        """


class HtmlMetricsSource(MetricsSource):
    """
    HTML ページから正規表現で財務指標を抽出するソース

    Subclasses provide `url_template` and `patterns`: for every metric a list
    of alternate regexes whose first group is the number. The first pattern
    that matches wins; a field with no match stays None.
    """

    url_template: str = ""
    patterns: Dict[str, List[str]] = {}

    def __init__(self, timeout: Optional[float] = None):
        self.timeout = timeout
        self._compiled: Dict[str, List[Pattern]] = {
            field_name: [re.compile(pattern) for pattern in alternates]
            for field_name, alternates in self.patterns.items()
        }

    def build_url(self, code: str) -> str:
        return self.url_template.format(code=code)

    async def fetch(self, code: str) -> Optional[FinancialMetrics]:
        url = self.build_url(code)
        logger.info(f"[{self.name}] 財務指標取得: {url}")

        html = await fetch_text(url, timeout=self.timeout, label=self.name)
        if html is None:
            return None

        metrics = self.parse(html)
        if metrics is None:
            logger.warning(f"[{self.name}] データを抽出できませんでした ({code})")
            return None

        logger.info(f"[{self.name}] 取得成功 ({code}): {metrics.matched_fields()}")
        return metrics

    def parse(self, html: str) -> Optional[FinancialMetrics]:
        """
        Run every field's pattern battery against raw HTML

        Returns:
            FinancialMetrics tagged with this source, or None if nothing matched
        """
        metrics = FinancialMetrics(source=self.name)
        for field_name, alternates in self._compiled.items():
            for pattern in alternates:
                match = pattern.search(html)
                if not match:
                    continue
                value = parse_number(match.group(1))
                if value is not None:
                    setattr(metrics, field_name, value)
                    break

        return metrics if metrics.has_data() else None
