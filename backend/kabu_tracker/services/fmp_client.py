"""
Financial Modeling Prep (FMP) API Client

配当性向・配当利回り・負債資本倍率などの財務比率 (APIキー必須)
"""

import asyncio
import logging
from typing import Dict, Optional

from .http_client import request_json
from .sources.base import FinancialMetrics, MetricsSource
from .sources.yfinance_source import to_yahoo_symbol

logger = logging.getLogger(__name__)

FMP_API_BASE_URL = "https://financialmodelingprep.com/api/v3"


class FMPClient:
    """Financial Modeling Prep REST client"""

    def __init__(self, api_key: Optional[str], timeout: Optional[float] = None):
        self.api_key = api_key
        self.timeout = timeout

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def _get_latest(self, endpoint: str, code: str) -> Optional[Dict]:
        if not self.api_key:
            logger.warning("[FMP API] APIキーが設定されていません (FMP_API_KEY)")
            return None

        symbol = to_yahoo_symbol(code)
        logger.info(f"[FMP API] {endpoint} 取得: {symbol}")
        data = await request_json(
            "GET",
            f"{FMP_API_BASE_URL}/{endpoint}/{symbol}",
            params={"apikey": self.api_key},
            timeout=self.timeout,
            label="FMP API",
        )

        if not isinstance(data, list) or not data:
            logger.warning(f"[FMP API] {symbol} の {endpoint} が見つかりません")
            return None

        # Newest period first
        return data[0]

    async def get_financial_ratios(self, code: str) -> Optional[Dict]:
        """
        財務比率を取得

        Args:
            code: 銘柄コード

        Returns:
            Latest ratios row with equityRatio derived from debtEquityRatio
        """
        latest = await self._get_latest("ratios", code)
        if latest is None:
            return None

        debt_equity = latest.get("debtEquityRatio")
        equity_ratio = None
        if debt_equity is not None and debt_equity >= 0:
            equity_ratio = 1 / (1 + debt_equity) * 100

        return {
            "dividendPayoutRatio": latest.get("dividendPayoutRatio"),
            "dividendYield": latest.get("dividendYield"),
            "debtEquityRatio": debt_equity,
            "equityRatio": equity_ratio,
            "returnOnEquity": latest.get("returnOnEquity"),
            "priceToEarningsRatio": latest.get("priceEarningsRatio"),
            "priceToBookRatio": latest.get("priceToBookRatio"),
        }

    async def get_key_metrics(self, code: str) -> Optional[Dict]:
        return await self._get_latest("key-metrics", code)

    async def get_company_profile(self, code: str) -> Optional[Dict]:
        """企業プロファイルを取得"""
        profile = await self._get_latest("profile", code)
        if profile is None:
            return None

        return {
            "symbol": profile.get("symbol"),
            "companyName": profile.get("companyName"),
            "sector": profile.get("sector"),
            "industry": profile.get("industry"),
            "lastDividend": profile.get("lastDiv"),
            "beta": profile.get("beta"),
            "mktCap": profile.get("mktCap"),
        }

    async def get_all_financial_data(self, code: str) -> Dict:
        """Ratios, profile and key metrics fetched concurrently"""
        ratios, profile, key_metrics = await asyncio.gather(
            self.get_financial_ratios(code),
            self.get_company_profile(code),
            self.get_key_metrics(code),
        )
        return {"ratios": ratios, "profile": profile, "keyMetrics": key_metrics}


class FMPMetricsSource(MetricsSource):
    """FMP の財務比率を FinancialMetrics に正規化するソース"""

    name = "fmp"

    def __init__(self, client: FMPClient):
        self.client = client

    async def fetch(self, code: str) -> Optional[FinancialMetrics]:
        ratios = await self.client.get_financial_ratios(code)
        if ratios is None:
            return None

        key_metrics = await self.client.get_key_metrics(code) or {}

        def percent(value):
            return value * 100 if value is not None else None

        # FMP reports payout, yield and ROE as fractions
        metrics = FinancialMetrics(
            source=self.name,
            dividend_payout_ratio=percent(ratios["dividendPayoutRatio"]),
            dividend_yield=percent(ratios["dividendYield"]),
            equity_ratio=ratios["equityRatio"],
            debt_equity_ratio=ratios["debtEquityRatio"],
            roe=percent(ratios["returnOnEquity"]),
            per=ratios["priceToEarningsRatio"],
            pbr=ratios["priceToBookRatio"],
            eps=key_metrics.get("netIncomePerShare"),
            bps=key_metrics.get("bookValuePerShare"),
        )
        return metrics if metrics.has_data() else None
