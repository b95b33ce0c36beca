"""
Quote Chart Client
Yahoo Finance chart API (v8) for Tokyo-listed stocks: name, price, history
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from .http_client import request_json

logger = logging.getLogger(__name__)

CHART_API_URL = "https://query1.finance.yahoo.com/v8/finance/chart/{symbol}"

HISTORY_PERIODS = {
    "1m": "1mo",
    "3m": "3mo",
    "6m": "6mo",
    "1y": "1y",
}


class QuoteChartClient:
    """Service for fetching quotes from the Yahoo Finance chart API"""

    def __init__(self, timeout: Optional[float] = None, request_delay: float = 0.1):
        """
        Initialize quote chart client

        Args:
            timeout: Per-request timeout in seconds (None = no limit)
            request_delay: Fixed pause between sequential per-stock requests
        """
        self.timeout = timeout
        self.request_delay = request_delay

    async def _get_chart(self, code: str, range_: str = "1d") -> Optional[Dict]:
        """Fetch the first chart result for a code, None when unavailable"""
        symbol = f"{code}.T"
        data = await request_json(
            "GET",
            CHART_API_URL.format(symbol=symbol),
            params={"interval": "1d", "range": range_},
            timeout=self.timeout,
            label="Yahoo Chart",
        )
        if not data:
            return None

        chart = data.get("chart") or {}
        if chart.get("error"):
            logger.warning(f"[Yahoo Chart] {symbol}: {chart['error'].get('description')}")
            return None

        results = chart.get("result") or []
        if not results:
            logger.warning(f"[Yahoo Chart] 銘柄が見つかりません: {symbol}")
            return None
        return results[0]

    async def get_stock_name(self, code: str) -> Optional[str]:
        """
        銘柄名を取得

        Args:
            code: 銘柄コード (4桁)

        Returns:
            Long name, short name, or bare symbol; None if the code is unknown
        """
        result = await self._get_chart(code)
        if result is None:
            return None

        meta = result.get("meta") or {}
        name = meta.get("longName") or meta.get("shortName") or (meta.get("symbol") or "").replace(".T", "")
        return name or None

    async def get_stock_price(self, code: str) -> Optional[float]:
        """現在株価 (円) を取得; None when missing or non-positive"""
        result = await self._get_chart(code)
        if result is None:
            return None

        price = (result.get("meta") or {}).get("regularMarketPrice")
        if not price or price <= 0:
            logger.warning(f"[Yahoo Chart] 有効な株価データがありません: {code}")
            return None
        return float(price)

    async def get_stock_prices(self, codes: List[str]) -> Dict[str, Optional[float]]:
        """
        複数銘柄の株価を順次取得

        Requests run one after another with a fixed delay between them.
        """
        prices: Dict[str, Optional[float]] = {}
        for index, code in enumerate(codes):
            if index and self.request_delay:
                await asyncio.sleep(self.request_delay)
            prices[code] = await self.get_stock_price(code)
        return prices

    async def get_stock_history(self, code: str, period: str = "1m") -> Optional[List[Dict]]:
        """
        過去株価 (日次終値) を取得

        Args:
            code: 銘柄コード (4桁)
            period: One of 1m, 3m, 6m, 1y

        Returns:
            [{"date": "YYYY-MM-DD", "price": float}, ...] oldest first, or None
        """
        if period not in HISTORY_PERIODS:
            raise ValueError(f"Unsupported period: {period}")

        result = await self._get_chart(code, HISTORY_PERIODS[period])
        if result is None:
            return None

        timestamps = result.get("timestamp") or []
        quotes = (result.get("indicators") or {}).get("quote") or [{}]
        closes = quotes[0].get("close") or []
        if not timestamps or not closes:
            logger.warning(f"[Yahoo Chart] 株価データが取得できませんでした: {code} ({period})")
            return None

        history = []
        for timestamp, close in zip(timestamps, closes):
            if not close or close <= 0:
                continue
            day = datetime.fromtimestamp(timestamp, tz=timezone.utc).date().isoformat()
            history.append({"date": day, "price": float(close)})
        return history
