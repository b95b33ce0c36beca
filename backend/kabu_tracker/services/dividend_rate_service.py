"""
Dividend Rate Service

一株配当 (年間) の取得
J-Quants (設定時) → yfinance (dividendRate) → 配当利回り × 株価
"""

import asyncio
import logging
from typing import Dict, Optional

from .jquants_client import JQuantsClient
from .sources.yfinance_source import fetch_ticker_info, safe_float

logger = logging.getLogger(__name__)

RATE_KEYS = ("dividendRate", "trailingAnnualDividendRate")


def annual_dividend_from_info(info: Dict) -> Optional[float]:
    """
    yfinance info から一株配当 (年間) を算出

    Falls back to trailing yield (fraction) times current price when no
    per-share rate is reported.
    """
    for key in RATE_KEYS:
        rate = safe_float(info.get(key))
        if rate and rate > 0:
            return rate

    price = safe_float(info.get("currentPrice")) or safe_float(info.get("regularMarketPrice"))
    trailing_yield = safe_float(info.get("trailingAnnualDividendYield"))
    if price and trailing_yield and trailing_yield > 0:
        return round(price * trailing_yield, 2)
    return None


class DividendRateService:
    """Service for annual dividend-per-share lookup"""

    def __init__(self, jquants: JQuantsClient):
        self.jquants = jquants

    async def get_annual_dividend(self, code: str) -> Optional[float]:
        """
        一株配当 (年間、円) を取得

        Returns:
            Amount in yen, or None when every source fails
        """
        if self.jquants.is_configured:
            amount = await self.jquants.get_annual_dividend(code)
            if amount:
                return amount
            logger.info(f"[配当] J-Quants から取得できず、yfinance を試行: {code}")

        loop = asyncio.get_running_loop()
        try:
            info = await loop.run_in_executor(None, fetch_ticker_info, code)
        except Exception as e:
            logger.warning(f"[配当] yfinance エラー ({code}): {e}")
            return None

        amount = annual_dividend_from_info(info or {})
        if amount is None:
            logger.warning(f"[配当] 一株配当を取得できませんでした: {code}")
        else:
            logger.info(f"[配当] yfinance から取得: {code} = {amount}円")
        return amount
