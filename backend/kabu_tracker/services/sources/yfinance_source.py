"""
yfinance Metrics Source

Yahoo Finance quote summary (yfinance) からの財務指標
- 最後のフォールバック (HTML スクレイピングが両方失敗した場合)
- 一株配当 (年間) の取得にも使用
"""

import asyncio
import logging
from typing import Dict, Optional

import yfinance as yf

from .base import FinancialMetrics, MetricsSource

logger = logging.getLogger(__name__)


def to_yahoo_symbol(code: str) -> str:
    """東証銘柄コードを Yahoo シンボルに変換 (7203 -> 7203.T)"""
    return code if code.endswith(".T") else f"{code}.T"


def safe_float(value) -> Optional[float]:
    """安全に float 変換"""
    try:
        if value is None or value == 'N/A':
            return None
        return float(value)
    except (ValueError, TypeError):
        return None


def fetch_ticker_info(code: str) -> Dict:
    """Yahoo Finance から info を取得 (同期関数; executor で実行する)"""
    return yf.Ticker(to_yahoo_symbol(code)).info


def _percent(value) -> Optional[float]:
    number = safe_float(value)
    return number * 100 if number is not None else None


class YFinanceMetricsSource(MetricsSource):
    """yfinance Ticker.info を正規化するソース"""

    name = "yfinance"

    async def fetch(self, code: str) -> Optional[FinancialMetrics]:
        loop = asyncio.get_running_loop()
        try:
            info = await loop.run_in_executor(None, fetch_ticker_info, code)
        except Exception as e:
            logger.warning(f"[yfinance] Failed to fetch info for {code}: {e}")
            return None

        if not info:
            logger.warning(f"[yfinance] No info for {code}")
            return None

        metrics = self.normalize(info)
        if not metrics.has_data():
            logger.warning(f"[yfinance] データを抽出できませんでした ({code})")
            return None

        logger.info(f"[yfinance] 取得成功 ({code}): {metrics.matched_fields()}")
        return metrics

    def normalize(self, info: Dict) -> FinancialMetrics:
        """
        Map a yfinance info dict onto FinancialMetrics

        yfinance reports payout ratio and ROE as fractions and debt/equity
        as a percentage; these are rescaled to %, %, and times.
        """
        price = safe_float(info.get('currentPrice')) or safe_float(info.get('regularMarketPrice'))
        dividend_rate = safe_float(info.get('dividendRate')) or safe_float(info.get('trailingAnnualDividendRate'))

        dividend_yield = None
        if dividend_rate and price:
            dividend_yield = dividend_rate / price * 100

        debt_equity = safe_float(info.get('debtToEquity'))
        debt_equity_ratio = debt_equity / 100 if debt_equity is not None else None
        equity_ratio = None
        if debt_equity_ratio is not None and debt_equity_ratio >= 0:
            equity_ratio = 1 / (1 + debt_equity_ratio) * 100

        return FinancialMetrics(
            source=self.name,
            dividend_payout_ratio=_percent(info.get('payoutRatio')),
            dividend_yield=dividend_yield,
            equity_ratio=equity_ratio,
            debt_equity_ratio=debt_equity_ratio,
            roe=_percent(info.get('returnOnEquity')),
            per=safe_float(info.get('trailingPE')) or safe_float(info.get('forwardPE')),
            pbr=safe_float(info.get('priceToBook')),
            eps=safe_float(info.get('trailingEps')),
            bps=safe_float(info.get('bookValue')),
        )
