"""
Portfolio Service
保有銘柄の評価額・損益・年間配当の集計
"""

import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from .quote_chart_client import QuoteChartClient
from .stock_service import StockService

logger = logging.getLogger(__name__)


def _round(value: Optional[float], digits: int = 2) -> Optional[float]:
    return round(value, digits) if value is not None else None


class PortfolioService:
    """Service for portfolio valuation"""

    def __init__(self, stock_service: StockService, quote_client: QuoteChartClient):
        """
        Initialize portfolio service

        Args:
            stock_service: Stock persistence service
            quote_client: Quote client (prices fetched sequentially with a fixed delay)
        """
        self.stock_service = stock_service
        self.quote_client = quote_client

    async def get_summary(self) -> Dict:
        """
        ポートフォリオのサマリー

        A stock whose price cannot be fetched keeps null valuation fields
        and is left out of the valued totals.

        Returns:
            Dictionary with per-stock positions and totals
        """
        stocks = await self.stock_service.list_stocks()
        prices = await self.quote_client.get_stock_prices([stock.code for stock in stocks])

        positions: List[Dict] = []
        total_purchase = 0.0
        total_value = 0.0
        valued_purchase = 0.0
        annual_dividend = 0.0

        for stock in stocks:
            price = prices.get(stock.code)
            current_value = price * stock.shares if price is not None else None
            pnl = current_value - stock.purchase_amount if current_value is not None else None
            pnl_pct = None
            if pnl is not None and stock.purchase_amount > 0:
                pnl_pct = pnl / stock.purchase_amount * 100

            dividend_income = None
            if stock.dividend_amount is not None:
                dividend_income = stock.dividend_amount * stock.shares
                annual_dividend += dividend_income

            total_purchase += stock.purchase_amount
            if current_value is not None:
                total_value += current_value
                valued_purchase += stock.purchase_amount

            positions.append({
                'id': stock.id,
                'code': stock.code,
                'name': stock.name,
                'shares': stock.shares,
                'purchase_amount': stock.purchase_amount,
                'current_price': price,
                'current_value': _round(current_value),
                'pnl': _round(pnl),
                'pnl_pct': _round(pnl_pct),
                'annual_dividend': _round(dividend_income),
            })

        total_pnl = total_value - valued_purchase
        total_pnl_pct = total_pnl / valued_purchase * 100 if valued_purchase > 0 else None
        unpriced = sum(1 for position in positions if position['current_price'] is None)
        if unpriced:
            logger.warning(f"株価を取得できなかった銘柄があります: {unpriced}/{len(positions)}")

        return {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'positions': positions,
            'position_count': len(positions),
            'unpriced_count': unpriced,
            'total_purchase_amount': _round(total_purchase),
            'total_value': _round(total_value),
            'total_pnl': _round(total_pnl),
            'total_pnl_pct': _round(total_pnl_pct),
            'annual_dividend': _round(annual_dividend),
        }
