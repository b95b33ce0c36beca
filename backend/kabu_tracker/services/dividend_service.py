"""
Dividend Service
配当履歴の登録・取得・削除
"""

import logging
from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..exceptions import NotFoundError
from ..models import Dividend, Stock
from .validation import validate_amount, validate_stock_id, validate_year

logger = logging.getLogger(__name__)


class DividendService:
    """Service for per-stock dividend history"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _ensure_stock(self, stock_id: int):
        if await self.db.get(Stock, stock_id) is None:
            raise NotFoundError()

    async def add_dividend(self, stock_id, amount, year) -> Dividend:
        """
        配当を登録

        Input is validated before the database is touched.

        Raises:
            ValidationError: stock_id / amount / year が不正
            NotFoundError: 該当銘柄なし
        """
        stock_id = validate_stock_id(stock_id)
        amount = validate_amount(amount, "amount", "配当金額", allow_zero=False)
        year = validate_year(year)

        await self._ensure_stock(stock_id)

        dividend = Dividend(stock_id=stock_id, amount=amount, year=year)
        self.db.add(dividend)
        await self.db.commit()
        await self.db.refresh(dividend)

        logger.info(f"配当を登録しました: stock_id={stock_id} {year}年 {amount}円")
        return dividend

    async def list_dividends(self, stock_id) -> List[Dividend]:
        """配当履歴 (年度の新しい順、同年度は登録の新しい順)"""
        stock_id = validate_stock_id(stock_id)
        result = await self.db.execute(
            select(Dividend)
            .where(Dividend.stock_id == stock_id)
            .order_by(Dividend.year.desc(), Dividend.created_at.desc(), Dividend.id.desc())
        )
        return list(result.scalars().all())

    async def delete_dividend(self, dividend_id: int) -> dict:
        dividend = await self.db.get(Dividend, dividend_id)
        if dividend is None:
            raise NotFoundError("配当データが見つかりません")

        deleted = dividend.to_dict()
        await self.db.delete(dividend)
        await self.db.commit()

        logger.info(f"配当を削除しました: id={dividend_id}")
        return deleted
