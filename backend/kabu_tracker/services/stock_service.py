"""
Stock Service
保有銘柄の登録・更新・削除
"""

import logging
from typing import Dict, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import Settings, get_settings
from ..exceptions import DuplicateStockError, NotFoundError
from ..models import Analysis, Dividend, Stock
from .quote_chart_client import QuoteChartClient
from .stock_info_service import StockInfo
from .validation import (
    normalize_memo,
    normalize_payout_ratio,
    validate_amount,
    validate_code,
    validate_name,
    validate_shares,
)

logger = logging.getLogger(__name__)


class StockService:
    """Service for managing stock holdings"""

    def __init__(self, db: AsyncSession, settings: Optional[Settings] = None):
        """
        Initialize stock service

        Args:
            db: Database session
            settings: Application settings (optional, for testing)
        """
        self.db = db
        self.settings = settings or get_settings()

    async def list_stocks(self) -> List[Stock]:
        """全銘柄 (新しい順)"""
        result = await self.db.execute(
            select(Stock).order_by(Stock.created_at.desc(), Stock.id.desc())
        )
        return list(result.scalars().all())

    async def get_stock(self, stock_id: int) -> Stock:
        """
        銘柄を取得

        Raises:
            NotFoundError: 該当銘柄なし
        """
        stock = await self.db.get(Stock, stock_id)
        if stock is None:
            raise NotFoundError()
        return stock

    async def find_by_code(self, code: str) -> Optional[Stock]:
        result = await self.db.execute(select(Stock).where(Stock.code == code))
        return result.scalar_one_or_none()

    async def _ensure_code_available(self, code: str, exclude_id: Optional[int] = None):
        existing = await self.find_by_code(code)
        if existing is not None and existing.id != exclude_id:
            raise DuplicateStockError()

    async def _save(self, stock: Stock) -> Stock:
        await self.db.commit()
        await self.db.refresh(stock)
        return stock

    async def create_stock(
        self,
        code,
        name,
        purchase_price,
        shares,
        purchase_amount,
    ) -> Stock:
        """
        銘柄を手動登録 (取得情報あり)

        Raises:
            ValidationError: 入力不正
            DuplicateStockError: 登録済みの銘柄コード
        """
        code = validate_code(code)
        name = validate_name(name)
        purchase_price = validate_amount(purchase_price, "purchase_price", "取得株価", allow_zero=False)
        shares = validate_shares(shares, allow_zero=False)
        purchase_amount = validate_amount(purchase_amount, "purchase_amount", "取得時金額", allow_zero=False)

        await self._ensure_code_available(code)

        stock = Stock(
            code=code,
            name=name,
            purchase_price=purchase_price,
            shares=shares,
            purchase_amount=purchase_amount,
        )
        self.db.add(stock)
        await self._save(stock)

        logger.info(f"銘柄を登録しました: {code} {name} ({shares}株)")
        return stock

    async def register_stock(self, code, quote_client: QuoteChartClient) -> Stock:
        """
        銘柄コードのみで登録 (銘柄名は自動取得、保有情報は 0)

        Args:
            code: 銘柄コード (4桁)
            quote_client: 銘柄名の取得に使うクライアント

        Raises:
            ValidationError: 銘柄コード不正
            DuplicateStockError: 登録済み
            NotFoundError: 銘柄名を取得できない (存在しないコード)
        """
        code = validate_code(code)
        await self._ensure_code_available(code)

        name = await quote_client.get_stock_name(code)
        if not name:
            logger.warning(f"銘柄名を取得できませんでした: {code}")
            raise NotFoundError("銘柄情報を取得できませんでした。正しい銘柄コードか確認してください")

        stock = Stock(code=code, name=name, purchase_price=0, shares=0, purchase_amount=0)
        self.db.add(stock)
        await self._save(stock)

        logger.info(f"銘柄を登録しました: {code} {name}")
        return stock

    async def update_stock(self, stock_id: int, data: Dict) -> Stock:
        """
        銘柄情報を更新

        Args:
            stock_id: 銘柄ID
            data: code, name, purchase_price, shares, purchase_amount と
                任意の memo, industry, payout_ratio

        Raises:
            ValidationError: 入力不正 (I/O の前に検証)
            NotFoundError: 該当銘柄なし
            DuplicateStockError: 変更後のコードが他の銘柄と重複
        """
        code = validate_code(data.get("code"))
        name = validate_name(data.get("name"))
        purchase_price = validate_amount(data.get("purchase_price"), "purchase_price", "取得株価")
        shares = validate_shares(data.get("shares"))
        purchase_amount = validate_amount(data.get("purchase_amount"), "purchase_amount", "取得時金額")
        memo = normalize_memo(data.get("memo"), self.settings.memo_max_length)
        payout_ratio = normalize_payout_ratio(data.get("payout_ratio"))
        industry = data.get("industry") or None

        stock = await self.get_stock(stock_id)
        if code != stock.code:
            await self._ensure_code_available(code, exclude_id=stock.id)

        stock.code = code
        stock.name = name
        stock.purchase_price = purchase_price
        stock.shares = shares
        stock.purchase_amount = purchase_amount
        stock.memo = memo
        if "industry" in data:
            stock.industry = industry
        if "payout_ratio" in data:
            stock.payout_ratio = payout_ratio

        await self._save(stock)
        logger.info(f"銘柄を更新しました: {stock.code} (id={stock.id})")
        return stock

    async def delete_stock(self, stock_id: int) -> Dict:
        """
        銘柄を削除 (配当履歴・分析履歴も削除)

        Returns:
            Deleted row as a dict

        Raises:
            NotFoundError: 該当銘柄なし (削除済みを含む)
        """
        stock = await self.get_stock(stock_id)
        deleted = stock.to_dict()

        await self.db.execute(delete(Dividend).where(Dividend.stock_id == stock_id))
        await self.db.execute(delete(Analysis).where(Analysis.stock_id == stock_id))
        await self.db.delete(stock)
        await self.db.commit()

        logger.info(f"銘柄を削除しました: {deleted['code']} (id={stock_id})")
        return deleted

    async def set_dividend_amount(self, stock_id: int, dividend_amount) -> Stock:
        """設定配当金 (1株あたり年間) を更新; None でクリア"""
        if dividend_amount is not None:
            dividend_amount = validate_amount(dividend_amount, "dividend_amount", "配当金額")

        stock = await self.get_stock(stock_id)
        stock.dividend_amount = dividend_amount
        return await self._save(stock)

    async def update_info(self, stock: Stock, info: StockInfo) -> Stock:
        """取得した業種・配当性向をキャッシュ (取得できた項目のみ上書き)"""
        if info.industry:
            stock.industry = info.industry
        if info.payout_ratio is not None:
            stock.payout_ratio = normalize_payout_ratio(info.payout_ratio)
        return await self._save(stock)
