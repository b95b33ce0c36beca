"""
Stocks API Routes

保有銘柄の CRUD と、株価・株価履歴・業種/配当性向・財務指標の取得
"""

import asyncio
import logging
from typing import Dict, Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel

from ..auth import require_session
from ..config import Settings, get_settings
from ..dependencies import (
    get_dividend_rate_service,
    get_dividend_service,
    get_metrics_resolver,
    get_quote_client,
    get_stock_info_service,
    get_stock_service,
)
from ..exceptions import UpstreamUnavailableError, ValidationError, soft_failure
from ..services.dividend_rate_service import DividendRateService
from ..services.dividend_service import DividendService
from ..services.metrics_resolver import MetricsResolver
from ..services.quote_chart_client import HISTORY_PERIODS, QuoteChartClient
from ..services.sources.base import FinancialMetrics
from ..services.stock_info_service import StockInfoService
from ..services.stock_service import StockService

router = APIRouter(prefix="/api/stocks", tags=["stocks"], dependencies=[Depends(require_session)])
logger = logging.getLogger(__name__)


class StockCreateRequest(BaseModel):
    """Request model for manual stock registration"""
    code: str
    name: str
    purchase_price: float
    shares: int
    purchase_amount: float


class StockRegisterRequest(BaseModel):
    """Request model for code-only registration"""
    code: str


class StockUpdateRequest(BaseModel):
    """Request model for stock updates"""
    code: str
    name: str
    purchase_price: float
    shares: int
    purchase_amount: float
    memo: Optional[str] = None
    industry: Optional[str] = None
    payout_ratio: Optional[float] = None


class DividendAmountRequest(BaseModel):
    """Request model for the configured annual dividend per share"""
    dividend_amount: Optional[float]


def _fixed(value: Optional[float]) -> Optional[str]:
    return f"{value:.2f}" if value is not None else None


def format_financials(metrics: FinancialMetrics) -> Dict[str, Optional[str]]:
    """財務指標を小数点以下2桁の文字列に整形"""
    return {
        "dividendPayoutRatio": _fixed(metrics.dividend_payout_ratio),
        "dividendYield": _fixed(metrics.dividend_yield),
        "equityRatio": _fixed(metrics.equity_ratio),
        "debtEquityRatio": _fixed(metrics.debt_equity_ratio),
        "returnOnEquity": _fixed(metrics.roe),
        "priceToEarningsRatio": _fixed(metrics.per),
        "priceToBookRatio": _fixed(metrics.pbr),
        "eps": _fixed(metrics.eps),
        "bps": _fixed(metrics.bps),
    }


@router.get("")
async def list_stocks(service: StockService = Depends(get_stock_service)):
    """全銘柄を取得 (新しい順)"""
    stocks = await service.list_stocks()
    return [stock.to_dict() for stock in stocks]


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_stock(
    request: StockCreateRequest,
    service: StockService = Depends(get_stock_service),
):
    """銘柄を登録 (取得株価・株数・取得時金額あり)"""
    stock = await service.create_stock(
        request.code,
        request.name,
        request.purchase_price,
        request.shares,
        request.purchase_amount,
    )
    return stock.to_dict()


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register_stock(
    request: StockRegisterRequest,
    service: StockService = Depends(get_stock_service),
    quote_client: QuoteChartClient = Depends(get_quote_client),
):
    """
    銘柄コードのみで登録

    銘柄名は自動取得し、保有情報は 0 で作成する
    """
    stock = await service.register_stock(request.code, quote_client)
    return stock.to_dict()


@router.get("/{stock_id}")
async def get_stock(
    stock_id: int,
    service: StockService = Depends(get_stock_service),
    dividend_service: DividendService = Depends(get_dividend_service),
):
    """銘柄と配当履歴を取得"""
    stock = await service.get_stock(stock_id)
    dividends = await dividend_service.list_dividends(stock.id)
    return {**stock.to_dict(), "dividends": [dividend.to_dict() for dividend in dividends]}


@router.put("/{stock_id}")
async def update_stock(
    stock_id: int,
    request: StockUpdateRequest,
    service: StockService = Depends(get_stock_service),
):
    """銘柄情報を更新"""
    stock = await service.update_stock(stock_id, request.model_dump(exclude_unset=True))
    return stock.to_dict()


@router.delete("/{stock_id}")
async def delete_stock(stock_id: int, service: StockService = Depends(get_stock_service)):
    """銘柄を削除 (配当・分析履歴を含む)"""
    deleted = await service.delete_stock(stock_id)
    return {"success": True, "message": "銘柄を削除しました", "stock": deleted}


@router.put("/{stock_id}/dividend")
async def update_dividend_amount(
    stock_id: int,
    request: DividendAmountRequest,
    service: StockService = Depends(get_stock_service),
):
    """設定配当金を更新 (上書き、null でクリア)"""
    stock = await service.set_dividend_amount(stock_id, request.dividend_amount)
    return stock.to_dict()


@router.post("/{stock_id}/dividend/refresh")
async def refresh_dividend_amount(
    stock_id: int,
    service: StockService = Depends(get_stock_service),
    rate_service: DividendRateService = Depends(get_dividend_rate_service),
):
    """外部ソースから一株配当 (年間) を取得して保存"""
    stock = await service.get_stock(stock_id)
    amount = await rate_service.get_annual_dividend(stock.code)
    if amount is None:
        error = UpstreamUnavailableError("配当情報を取得できませんでした")
        return soft_failure(error, id=stock.id, code=stock.code, name=stock.name)

    stock = await service.set_dividend_amount(stock.id, amount)
    return {"success": True, **stock.to_dict()}


@router.get("/{stock_id}/price")
async def get_stock_price(
    stock_id: int,
    service: StockService = Depends(get_stock_service),
    quote_client: QuoteChartClient = Depends(get_quote_client),
):
    """現在株価を取得"""
    stock = await service.get_stock(stock_id)
    price = await quote_client.get_stock_price(stock.code)
    if price is None:
        return soft_failure(UpstreamUnavailableError("株価の取得に失敗しました"), code=stock.code, name=stock.name)

    return {"success": True, "code": stock.code, "name": stock.name, "price": price}


@router.get("/{stock_id}/history")
async def get_stock_history(
    stock_id: int,
    period: str = Query(default="1m", description="1m, 3m, 6m, 1y"),
    service: StockService = Depends(get_stock_service),
    quote_client: QuoteChartClient = Depends(get_quote_client),
):
    """過去株価 (日次終値) を取得"""
    if period not in HISTORY_PERIODS:
        raise ValidationError("期間は 1m, 3m, 6m, 1y のいずれかである必要があります", field="period")

    stock = await service.get_stock(stock_id)
    history = await quote_client.get_stock_history(stock.code, period)
    if not history:
        error = UpstreamUnavailableError("株価履歴の取得に失敗しました")
        return soft_failure(error, code=stock.code, name=stock.name, period=period)

    return {"success": True, "code": stock.code, "name": stock.name, "period": period, "data": history}


def _info_response(stock, cached: bool) -> Dict:
    return {
        "success": True,
        "id": stock.id,
        "code": stock.code,
        "name": stock.name,
        "industry": stock.industry,
        "payoutRatio": stock.payout_ratio,
        "cached": cached,
    }


@router.get("/{stock_id}/info")
async def get_stock_info(
    stock_id: int,
    service: StockService = Depends(get_stock_service),
    info_service: StockInfoService = Depends(get_stock_info_service),
):
    """
    業種と配当性向を取得

    Cached values are returned as-is; otherwise they are fetched and stored.
    """
    stock = await service.get_stock(stock_id)
    if stock.industry or stock.payout_ratio is not None:
        return _info_response(stock, cached=True)

    info = await info_service.get_stock_info(stock.code)
    if not info.has_data():
        error = UpstreamUnavailableError("業種・配当性向を取得できませんでした")
        return soft_failure(error, id=stock.id, code=stock.code, name=stock.name)

    stock = await service.update_info(stock, info)
    return _info_response(stock, cached=False)


@router.put("/{stock_id}/info")
async def refresh_stock_info(
    stock_id: int,
    service: StockService = Depends(get_stock_service),
    info_service: StockInfoService = Depends(get_stock_info_service),
):
    """業種と配当性向を外部ソースから再取得して上書き"""
    stock = await service.get_stock(stock_id)
    info = await info_service.get_stock_info(stock.code)
    if not info.has_data():
        error = UpstreamUnavailableError("業種・配当性向を取得できませんでした")
        return soft_failure(error, id=stock.id, code=stock.code, name=stock.name)

    stock = await service.update_info(stock, info)
    return _info_response(stock, cached=False)


@router.get("/{stock_id}/financials")
async def get_stock_financials(
    stock_id: int,
    service: StockService = Depends(get_stock_service),
    resolver: MetricsResolver = Depends(get_metrics_resolver),
    settings: Settings = Depends(get_settings),
):
    """財務指標を取得 (ソースを順に試し、最初に取得できた結果を返す)"""
    stock = await service.get_stock(stock_id)
    identity = {"stockId": stock.id, "code": stock.code, "name": stock.name}

    try:
        metrics = await asyncio.wait_for(resolver.resolve(stock.code), timeout=settings.financials_timeout_seconds)
    except asyncio.TimeoutError:
        logger.warning(f"[財務指標] タイムアウト ({settings.financials_timeout_seconds}秒): {stock.code}")
        metrics = None

    if metrics is None:
        error = UpstreamUnavailableError("財務指標を取得できませんでした")
        return {**soft_failure(error, **identity), "financials": None}

    return {
        "success": True,
        **identity,
        "source": metrics.source,
        "financials": format_financials(metrics),
    }
