"""
Dividends API Routes
配当履歴の登録・取得・削除
"""

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel

from ..auth import require_session
from ..dependencies import get_dividend_service
from ..services.dividend_service import DividendService

router = APIRouter(prefix="/api/dividends", tags=["dividends"], dependencies=[Depends(require_session)])


class DividendRequest(BaseModel):
    """Request model for recording a dividend"""
    stock_id: int
    amount: float
    year: int


@router.post("", status_code=status.HTTP_201_CREATED)
async def add_dividend(request: DividendRequest, service: DividendService = Depends(get_dividend_service)):
    """
    配当を登録

    Args:
        request: stock_id (正の整数), amount (正の数), year (2000-2100)
    """
    dividend = await service.add_dividend(request.stock_id, request.amount, request.year)
    return dividend.to_dict()


@router.get("")
async def list_dividends(
    stock_id: int = Query(..., description="銘柄ID"),
    service: DividendService = Depends(get_dividend_service),
):
    """配当履歴を取得 (年度の新しい順)"""
    dividends = await service.list_dividends(stock_id)
    return [dividend.to_dict() for dividend in dividends]


@router.delete("/{dividend_id}")
async def delete_dividend(dividend_id: int, service: DividendService = Depends(get_dividend_service)):
    deleted = await service.delete_dividend(dividend_id)
    return {"success": True, "dividend": deleted}
