"""
Portfolio API Routes
"""

from fastapi import APIRouter, Depends

from ..auth import require_session
from ..dependencies import get_portfolio_service
from ..services.portfolio_service import PortfolioService

router = APIRouter(prefix="/api/portfolio", tags=["portfolio"], dependencies=[Depends(require_session)])


@router.get("/summary")
async def get_portfolio_summary(service: PortfolioService = Depends(get_portfolio_service)):
    """
    ポートフォリオのサマリー

    Returns:
        銘柄ごとの評価額・損益・年間配当と合計
    """
    return await service.get_summary()
