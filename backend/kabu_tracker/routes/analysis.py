"""
Analysis API Routes
AI による理論株価の算出と PDF 分析
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from pydantic import BaseModel

from ..auth import require_session
from ..config import Settings, get_settings
from ..dependencies import get_analysis_service
from ..exceptions import ValidationError
from ..services.analysis_service import AnalysisService

router = APIRouter(prefix="/api/analyze", tags=["analysis"], dependencies=[Depends(require_session)])
logger = logging.getLogger(__name__)

PDF_CONTENT_TYPE = "application/pdf"


class AnalyzeRequest(BaseModel):
    """Request model for a valuation analysis"""
    stock_id: int
    name: str
    current_price: float
    per: Optional[float] = None
    pbr: Optional[float] = None
    roe: Optional[float] = None
    operating_margin: Optional[float] = None
    revenue: Optional[float] = None
    operating_profit: Optional[float] = None


@router.post("")
async def analyze(request: AnalyzeRequest, service: AnalysisService = Depends(get_analysis_service)):
    """
    理論株価を算出

    Returns:
        保存した分析結果 (theoretical_price は抽出できなければ null)
    """
    figures = request.model_dump(exclude={"stock_id", "name", "current_price"}, exclude_none=True)
    analysis = await service.analyze(request.stock_id, request.name, request.current_price, figures)
    return analysis.to_dict()


@router.get("")
async def list_analyses(
    stock_id: int = Query(..., description="銘柄ID"),
    service: AnalysisService = Depends(get_analysis_service),
):
    """分析履歴を取得 (最新順)"""
    analyses = await service.list_analyses(stock_id)
    return [analysis.to_dict() for analysis in analyses]


@router.post("/pdf")
async def analyze_pdf(
    stock_id: int = Form(...),
    file: UploadFile = File(...),
    service: AnalysisService = Depends(get_analysis_service),
    settings: Settings = Depends(get_settings),
):
    """
    PDF (四季報・決算資料) を分析

    Only application/pdf up to PDF_MAX_BYTES is accepted.
    """
    if file.content_type != PDF_CONTENT_TYPE:
        raise ValidationError("PDFファイルのみアップロード可能です", field="file")

    document = await file.read()
    if len(document) > settings.pdf_max_bytes:
        limit_mb = settings.pdf_max_bytes // (1024 * 1024)
        raise ValidationError(f"ファイルサイズは{limit_mb}MB以下である必要があります", field="file")

    logger.info(f"PDF分析リクエスト: stock_id={stock_id}, {file.filename} ({len(document)} bytes)")
    analysis = await service.analyze_document(stock_id, document)
    return analysis.to_dict()
