"""
Analysis Service

AI による理論株価の算出と PDF (四季報・決算資料) の分析
分析結果はすべて analyses テーブルに保存 (追記のみ)
"""

import logging
import re
from typing import Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..exceptions import NotFoundError, ValidationError
from ..models import Analysis, Stock
from .analysis_client import AnalysisClient
from .validation import validate_amount, validate_name, validate_stock_id

logger = logging.getLogger(__name__)

THEORETICAL_PRICE_PATTERN = re.compile(r"理論株価[：:]\s*([\d,]+)")

VALUATION_SYSTEM_PROMPT = """あなたは経験豊富な株式アナリストです。財務データを分析し、理論株価を算出してください。
回答は以下の形式でお願いします：
1. 理論株価: [数値]円
2. 分析根拠: [詳細な説明]"""

DOCUMENT_PROMPT = """このPDFファイル（四季報または決算資料）を分析してください。

以下の点を重点的に分析してください：
1. 重要な財務指標（売上高、営業利益、純利益、PER、PBR、ROEなど）
2. 業績の推移と成長性
3. 財務の健全性
4. 投資判断のサマリー（推奨度、リスク要因、今後の見通し）

分析結果は分かりやすく、構造化して提示してください。"""

DOCUMENT_SYSTEM_PROMPT = """あなたは経験豊富な株式アナリストです。四季報や決算資料を分析し、重要な財務指標を抽出し、投資判断のサマリーを提供してください。
回答は以下の形式でお願いします：
1. 重要な財務指標
2. 業績分析
3. 財務健全性
4. 投資判断サマリー"""

# (key, label, unit)
OPTIONAL_FIGURES = [
    ("per", "PER", ""),
    ("pbr", "PBR", ""),
    ("roe", "ROE", "%"),
    ("operating_margin", "営業利益率", "%"),
    ("revenue", "売上高", "円"),
    ("operating_profit", "営業利益", "円"),
]


def extract_theoretical_price(text: str) -> Optional[float]:
    """
    分析テキストから理論株価を抽出

    "理論株価：3,500円" -> 3500.0; no match -> None
    """
    match = THEORETICAL_PRICE_PATTERN.search(text or "")
    if not match:
        return None
    digits = match.group(1).replace(",", "")
    return float(digits) if digits else None


def build_valuation_prompt(name: str, current_price: float, figures: Dict) -> str:
    """理論株価算出用のプロンプトを作成 (指定された指標のみ記載)"""
    lines = [
        "以下の財務データから理論株価を算出してください：",
        "",
        f"- 銘柄: {name}",
        f"- 現在株価: {current_price}円",
    ]
    for key, label, unit in OPTIONAL_FIGURES:
        value = figures.get(key)
        if value is not None:
            lines.append(f"- {label}: {value}{unit}")

    lines += [
        "",
        "同業他社との比較も考慮して、適正株価を算出し、その根拠を説明してください。",
        "理論株価は数値で明確に示してください（例: 理論株価は3,500円です）。",
    ]
    return "\n".join(lines)


class AnalysisService:
    """Service for AI valuation analyses"""

    def __init__(self, db: AsyncSession, client: AnalysisClient):
        """
        Initialize analysis service

        Args:
            db: Database session
            client: AI analysis client
        """
        self.db = db
        self.client = client

    async def _ensure_stock(self, stock_id: int) -> Stock:
        stock = await self.db.get(Stock, stock_id)
        if stock is None:
            raise NotFoundError()
        return stock

    async def _store(self, stock_id: int, analysis_text: str) -> Analysis:
        analysis = Analysis(
            stock_id=stock_id,
            theoretical_price=extract_theoretical_price(analysis_text),
            analysis_text=analysis_text,
        )
        self.db.add(analysis)
        await self.db.commit()
        await self.db.refresh(analysis)

        logger.info(f"分析結果を保存しました: stock_id={stock_id}, 理論株価={analysis.theoretical_price}")
        return analysis

    async def analyze(self, stock_id, name, current_price, figures: Optional[Dict] = None) -> Analysis:
        """
        理論株価を算出

        Args:
            stock_id: 銘柄ID
            name: 銘柄名
            current_price: 現在株価
            figures: 任意の指標 (per, pbr, roe, operating_margin, revenue, operating_profit)

        Raises:
            ValidationError: 必須項目の不足
            NotFoundError: 該当銘柄なし
            AnalysisServiceError: AI 呼び出しの失敗
        """
        stock_id = validate_stock_id(stock_id)
        name = validate_name(name)
        current_price = validate_amount(current_price, "current_price", "現在株価", allow_zero=False)

        await self._ensure_stock(stock_id)

        prompt = build_valuation_prompt(name, current_price, figures or {})
        analysis_text = await self.client.generate(prompt, VALUATION_SYSTEM_PROMPT)
        return await self._store(stock_id, analysis_text)

    async def analyze_document(self, stock_id, document_bytes: bytes) -> Analysis:
        """
        PDF を分析

        Raises:
            NotFoundError: 該当銘柄なし
            EmptyDocumentError: テキストを抽出できない (AI 呼び出し前)
            AnalysisServiceError: AI 呼び出しの失敗
        """
        stock_id = validate_stock_id(stock_id)
        if not document_bytes:
            raise ValidationError("PDFファイルがアップロードされていません", field="file")

        await self._ensure_stock(stock_id)

        analysis_text = await self.client.generate_from_document(
            document_bytes, DOCUMENT_PROMPT, DOCUMENT_SYSTEM_PROMPT
        )
        return await self._store(stock_id, analysis_text)

    async def list_analyses(self, stock_id) -> List[Analysis]:
        """分析履歴 (最新順)"""
        stock_id = validate_stock_id(stock_id)
        result = await self.db.execute(
            select(Analysis)
            .where(Analysis.stock_id == stock_id)
            .order_by(Analysis.created_at.desc(), Analysis.id.desc())
        )
        return list(result.scalars().all())
