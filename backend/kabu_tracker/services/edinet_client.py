"""
EDINET API Client

金融庁 EDINET から有価証券報告書を検索し、XBRL の「主要な経営指標等の推移」
から財務指標を抽出する (APIキー必須)

API仕様: https://disclosure.edinet-fsa.go.jp/
"""

import io
import logging
import re
import zipfile
from datetime import date, timedelta
from typing import Dict, List, Optional

from .http_client import fetch_bytes, request_json
from .sources.base import FinancialMetrics, MetricsSource, parse_number

logger = logging.getLogger(__name__)

EDINET_API_BASE = "https://disclosure.edinet-fsa.go.jp/api/v2"

ANNUAL_REPORT = "120"  # 有価証券報告書
QUARTERLY_REPORTS = ("140", "150")  # 四半期報告書 / 半期報告書

# jpcrp_cor summary elements; ratios are reported as fractions
XBRL_ELEMENTS = {
    "dividend_payout_ratio": ("PayoutRatioSummaryOfBusinessResults", 100),
    "equity_ratio": ("EquityToAssetRatioSummaryOfBusinessResults", 100),
    "roe": ("RateOfReturnOnEquitySummaryOfBusinessResults", 100),
    "per": ("PriceEarningsRatioSummaryOfBusinessResults", 1),
    "eps": ("BasicEarningsLossPerShareSummaryOfBusinessResults", 1),
    "bps": ("NetAssetsPerShareSummaryOfBusinessResults", 1),
}


def parse_xbrl_summary(xbrl: str) -> FinancialMetrics:
    """
    Extract current-year summary figures from an XBRL instance document

    Args:
        xbrl: Instance document text

    Returns:
        FinancialMetrics tagged "edinet" (fields stay None when absent)
    """
    metrics = FinancialMetrics(source="edinet")
    for field_name, (element, scale) in XBRL_ELEMENTS.items():
        pattern = re.compile(
            rf'<jpcrp_cor:{element}\b[^>]*contextRef="CurrentYear[^"]*"[^>]*>\s*([-0-9.,]+)\s*</jpcrp_cor:{element}>'
        )
        match = pattern.search(xbrl)
        if match:
            value = parse_number(match.group(1))
            if value is not None:
                setattr(metrics, field_name, value * scale)
    return metrics


class EdinetClient:
    """EDINET API v2 client"""

    def __init__(self, api_key: Optional[str], search_days: int = 90, timeout: Optional[float] = None):
        self.api_key = api_key
        self.search_days = search_days
        self.timeout = timeout

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def find_documents(self, sec_code: str, day: date) -> List[Dict]:
        """
        指定日に提出された書類から証券コードで絞り込み

        Args:
            sec_code: 証券コード (4桁)
            day: 提出日

        Returns:
            Matching document entries (empty on any failure)
        """
        if not self.api_key:
            logger.warning("[EDINET API] APIキーが設定されていません (EDINET_API_KEY)")
            return []

        data = await request_json(
            "GET",
            f"{EDINET_API_BASE}/documents.json",
            params={"date": day.isoformat(), "type": 2, "Subscription-Key": self.api_key},
            timeout=self.timeout,
            label="EDINET API",
        )
        if not data:
            return []

        metadata = data.get("metadata", {})
        if str(metadata.get("status")) != "200":
            logger.error(f"[EDINET API] APIエラー: {metadata.get('message')}")
            return []

        # secCode is 5 digits: the 4-digit code plus a check digit
        return [
            doc for doc in data.get("results") or []
            if doc.get("secCode") and doc["secCode"].startswith(sec_code)
        ]

    async def find_securities_report(self, sec_code: str, today: Optional[date] = None) -> Optional[Dict]:
        """直近の有価証券報告書 (なければ四半期報告書) を検索"""
        today = today or date.today()

        for offset in range(self.search_days):
            day = today - timedelta(days=offset)
            documents = await self.find_documents(sec_code, day)

            report = next((doc for doc in documents if doc.get("docTypeCode") == ANNUAL_REPORT), None)
            if report is None:
                report = next((doc for doc in documents if doc.get("docTypeCode") in QUARTERLY_REPORTS), None)
            if report is not None:
                logger.info(f"[EDINET API] 報告書を発見: {report.get('docID')} ({report.get('docDescription')})")
                return report

        logger.warning(f"[EDINET API] {sec_code} の報告書が見つかりません")
        return None

    async def extract_financial_metrics(self, doc_id: str) -> Optional[FinancialMetrics]:
        """書類の XBRL (ZIP) を取得し、主要な経営指標を抽出"""
        payload = await fetch_bytes(
            f"{EDINET_API_BASE}/documents/{doc_id}",
            params={"type": 1, "Subscription-Key": self.api_key},
            timeout=self.timeout,
            label="EDINET API",
        )
        if payload is None:
            return None

        logger.info(f"[EDINET API] XBRLデータ受信: {len(payload)} bytes")
        try:
            with zipfile.ZipFile(io.BytesIO(payload)) as archive:
                instance_names = [
                    name for name in archive.namelist()
                    if name.startswith("XBRL/PublicDoc/") and name.endswith(".xbrl")
                ]
                if not instance_names:
                    logger.warning(f"[EDINET API] XBRL インスタンスがありません: {doc_id}")
                    return None
                xbrl = archive.read(instance_names[0]).decode("utf-8", errors="ignore")
        except zipfile.BadZipFile as e:
            logger.error(f"[EDINET API] ZIP 展開エラー ({doc_id}): {e}")
            return None

        metrics = parse_xbrl_summary(xbrl)
        return metrics if metrics.has_data() else None

    async def get_financial_metrics(self, sec_code: str) -> Optional[FinancialMetrics]:
        """EDINET から財務指標を取得"""
        if not self.api_key:
            logger.warning("[EDINET API] APIキーが設定されていません")
            return None

        report = await self.find_securities_report(sec_code)
        if report is None:
            return None
        return await self.extract_financial_metrics(report["docID"])

    async def test_connection(self) -> Dict:
        """EDINET API の接続テスト"""
        if not self.api_key:
            return {"success": False, "message": "EDINET_API_KEY が設定されていません", "apiKeyStatus": "未設定"}

        key_status = f"設定済み ({self.api_key[:8]}...)"
        data = await request_json(
            "GET",
            f"{EDINET_API_BASE}/documents.json",
            params={"date": date.today().isoformat(), "type": 2, "Subscription-Key": self.api_key},
            timeout=self.timeout,
            label="EDINET API",
        )
        metadata = (data or {}).get("metadata", {})
        if str(metadata.get("status")) == "200":
            count = metadata.get("resultset", {}).get("count", 0)
            return {"success": True, "message": f"接続成功。本日の書類数: {count}件", "apiKeyStatus": key_status}

        return {
            "success": False,
            "message": metadata.get("message") or "EDINET API に接続できませんでした",
            "apiKeyStatus": key_status,
        }


class EdinetMetricsSource(MetricsSource):
    name = "edinet"

    def __init__(self, client: EdinetClient):
        self.client = client

    async def fetch(self, code: str) -> Optional[FinancialMetrics]:
        return await self.client.get_financial_metrics(code)
