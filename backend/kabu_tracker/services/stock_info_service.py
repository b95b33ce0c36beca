"""
Stock Info Service

業種と配当性向を取得 (株探 → みんかぶ)
Unlike the metrics chain, fields missing from the first site are filled
from the second.
"""

import logging
import re
from dataclasses import dataclass
from typing import Optional

from bs4 import BeautifulSoup

from .http_client import fetch_text
from .sources.base import parse_number

logger = logging.getLogger(__name__)

PAYOUT_PATTERN = re.compile(r"配当性向[^0-9]*?(\d+(?:\.\d+)?)\s*%")


@dataclass
class StockInfo:
    industry: Optional[str] = None  # 業種
    payout_ratio: Optional[float] = None  # 配当性向 (%)

    def is_complete(self) -> bool:
        return bool(self.industry) and self.payout_ratio is not None

    def has_data(self) -> bool:
        return bool(self.industry) or self.payout_ratio is not None


def _extract_payout_ratio(html: str) -> Optional[float]:
    match = PAYOUT_PATTERN.search(html)
    return parse_number(match.group(1)) if match else None


class KabutanInfoSource:
    """株探 銘柄ページ"""

    name = "kabutan"
    url_template = "https://kabutan.jp/stock/?code={code}"

    def __init__(self, timeout: Optional[float] = None):
        self.timeout = timeout

    async def fetch(self, code: str) -> StockInfo:
        html = await fetch_text(self.url_template.format(code=code), timeout=self.timeout, label="株探")
        if html is None:
            return StockInfo()

        info = self.parse(html)
        logger.info(f"[株探] 取得結果 ({code}): {info}")
        return info

    def parse(self, html: str) -> StockInfo:
        info = StockInfo(payout_ratio=_extract_payout_ratio(html))

        # <th>業種</th><td>輸送用機器</td>
        soup = BeautifulSoup(html, "html.parser")
        header = soup.find("th", string=re.compile(r"^\s*業種\s*$"))
        if header is not None:
            cell = header.find_next_sibling("td")
            if cell is not None and cell.get_text(strip=True):
                info.industry = cell.get_text(strip=True)

        return info


class MinkabuInfoSource:
    """みんかぶ 銘柄ページ (バックアップ)"""

    name = "minkabu"
    url_template = "https://minkabu.jp/stock/{code}"
    industry_pattern = re.compile(r"業種[^<]*<[^>]+>([^<]+)<")

    def __init__(self, timeout: Optional[float] = None):
        self.timeout = timeout

    async def fetch(self, code: str) -> StockInfo:
        html = await fetch_text(self.url_template.format(code=code), timeout=self.timeout, label="みんかぶ")
        if html is None:
            return StockInfo()

        info = self.parse(html)
        logger.info(f"[みんかぶ] 取得結果 ({code}): {info}")
        return info

    def parse(self, html: str) -> StockInfo:
        info = StockInfo(payout_ratio=_extract_payout_ratio(html))
        match = self.industry_pattern.search(html)
        if match and match.group(1).strip():
            info.industry = match.group(1).strip()
        return info


class StockInfoService:
    """業種・配当性向の取得サービス"""

    def __init__(self, primary: KabutanInfoSource, backup: MinkabuInfoSource):
        self.primary = primary
        self.backup = backup

    async def get_stock_info(self, code: str) -> StockInfo:
        """
        株式情報を取得 (複数ソースから補完)

        Args:
            code: 銘柄コード (4桁)

        Returns:
            StockInfo; fields stay None when neither site has them
        """
        info = await self.primary.fetch(code)
        if info.is_complete():
            return info

        backup = await self.backup.fetch(code)
        if not info.industry and backup.industry:
            info.industry = backup.industry
        if info.payout_ratio is None and backup.payout_ratio is not None:
            info.payout_ratio = backup.payout_ratio
        return info
