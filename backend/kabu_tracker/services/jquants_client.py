"""
J-Quants API Client

リフレッシュトークンから ID トークンを取得し、配当情報を取得
ID トークンは TokenCache (インスタンスごと) に保持し、401 で破棄する
"""

import asyncio
import logging
import time
from datetime import date, datetime, timedelta
from typing import Callable, Dict, List, Optional

import aiohttp

from .http_client import request_json

logger = logging.getLogger(__name__)

API_BASE_URL = "https://api.jquants.com/v1"
ID_TOKEN_TTL_SECONDS = 23 * 60 * 60  # tokens are valid for 24h upstream

DIVIDEND_VALUE_KEYS = ("dividend", "Dividend", "dividendPerShare", "DividendPerShare")
DIVIDEND_DATE_KEYS = ("exDate", "ExDate", "paymentDate", "PaymentDate", "date", "Date")


class TokenCache:
    """Holds one bearer token with an expiry; `clock` returns seconds"""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._token: Optional[str] = None
        self._expires_at: float = 0.0

    def get(self) -> Optional[str]:
        if self._token and self._clock() < self._expires_at:
            return self._token
        return None

    def set(self, token: str, ttl_seconds: float):
        self._token = token
        self._expires_at = self._clock() + ttl_seconds

    def invalidate(self):
        self._token = None
        self._expires_at = 0.0


def _first_value(row: Dict, keys) -> Optional[object]:
    for key in keys:
        if row.get(key):
            return row[key]
    return None


def _parse_date(value) -> Optional[datetime]:
    if not value:
        return None
    text = str(value)
    for fmt, width in (("%Y-%m-%d", 10), ("%Y%m%d", 8)):
        try:
            return datetime.strptime(text[:width], fmt)
        except ValueError:
            continue
    return None


class JQuantsClient:
    """J-Quants REST client"""

    def __init__(
        self,
        refresh_token: Optional[str],
        token_cache: Optional[TokenCache] = None,
        timeout: Optional[float] = None,
    ):
        self.refresh_token = refresh_token
        self.token_cache = token_cache or TokenCache()
        self.timeout = timeout

    @property
    def is_configured(self) -> bool:
        return bool(self.refresh_token)

    async def get_id_token(self) -> Optional[str]:
        """
        IDトークンを取得 (キャッシュが有効ならそれを使用)

        Returns:
            ID token, or None when no refresh token is configured or auth fails
        """
        if not self.refresh_token:
            logger.info("[J-Quants API] リフレッシュトークンが設定されていません")
            return None

        cached = self.token_cache.get()
        if cached:
            return cached

        logger.info("[J-Quants API] IDトークンを取得中...")
        data = await request_json(
            "POST",
            f"{API_BASE_URL}/token/auth_refresh",
            params={"refreshtoken": self.refresh_token},
            timeout=self.timeout,
            label="J-Quants API",
        )
        id_token = (data or {}).get("idToken")
        if not id_token:
            logger.error("[J-Quants API] IDトークンがレスポンスに含まれていません")
            return None

        self.token_cache.set(id_token, ID_TOKEN_TTL_SECONDS)
        logger.info("[J-Quants API] IDトークンの取得に成功しました")
        return id_token

    async def _get(self, path: str, params: Dict) -> Optional[Dict]:
        id_token = await self.get_id_token()
        if not id_token:
            return None

        client_timeout = aiohttp.ClientTimeout(total=self.timeout)
        try:
            async with aiohttp.ClientSession(timeout=client_timeout) as session:
                async with session.get(
                    f"{API_BASE_URL}{path}",
                    params=params,
                    headers={"Authorization": f"Bearer {id_token}"},
                ) as response:
                    if response.status == 401:
                        logger.warning("[J-Quants API] IDトークンが無効です。キャッシュを破棄します")
                        self.token_cache.invalidate()
                        return None
                    if response.status != 200:
                        body = await response.text()
                        logger.warning(f"[J-Quants API] {path} エラー: {response.status} {body[:300]}")
                        return None
                    return await response.json(content_type=None)

        except aiohttp.ClientError as e:
            logger.error(f"[J-Quants API] Network error on {path}: {e}")
            return None
        except asyncio.TimeoutError:
            logger.error(f"[J-Quants API] Timed out on {path}")
            return None

    async def get_annual_dividend(self, code: str, today: Optional[date] = None) -> Optional[float]:
        """
        一株配当 (年間) を取得

        Sums dividends with an ex-date in the past year; when none fall in
        that window the most recent payment is annualized as quarterly.
        """
        data = await self._get("/fins/dividend", {"code": code})
        if not data:
            return None

        rows = data.get("dividends") or data.get("dividend") or []
        if isinstance(rows, dict):
            rows = list(rows.values())

        entries: List[tuple] = []
        for row in rows:
            value = _first_value(row, DIVIDEND_VALUE_KEYS)
            try:
                amount = float(value) if value is not None else 0.0
            except (TypeError, ValueError):
                amount = 0.0
            if amount > 0:
                entries.append((_parse_date(_first_value(row, DIVIDEND_DATE_KEYS)) or datetime.min, amount))

        if not entries:
            logger.info(f"[J-Quants API] 配当情報が見つかりませんでした: {code}")
            return None

        entries.sort(key=lambda entry: entry[0], reverse=True)
        one_year_ago = datetime.combine((today or date.today()) - timedelta(days=365), datetime.min.time())
        annual = sum(amount for ex_date, amount in entries if ex_date >= one_year_ago)
        if annual <= 0:
            annual = entries[0][1] * 4

        logger.info(f"[J-Quants API] 一株配当取得成功: {code} = {annual}円 (年間)")
        return annual
