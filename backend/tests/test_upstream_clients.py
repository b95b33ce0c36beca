"""Tests for the quote chart, J-Quants, stock info and dividend-rate clients."""

import re
from datetime import date, datetime, timezone

import pytest
from aioresponses import aioresponses

from kabu_tracker.services.dividend_rate_service import DividendRateService, annual_dividend_from_info
from kabu_tracker.services.jquants_client import API_BASE_URL, JQuantsClient, TokenCache
from kabu_tracker.services.quote_chart_client import QuoteChartClient
from kabu_tracker.services.stock_info_service import (
    KabutanInfoSource,
    MinkabuInfoSource,
    StockInfo,
    StockInfoService,
)

CHART_URL = re.compile(r"^https://query1\.finance\.yahoo\.com/v8/finance/chart/7203\.T.*$")


def chart_payload(meta=None, timestamps=None, closes=None):
    result = {"meta": meta or {}}
    if timestamps is not None:
        result["timestamp"] = timestamps
        result["indicators"] = {"quote": [{"close": closes}]}
    return {"chart": {"result": [result], "error": None}}


def epoch(year, month, day):
    return int(datetime(year, month, day, tzinfo=timezone.utc).timestamp())


class TestQuoteChartClient:
    async def test_name_prefers_long_name(self):
        with aioresponses() as mocked:
            mocked.get(CHART_URL, payload=chart_payload({"longName": "Toyota Motor Corp", "shortName": "TOYOTA"}))
            assert await QuoteChartClient().get_stock_name("7203") == "Toyota Motor Corp"

    async def test_unknown_symbol_returns_none(self):
        with aioresponses() as mocked:
            mocked.get(CHART_URL, status=404)
            assert await QuoteChartClient().get_stock_name("7203") is None

    async def test_non_positive_price_is_missing(self):
        with aioresponses() as mocked:
            mocked.get(CHART_URL, payload=chart_payload({"regularMarketPrice": 0}))
            assert await QuoteChartClient().get_stock_price("7203") is None

    async def test_history_drops_non_positive_closes(self):
        payload = chart_payload(
            timestamps=[epoch(2026, 10, 14), epoch(2026, 10, 15), epoch(2026, 10, 16)],
            closes=[2790.0, None, 2810.5],
        )
        with aioresponses() as mocked:
            mocked.get(CHART_URL, payload=payload)
            history = await QuoteChartClient().get_stock_history("7203", "1m")

        assert history == [
            {"date": "2026-10-14", "price": 2790.0},
            {"date": "2026-10-16", "price": 2810.5},
        ]

    async def test_history_rejects_unknown_period(self):
        with pytest.raises(ValueError):
            await QuoteChartClient().get_stock_history("7203", "10y")

    async def test_prices_are_fetched_sequentially(self, monkeypatch):
        sleeps = []

        async def fake_sleep(delay):
            sleeps.append(delay)

        monkeypatch.setattr("kabu_tracker.services.quote_chart_client.asyncio.sleep", fake_sleep)
        client = QuoteChartClient(request_delay=0.1)

        async def fake_price(code):
            return {"7203": 2800.0}.get(code)

        monkeypatch.setattr(client, "get_stock_price", fake_price)
        prices = await client.get_stock_prices(["7203", "6758", "9984"])

        assert prices == {"7203": 2800.0, "6758": None, "9984": None}
        assert sleeps == [0.1, 0.1]


class TestTokenCache:
    def test_token_valid_until_expiry(self):
        now = [1000.0]
        cache = TokenCache(clock=lambda: now[0])
        cache.set("id-token", ttl_seconds=60)

        assert cache.get() == "id-token"
        now[0] += 59
        assert cache.get() == "id-token"
        now[0] += 2
        assert cache.get() is None

    def test_invalidate_clears_token(self):
        cache = TokenCache()
        cache.set("id-token", ttl_seconds=3600)
        cache.invalidate()
        assert cache.get() is None


class TestJQuantsClient:
    async def test_without_refresh_token_is_unconfigured(self):
        client = JQuantsClient(None)
        assert not client.is_configured
        assert await client.get_id_token() is None

    async def test_id_token_is_cached(self):
        client = JQuantsClient("refresh", TokenCache())
        with aioresponses() as mocked:
            mocked.post(re.compile(rf"^{re.escape(API_BASE_URL)}/token/auth_refresh.*$"), payload={"idToken": "abc"})
            assert await client.get_id_token() == "abc"
            # second call served from cache; no further mocked response registered
            assert await client.get_id_token() == "abc"

    async def test_unauthorized_invalidates_cache(self):
        cache = TokenCache()
        cache.set("stale", ttl_seconds=3600)
        client = JQuantsClient("refresh", cache)

        with aioresponses() as mocked:
            mocked.get(re.compile(rf"^{re.escape(API_BASE_URL)}/fins/dividend.*$"), status=401)
            assert await client.get_annual_dividend("7203", today=date(2026, 10, 16)) is None

        assert cache.get() is None

    async def test_annual_dividend_sums_last_year(self):
        cache = TokenCache()
        cache.set("token", ttl_seconds=3600)
        client = JQuantsClient("refresh", cache)
        payload = {"dividends": [
            {"ExDate": "2026-09-29", "DividendPerShare": 45},
            {"ExDate": "2026-03-28", "DividendPerShare": 45},
            {"ExDate": "2024-09-27", "DividendPerShare": 30},
        ]}

        with aioresponses() as mocked:
            mocked.get(re.compile(rf"^{re.escape(API_BASE_URL)}/fins/dividend.*$"), payload=payload)
            amount = await client.get_annual_dividend("7203", today=date(2026, 10, 16))

        assert amount == 90


class TestStockInfoService:
    def test_kabutan_parse(self):
        html = "<table><tr><th>業種</th><td><a>輸送用機器</a></td></tr></table><p>配当性向 29.9%</p>"
        info = KabutanInfoSource().parse(html)
        assert info == StockInfo(industry="輸送用機器", payout_ratio=29.9)

    def test_minkabu_parse(self):
        info = MinkabuInfoSource().parse('<p>業種：<span>電気機器</span></p>')
        assert info.industry == "電気機器"
        assert info.payout_ratio is None

    async def test_backup_fills_missing_fields(self):
        class FixedSource:
            def __init__(self, info):
                self.info = info
                self.calls = 0

            async def fetch(self, code):
                self.calls += 1
                return self.info

        primary = FixedSource(StockInfo(industry="輸送用機器"))
        backup = FixedSource(StockInfo(industry="自動車", payout_ratio=31.2))

        info = await StockInfoService(primary, backup).get_stock_info("7203")
        assert info == StockInfo(industry="輸送用機器", payout_ratio=31.2)

    async def test_complete_primary_skips_backup(self):
        class FixedSource:
            calls = 0

            async def fetch(self, code):
                FixedSource.calls += 1
                return StockInfo(industry="輸送用機器", payout_ratio=29.9)

        await StockInfoService(FixedSource(), FixedSource()).get_stock_info("7203")
        assert FixedSource.calls == 1


class TestDividendRate:
    @pytest.mark.parametrize("info, expected", [
        ({"dividendRate": 90.0}, 90.0),
        ({"trailingAnnualDividendRate": 80.0}, 80.0),
        ({"currentPrice": 3000, "trailingAnnualDividendYield": 0.025}, 75.0),
        ({}, None),
    ])
    def test_annual_dividend_from_info(self, info, expected):
        assert annual_dividend_from_info(info) == expected

    async def test_jquants_first_when_configured(self):
        class StubJQuants:
            is_configured = True

            async def get_annual_dividend(self, code):
                return 100.0

        assert await DividendRateService(StubJQuants()).get_annual_dividend("7203") == 100.0

    async def test_falls_back_to_yfinance_info(self, monkeypatch):
        requested = []

        def fake_info(code):
            requested.append(code)
            return {"currentPrice": 3000, "trailingAnnualDividendYield": 0.025}

        monkeypatch.setattr("kabu_tracker.services.dividend_rate_service.fetch_ticker_info", fake_info)

        amount = await DividendRateService(JQuantsClient(None)).get_annual_dividend("7203")
        assert amount == 75.0
        assert requested == ["7203"]
