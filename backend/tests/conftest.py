"""Pytest configuration and fixtures."""

import os
import tempfile

# Settings are read at import time; point them at throwaway locations first
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="kabu-tracker-logs-"))
os.environ.setdefault("AUTH_SECRET", "test-secret")
os.environ["GEMINI_API_KEY"] = ""

from typing import Dict, List, Optional  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker  # noqa: E402

from kabu_tracker import dependencies  # noqa: E402
from kabu_tracker.auth import create_session_token  # noqa: E402
from kabu_tracker.config import settings  # noqa: E402
from kabu_tracker.database import build_engine, get_db, init_db  # noqa: E402
from kabu_tracker.main import app  # noqa: E402
from kabu_tracker.services.analysis_client import AnalysisClient  # noqa: E402
from kabu_tracker.services.metrics_resolver import MetricsResolver  # noqa: E402
from kabu_tracker.services.sources.base import FinancialMetrics  # noqa: E402
from kabu_tracker.services.stock_info_service import StockInfo  # noqa: E402


class MockQuoteClient:
    """Quote client returning canned names and prices"""

    def __init__(self, names: Optional[Dict[str, str]] = None, prices: Optional[Dict[str, float]] = None):
        self.names = names or {"7203": "トヨタ自動車", "6758": "ソニーグループ"}
        self.prices = prices or {"7203": 2800.0}
        self.price_calls: List[str] = []

    async def get_stock_name(self, code):
        return self.names.get(code)

    async def get_stock_price(self, code):
        self.price_calls.append(code)
        return self.prices.get(code)

    async def get_stock_prices(self, codes):
        return {code: await self.get_stock_price(code) for code in codes}

    async def get_stock_history(self, code, period="1m"):
        if code not in self.prices:
            return None
        return [
            {"date": "2026-10-15", "price": self.prices[code] - 20},
            {"date": "2026-10-16", "price": self.prices[code]},
        ]


class MockMetricsSource:
    def __init__(self, name: str, result=None, error: Optional[Exception] = None):
        self.name = name
        self.result = result
        self.error = error
        self.calls = 0

    async def fetch(self, code):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.result


class MockInfoService:
    def __init__(self, info: Optional[StockInfo] = None):
        self.info = info if info is not None else StockInfo(industry="輸送用機器", payout_ratio=29.87)
        self.calls = 0

    async def get_stock_info(self, code):
        self.calls += 1
        return StockInfo(industry=self.info.industry, payout_ratio=self.info.payout_ratio)


class MockAnalysisClient(AnalysisClient):
    """Real PDF extraction, canned model output"""

    def __init__(self, response_text: str = "1. 理論株価：3,500円\n2. 分析根拠: 同業他社比較"):
        super().__init__(settings)
        self.response_text = response_text
        self.prompts: List[str] = []

    async def generate(self, prompt, system_prompt=None):
        self.prompts.append(prompt)
        return self.response_text


class MockDividendRateService:
    def __init__(self, amount: Optional[float] = 75.0):
        self.amount = amount

    async def get_annual_dividend(self, code):
        return self.amount


@pytest_asyncio.fixture
async def engine():
    """Fresh in-memory database per test"""
    test_engine = build_engine("sqlite+aiosqlite:///:memory:")
    await init_db(test_engine)
    yield test_engine
    await test_engine.dispose()


@pytest_asyncio.fixture
async def db_session(engine):
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest.fixture
def quote_client():
    return MockQuoteClient()


@pytest.fixture
def analysis_client():
    return MockAnalysisClient()


@pytest.fixture
def info_service():
    return MockInfoService()


@pytest.fixture
def metrics_resolver():
    metrics = FinancialMetrics(source="yahoo_jp", per=10.456, pbr=1.2, dividend_yield=2.85)
    return MetricsResolver([MockMetricsSource("yahoo_jp", result=metrics)])


@pytest.fixture
def dividend_rate_service():
    return MockDividendRateService()


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {create_session_token(settings.auth_username, settings)}"}


@pytest_asyncio.fixture
async def client(engine, quote_client, analysis_client, info_service, metrics_resolver, dividend_rate_service):
    """Unauthenticated client with all upstreams replaced by mocks"""
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[dependencies.get_quote_client] = lambda: quote_client
    app.dependency_overrides[dependencies.get_analysis_client] = lambda: analysis_client
    app.dependency_overrides[dependencies.get_stock_info_service] = lambda: info_service
    app.dependency_overrides[dependencies.get_metrics_resolver] = lambda: metrics_resolver
    app.dependency_overrides[dependencies.get_dividend_rate_service] = lambda: dividend_rate_service

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def auth_client(client, auth_headers):
    client.headers.update(auth_headers)
    yield client
