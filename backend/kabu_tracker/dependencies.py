"""
Dependency Injection
FastAPI dependencies for services
"""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from .config import Settings, get_settings
from .database import get_db
from .services.analysis_client import AnalysisClient
from .services.analysis_service import AnalysisService
from .services.dividend_rate_service import DividendRateService
from .services.dividend_service import DividendService
from .services.edinet_client import EdinetClient
from .services.fmp_client import FMPClient
from .services.jquants_client import JQuantsClient, TokenCache
from .services.metrics_resolver import MetricsResolver, build_metrics_sources
from .services.portfolio_service import PortfolioService
from .services.quote_chart_client import QuoteChartClient
from .services.stock_info_service import KabutanInfoSource, MinkabuInfoSource, StockInfoService
from .services.stock_service import StockService

# Global service instances (initialized on startup)
_quote_client = None
_metrics_resolver = None
_stock_info_service = None
_analysis_client = None
_jquants_client = None
_fmp_client = None
_edinet_client = None


def init_services(settings: Settings):
    """
    Initialize all stateless upstream clients (called on app startup)

    Args:
        settings: Application settings
    """
    global _quote_client, _metrics_resolver, _stock_info_service
    global _analysis_client, _jquants_client, _fmp_client, _edinet_client

    timeout = settings.scrape_timeout_seconds

    _quote_client = QuoteChartClient(timeout=timeout, request_delay=settings.quote_request_delay_seconds)
    _metrics_resolver = MetricsResolver(build_metrics_sources(settings))
    _stock_info_service = StockInfoService(KabutanInfoSource(timeout), MinkabuInfoSource(timeout))
    _analysis_client = AnalysisClient(settings)
    # One token cache for the process, owned by this client instance
    _jquants_client = JQuantsClient(settings.jquants_refresh_token, TokenCache(), timeout=timeout)
    _fmp_client = FMPClient(settings.fmp_api_key, timeout=timeout)
    _edinet_client = EdinetClient(settings.edinet_api_key, search_days=settings.edinet_search_days, timeout=timeout)


def _ensure_services():
    if _quote_client is None:
        init_services(get_settings())


def get_quote_client() -> QuoteChartClient:
    """Get quote chart client instance"""
    _ensure_services()
    return _quote_client


def get_metrics_resolver() -> MetricsResolver:
    """Get metrics resolver instance"""
    _ensure_services()
    return _metrics_resolver


def get_stock_info_service() -> StockInfoService:
    _ensure_services()
    return _stock_info_service


def get_analysis_client() -> AnalysisClient:
    _ensure_services()
    return _analysis_client


def get_jquants_client() -> JQuantsClient:
    _ensure_services()
    return _jquants_client


def get_fmp_client() -> FMPClient:
    _ensure_services()
    return _fmp_client


def get_edinet_client() -> EdinetClient:
    _ensure_services()
    return _edinet_client


def get_stock_service(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> StockService:
    """Per-request stock service bound to the request's session"""
    return StockService(db, settings)


def get_dividend_service(db: AsyncSession = Depends(get_db)) -> DividendService:
    return DividendService(db)


def get_analysis_service(
    db: AsyncSession = Depends(get_db),
    client: AnalysisClient = Depends(get_analysis_client),
) -> AnalysisService:
    return AnalysisService(db, client)


def get_portfolio_service(
    stock_service: StockService = Depends(get_stock_service),
    quote_client: QuoteChartClient = Depends(get_quote_client),
) -> PortfolioService:
    return PortfolioService(stock_service, quote_client)


def get_dividend_rate_service(jquants: JQuantsClient = Depends(get_jquants_client)) -> DividendRateService:
    return DividendRateService(jquants)
