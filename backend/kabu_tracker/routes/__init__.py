"""
API Routes Module
"""

from .stocks import router as stocks_router
from .dividends import router as dividends_router
from .analysis import router as analysis_router
from .portfolio import router as portfolio_router
from .auth import router as auth_router
from .integrations import router as integrations_router

__all__ = [
    'stocks_router',
    'dividends_router',
    'analysis_router',
    'portfolio_router',
    'auth_router',
    'integrations_router',
]
