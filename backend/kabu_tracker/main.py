"""
FastAPI Main Application
Kabu Tracker
"""

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging

from .auth import SessionUser, require_session
from .config import settings
from .database import init_db
from .exceptions import register_exception_handlers
from .utils.logging_config import setup_logging
from .dependencies import init_services
from .routes import (
    stocks_router,
    dividends_router,
    analysis_router,
    portfolio_router,
    auth_router,
    integrations_router,
)

# Setup logging
setup_logging(settings.log_level, settings.log_dir)
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Japanese equities portfolio tracker with AI valuation analysis",
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Include routers
app.include_router(auth_router)
app.include_router(stocks_router)
app.include_router(dividends_router)
app.include_router(analysis_router)
app.include_router(portfolio_router)
app.include_router(integrations_router)


@app.on_event("startup")
async def startup_event():
    """Startup event handler"""
    logger.info(f"Starting {settings.app_name} v{settings.app_version}...")

    # Initialize database (tables + pending migrations)
    try:
        await init_db()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")
        raise

    init_services(settings)
    logger.info("Application startup complete")


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "version": settings.app_version
    }


@app.get("/")
async def index(user: SessionUser = Depends(require_session)):
    """Application entry point (requires login)"""
    return {
        "app_name": settings.app_name,
        "version": settings.app_version,
        "user": user.username,
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
