from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api import chat, health, wallet
from .config import settings
from .container import Services, build_services
from .logging_config import get_logger, setup_logging
from .middleware.logging_middleware import RequestLoggingMiddleware

logger = get_logger(__name__)


def create_app(services: Optional[Services] = None) -> FastAPI:
    """Build the API; ``services`` replaces the settings-built components."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging()
        owned = services is None
        app.state.services = build_services(settings) if owned else services
        logger.info("tradechat started", chain_id=settings.chain_id)
        try:
            yield
        finally:
            if owned:
                await app.state.services.aclose()

    app = FastAPI(
        title="Tradechat API",
        description="Conversational trading assistant for a single EVM DEX deployment",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)

    app.include_router(health.router, tags=["Health"])
    app.include_router(chat.router, tags=["Chat"])
    app.include_router(wallet.router, tags=["Wallet"])

    @app.get("/")
    async def root():
        """Root endpoint with basic info"""
        return {
            "name": "Tradechat API",
            "version": "0.1.0",
            "chain_id": settings.chain_id,
            "docs": "/docs",
            "health": "/healthz",
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "tradechat.main:app",
        host=settings.host,
        port=settings.port,
        reload=True,
        log_level=settings.log_level.lower()
    )
