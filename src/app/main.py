import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from src.app.config import settings
from src.app.exceptions import register_exception_handlers
from src.app.logging_config import setup_logging
from src.app.middleware import register_middleware
from src.api.v1.router import api_router
from src.core.rate_limiter import init_rate_limiter, close_rate_limiter
from src.db.base import Base, engine
from src.services.messaging import NotificationService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: build external clients once and hand them to request handlers
    setup_logging(settings)
    logger.info(f"Starting {settings.APP_NAME} ({settings.ENVIRONMENT})...")
    settings.resolve_otp_secret()
    if settings.ENVIRONMENT == "development":
        Base.metadata.create_all(bind=engine)
    app.state.notifier = NotificationService.from_settings(settings)
    init_rate_limiter(settings.REDIS_URL)
    yield
    # Shutdown
    await close_rate_limiter()
    logger.info("Shutting down...")


def create_application() -> FastAPI:
    application = FastAPI(
        title=settings.APP_NAME,
        debug=settings.DEBUG,
        version="0.1.0",
        lifespan=lifespan,
    )

    # Middleware
    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure properly in production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    application.add_middleware(GZipMiddleware, minimum_size=1000)
    register_middleware(application)
    register_exception_handlers(application)

    # Routers
    application.include_router(api_router, prefix=settings.API_V1_PREFIX)

    @application.get("/health")
    async def health_check():
        return {"status": "healthy", "environment": settings.ENVIRONMENT}

    return application


app = create_application()
