# src/app/middleware.py
import logging
import time

from fastapi import FastAPI, Request

logger = logging.getLogger(__name__)


def register_middleware(app: FastAPI):

    @app.middleware("http")
    async def log_request_time(request: Request, call_next):
        # Path only: OTP status queries carry the email in the query string
        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000
        response.headers["X-Response-Time-Ms"] = f"{duration_ms:.2f}"
        logger.info(
            "%s %s | %s | %.2f ms",
            request.method, request.url.path, response.status_code, duration_ms,
        )
        return response

    return app
