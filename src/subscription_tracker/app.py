import logging
import time
import uuid
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from subscription_tracker.config import get_settings
from subscription_tracker.logging_config import setup_logging
from subscription_tracker.models.base import Base, get_engine
from subscription_tracker.routers import subscriptions_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    setup_logging(settings.LOG_LEVEL, settings.LOG_FORMAT, settings.SERVICE_NAME)
    logger.info("Starting subscriptions API service")
    if settings.AUTO_CREATE_TABLES:
        Base.metadata.create_all(get_engine())
        logger.info("Database tables ready")
    yield
    logger.info("Shutting down subscriptions API service")


app = FastAPI(title="Subscriptions API", debug=get_settings().DEBUG, lifespan=lifespan)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    request.state.request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    started = time.perf_counter()
    # An exception escaping call_next still gets its access line, as a 500.
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    try:
        response = await call_next(request)
        status_code = response.status_code
        response.headers["X-Request-ID"] = request.state.request_id
        return response
    finally:
        latency_ms = (time.perf_counter() - started) * 1000
        logger.info(
            f"{status_code} - {request.method} {request.url.path} ({latency_ms:.1f}ms)",
            extra={"request_id": request.state.request_id},
        )


@app.exception_handler(RequestValidationError)
async def invalid_request_handler(request: Request, exc: RequestValidationError):
    logger.error(f"Failed to parse request: {exc.errors()}")
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": "invalid request"})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error(f"Request processing error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"detail": "internal server error"})


# Include the subscriptions router under the '/api/subscriptions' prefix
app.include_router(subscriptions_router.router, prefix="/api/subscriptions")


def main() -> None:
    settings = get_settings()
    uvicorn.run("subscription_tracker.app:app", host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    main()
