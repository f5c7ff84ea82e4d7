"""
PriceWatch API application.
"""
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import uuid
import redis

from pricewatch.core.config import settings
from pricewatch.core.domain.entities import utcnow
from pricewatch.core.logging_config import get_logger, setup_logging, REQUEST_ID_VAR
from pricewatch.core.exceptions import (
    PriceWatchError, ResourceNotFoundError, WorkerUnavailableError, create_error_response
)
from pricewatch.infrastructure.database.connection import init_db, close_db
from pricewatch.infrastructure.database.listeners import (
    register_price_change_listener, unregister_price_change_listener
)
from pricewatch.services.container import get_container
from pricewatch.api.monitoring import router as monitoring_router

logger = get_logger(__name__)

# ======================== LIFESPAN MANAGEMENT ========================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown."""
    setup_logging()
    logger.info(f"Starting {settings.project_name} v{settings.version}")
    init_db()
    register_price_change_listener(get_container().notifier)
    yield
    unregister_price_change_listener()
    close_db()
    logger.info("Shutting down application")

# ======================== APPLICATION SETUP ========================

app = FastAPI(
    title=settings.project_name,
    description=settings.description,
    version=settings.version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# ======================== MIDDLEWARE ========================

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.middleware("http")
async def add_request_id(request: Request, call_next):
    """Add request ID to all requests."""
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request.state.request_id = request_id
    token = REQUEST_ID_VAR.set(request_id)

    try:
        logger.info(f"Request: {request.method} {request.url.path}")
        response = await call_next(request)
    finally:
        REQUEST_ID_VAR.reset(token)

    response.headers["X-Request-ID"] = request_id
    return response

# ======================== ERROR HANDLERS ========================

@app.exception_handler(PriceWatchError)
async def pricewatch_error_handler(request: Request, exc: PriceWatchError):
    """Handle custom application errors."""
    status_code = status.HTTP_400_BAD_REQUEST
    if isinstance(exc, ResourceNotFoundError):
        status_code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, WorkerUnavailableError):
        status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    logger.warning(f"{exc.error_code}: {exc.message}", extra={"path": request.url.path})
    return JSONResponse(status_code=status_code, content=create_error_response(exc))

@app.exception_handler(Exception)
async def global_error_handler(request: Request, exc: Exception):
    """Handle unexpected errors."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred",
                "request_id": getattr(request.state, 'request_id', None)
            }
        }
    )

# ======================== INCLUDE ROUTERS ========================

app.include_router(monitoring_router)

# ======================== ROOT ENDPOINTS ========================

@app.get("/", tags=["System"])
async def root():
    return {
        "name": settings.project_name,
        "version": settings.version,
        "description": settings.description,
        "documentation": {
            "swagger": "/docs",
            "redoc": "/redoc"
        },
        "endpoints": {
            "health": "/health",
            "price_monitoring": f"{settings.api_v1_prefix}/price-monitoring"
        }
    }

def _redis_healthy() -> bool:
    """Ping the Celery broker / result backend."""
    try:
        client = redis.Redis.from_url(settings.redis.redis_url, socket_connect_timeout=2)
        return bool(client.ping())
    except redis.RedisError as e:
        logger.warning(f"Redis health check failed: {e}")
        return False

@app.get("/health", tags=["System"])
def health_check():
    """Health check endpoint."""
    from pricewatch.infrastructure.database.connection import get_db_manager

    db_healthy = get_db_manager().check_connection()
    redis_healthy = _redis_healthy()

    return {
        "status": "healthy" if db_healthy and redis_healthy else "degraded",
        "version": settings.version,
        "environment": settings.environment.value,
        "timestamp": utcnow().isoformat(),
        "database": "connected" if db_healthy else "disconnected",
        "redis": "connected" if redis_healthy else "disconnected"
    }

# ======================== MAIN ========================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "pricewatch.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.is_development
    )
