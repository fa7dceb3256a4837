"""
CookBook API Server - FastAPI application with PostgreSQL and Forkify search
"""
from fastapi import FastAPI, APIRouter, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from datetime import datetime, timezone
import logging
import sys
import httpx
from config import settings
from database.connection import init_db, close_db
from middleware import SecurityHeadersMiddleware, RequestLoggingMiddleware
from routers import auth, recipes, favorites, forkify
from utils.debug import Loggers, setup_debug_logging
from utils.errors import APIError
from utils.responses import error_response, success_response

# Configure root logger to output to stdout/stderr
log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

log_formatter = logging.Formatter(
    '%(asctime)s | %(levelname)-8s | %(name)-20s | %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)

root_logger = logging.getLogger()
root_logger.setLevel(log_level)
root_logger.handlers = []

# INFO and below to stdout
stdout_handler = logging.StreamHandler(sys.stdout)
stdout_handler.setLevel(logging.DEBUG)
stdout_handler.addFilter(lambda record: record.levelno < logging.WARNING)
stdout_handler.setFormatter(log_formatter)
root_logger.addHandler(stdout_handler)

# WARNING and above to stderr
stderr_handler = logging.StreamHandler(sys.stderr)
stderr_handler.setLevel(logging.WARNING)
stderr_handler.setFormatter(log_formatter)
root_logger.addHandler(stderr_handler)

setup_debug_logging()

logger = logging.getLogger(__name__)


class StartupState:
    """Track server startup state for health check responses"""
    def __init__(self):
        self.is_ready = False
        self.database_ready = False
        self.database_error: str | None = None

    def mark_ready(self):
        self.is_ready = True

    def mark_database_ready(self):
        self.database_ready = True
        self.database_error = None

    def mark_database_failed(self, error: str):
        self.database_error = error

startup_state = StartupState()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("=" * 60)
    logger.info("COOKBOOK API SERVER STARTING")
    logger.info("=" * 60)
    logger.info(f"Version: {settings.version}")
    logger.info(f"Debug Mode: {settings.debug_mode}")

    app.state.http_client = httpx.AsyncClient(
        timeout=httpx.Timeout(settings.external_search_timeout)
    )
    Loggers.api.info("HTTP client initialized", timeout_s=settings.external_search_timeout)

    # Don't raise - allow server to start and report degraded health
    try:
        await init_db()
        startup_state.mark_database_ready()
    except Exception as e:
        Loggers.db.error(f"Failed to initialize database: {e}", exc_info=True)
        startup_state.mark_database_failed(str(e))

    startup_state.mark_ready()
    logger.info(f"CookBook API is running on port {settings.port}")

    yield

    logger.info("COOKBOOK API SERVER SHUTTING DOWN")
    await app.state.http_client.aclose()
    await close_db()
    logger.info("Shutdown complete")


app = FastAPI(lifespan=lifespan, title="CookBook API", version=settings.version)

app.add_middleware(
    CORSMiddleware,
    allow_credentials=True,
    allow_origins=[o.strip() for o in settings.cors_origins.split(',') if o.strip()],
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestLoggingMiddleware)


# ============================================================================
# Error envelope
# ============================================================================

def _field_name(loc) -> str:
    parts = [str(p) for p in loc if p not in ("body", "query", "path", "header")]
    return ".".join(parts) or "body"


@app.exception_handler(APIError)
async def api_error_handler(request: Request, exc: APIError):
    return JSONResponse(
        status_code=exc.status_code,
        content=error_response(exc.message, exc.code),
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"field": _field_name(err.get("loc", ())), "message": err.get("msg", "Invalid value")}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content=error_response("Validation failed", "VALIDATION_ERROR", errors=errors),
    )


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    message = "Route not found" if exc.status_code == 404 else str(exc.detail)
    return JSONResponse(status_code=exc.status_code, content=error_response(message))


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(status_code=500, content=error_response("Internal server error"))


# ============================================================================
# Routes
# ============================================================================

api_router = APIRouter(prefix="/api")
api_router.include_router(auth.router)
api_router.include_router(recipes.router)
api_router.include_router(favorites.router)
api_router.include_router(forkify.router)


@api_router.get("/health")
async def health_check():
    if not startup_state.is_ready:
        status = "starting"
    elif not startup_state.database_ready:
        status = "degraded"
    else:
        status = "healthy"

    data = {
        "health": status,
        "version": settings.version,
        "database": {"ready": startup_state.database_ready},
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    if startup_state.database_error:
        data["database"]["error"] = startup_state.database_error
    if settings.debug_mode:
        data["debug"] = settings.get_debug_config()
    return success_response(data, "CookBook API is running")


app.include_router(api_router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("server:app", host="0.0.0.0", port=settings.port)
