"""Roblox Intelligence Service - FastAPI Application."""
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from roblox_intel import __version__
from roblox_intel.config import check_environment, get_settings
from roblox_intel.database import init_db
from roblox_intel.api import games_router, groups_router, stats_router, save_router, save_group_router
from roblox_intel.api.rate_limit import RateLimitExceeded

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    logger.info("Starting Roblox Intelligence Service")
    env = check_environment(settings)
    if not env["valid"]:
        logger.error(f"Missing required environment variables: {', '.join(env['missing'])}")
    for warning in env["warnings"]:
        logger.warning(f"Environment warning: {warning}")
    await init_db()

    yield

    # Shutdown
    logger.info("Shutting down Roblox Intelligence Service")


# Create application
app = FastAPI(
    title="Roblox Intelligence Service",
    description="Roblox game metrics and competitor group tracking API",
    version=__version__,
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": "roblox-intel",
    }


# Root info
@app.get("/")
async def root():
    """API information."""
    return {
        "service": "Roblox Intelligence Service",
        "version": __version__,
        "docs": "/docs",
        "health": "/health",
        "ai_features": settings.has_ai_features,
    }


# Include routers
app.include_router(games_router, prefix="/api")
app.include_router(groups_router, prefix="/api")
app.include_router(stats_router, prefix="/api")
app.include_router(save_router, prefix="/api")
app.include_router(save_group_router, prefix="/api")


# Error handlers
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Not found, rate limited and other expected HTTP errors."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RateLimitExceeded)
async def rate_limit_exception_handler(request: Request, exc: RateLimitExceeded):
    """Too many requests; tells the client how long to wait."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail, "retryAfter": exc.retry_after},
        headers=exc.headers,
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed path parameters or request bodies."""
    errors = exc.errors()
    message = "; ".join(
        f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg')}"
        for err in errors
    ) or "Invalid request"
    return JSONResponse(status_code=400, content={"error": message})


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request: Request, exc: SQLAlchemyError):
    """Data store unreachable or query failed."""
    logger.error(f"Database error on {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"error": str(exc)})


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle uncaught exceptions."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"error": str(exc) or "Internal server error"},
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "roblox_intel.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
