"""Tapir Catalog - travel media catalog API with Cloudinary synchronization."""

import logging
import os
import secrets
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException, Security
from fastapi.middleware.cors import CORSMiddleware
from fastapi.security import APIKeyHeader

from .db import close_pool, init_pool, run_migrations
from .routes import admin_router, places_router, posts_router

logger = logging.getLogger(__name__)

# API Key Security
API_KEY_HEADER = APIKeyHeader(name="X-API-Key", auto_error=False)


def configure_logging() -> None:
    """Configure root logging from LOG_LEVEL (default INFO)."""
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def get_api_key() -> str | None:
    """Get API key from environment."""
    return os.getenv("API_KEY")


async def verify_api_key(api_key: str = Security(API_KEY_HEADER)) -> str:
    """Verify API key from request header."""
    expected_key = get_api_key()

    # If no API key is configured, allow all requests (dev mode)
    if not expected_key:
        return "dev-mode"

    if not api_key:
        raise HTTPException(
            status_code=401,
            detail="Missing API key. Provide X-API-Key header.",
        )

    # Use constant-time comparison to prevent timing attacks
    if not secrets.compare_digest(api_key, expected_key):
        raise HTTPException(
            status_code=403,
            detail="Invalid API key",
        )

    return api_key


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle."""
    configure_logging()
    await init_pool()
    await run_migrations()
    yield
    await close_pool()


app = FastAPI(
    title="Tapir Catalog API",
    description="Travel media catalog mirrored from Cloudinary",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers with API key protection
app.include_router(posts_router, prefix="/api", dependencies=[Depends(verify_api_key)])
app.include_router(places_router, prefix="/api", dependencies=[Depends(verify_api_key)])
app.include_router(admin_router, prefix="/api", dependencies=[Depends(verify_api_key)])


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "name": "Tapir Catalog API",
        "version": "1.0.0",
        "description": "Travel media catalog mirrored from Cloudinary",
        "endpoints": {
            "posts": "/api/posts",
            "places": "/api/places",
            "import": "/api/admin/cloudinary/import",
            "probe": "/api/admin/cloudinary/probe",
            "upload_config": "/api/admin/cloudinary/config",
            "sign_upload": "/api/admin/cloudinary/sign-upload",
        },
    }


@app.get("/health")
async def health():
    """Health check endpoint."""
    from .db import fetchval

    try:
        result = await fetchval("SELECT 1")
        db_status = "healthy" if result == 1 else "unhealthy"
    except Exception as e:
        logger.warning("Health check query failed: %s", e)
        db_status = f"unhealthy: {e}"

    cloudinary_configured = all(
        os.getenv(name)
        for name in ("CLOUDINARY_CLOUD_NAME", "CLOUDINARY_API_KEY", "CLOUDINARY_API_SECRET")
    )

    return {
        "status": "healthy" if db_status == "healthy" else "degraded",
        "database": db_status,
        "cloudinary_configured": cloudinary_configured,
    }


if __name__ == "__main__":
    import uvicorn

    port = int(os.getenv("PORT", "8000"))
    uvicorn.run(app, host="0.0.0.0", port=port)
