"""
FastAPI application for the metal wall-art storefront.

Serves the catalog, variation management, checkout, custom orders, content
(gallery, hero slides, promo settings), contacts and accounts under /api, and
uploaded images under /uploads.
"""

import os
import time as _time
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from sqlalchemy import text
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request as StarletteRequest
from starlette.responses import Response as StarletteResponse

from storefront.api.auth import router as auth_router
from storefront.api.contacts import router as contacts_router
from storefront.api.custom_orders import router as custom_orders_router
from storefront.api.gallery import router as gallery_router
from storefront.api.hero_slides import router as hero_slides_router
from storefront.api.orders import router as orders_router
from storefront.api.products import router as products_router
from storefront.api.settings import router as settings_router
from storefront.config import settings
from storefront.database import SessionLocal, engine
from storefront.errors import register_exception_handlers
from storefront.logger import get_logger, set_level
from storefront.migrations import run_migrations

set_level(settings.log_level)
logger = get_logger("main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Run additive migrations and make sure the uploads directory exists."""
    os.makedirs(settings.uploads_dir, exist_ok=True)
    try:
        run_migrations(engine)
    except Exception as e:
        # Serve anyway; requests touching missing tables will fail loudly
        logger.error(f"Startup migrations failed: {e}", exc_info=True)
    logger.info(f"Storefront API ready ({settings.env}), uploads at {settings.uploads_dir}")
    yield


app = FastAPI(
    title="Metal Art Storefront API",
    description="Catalog with color/size variations, checkout, custom orders and content admin",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: StarletteRequest, call_next) -> StarletteResponse:
        if request.method == "OPTIONS":
            return await call_next(request)
        t0 = _time.perf_counter()
        response = await call_next(request)
        duration_ms = round((_time.perf_counter() - t0) * 1000, 1)
        logger.info(
            "%s %s -> %d  %.1fms",
            request.method, request.url.path, response.status_code, duration_ms,
        )
        return response


app.add_middleware(RequestLoggingMiddleware)

register_exception_handlers(app)

app.mount("/uploads", StaticFiles(directory=settings.uploads_dir, check_dir=False), name="uploads")

app.include_router(auth_router)
app.include_router(products_router)
app.include_router(orders_router)
app.include_router(custom_orders_router)
app.include_router(contacts_router)
app.include_router(gallery_router)
app.include_router(hero_slides_router)
app.include_router(settings_router)


@app.get("/health")
def health_check():
    health_status = {
        "status": "OK",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": settings.env,
        "database": "unknown",
    }
    try:
        db = SessionLocal()
        try:
            db.execute(text("SELECT 1"))
        finally:
            db.close()
        health_status["database"] = "healthy"
    except Exception as e:
        health_status["database"] = f"unhealthy: {e}"
        health_status["status"] = "degraded"
    return health_status


if __name__ == "__main__":
    uvicorn.run(
        "storefront.main:app",
        host="0.0.0.0",
        port=settings.port,
        reload=not settings.is_production,
    )
