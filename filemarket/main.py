import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from filemarket.config import settings
from filemarket.database import create_db_and_tables
from filemarket.middleware.error_handlers import register_error_handlers
from filemarket.middleware.rate_limit import register_rate_limiting
from filemarket.middleware.request_logging import RequestLoggingMiddleware
from filemarket.routes import (
    analytics,
    auth,
    categories,
    downloads,
    files,
    health,
    invoices,
    payments,
    purchases,
    search,
    site_settings,
    users,
)

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Run DB creation ONLY in local
    if settings.env == "local":
        create_db_and_tables()
    logger.info(f"{settings.store_name} API started (env={settings.env})")
    yield


app = FastAPI(title="File Market API", lifespan=lifespan)

register_rate_limiting(app)
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

app.include_router(auth.router, prefix="/auth", tags=["Authentication"])
app.include_router(users.router, prefix="/users", tags=["Users"])
app.include_router(categories.router, prefix="/categories", tags=["Categories"])
app.include_router(files.router, prefix="/files", tags=["Files"])
app.include_router(downloads.router, prefix="/download", tags=["Downloads"])
app.include_router(purchases.router, prefix="/purchases", tags=["Purchases"])
app.include_router(payments.router, prefix="/payments", tags=["Payments"])
app.include_router(invoices.router, prefix="/invoices", tags=["Invoices"])
app.include_router(search.router, prefix="/search", tags=["Search"])
app.include_router(analytics.router, prefix="/analytics", tags=["Analytics"])
app.include_router(site_settings.router, prefix="/settings", tags=["Site Settings"])
app.include_router(health.router, prefix="/health", tags=["Health"])


@app.get("/")
def root():
    return {
        "name": "File Market API",
        "auth_endpoints": [
            "/auth/register", "/auth/login", "/auth/forgot-password",
            "/auth/reset-password", "/auth/verify-email/{token}",
            "/auth/me", "/auth/refresh-token", "/auth/logout"
        ],
        "catalog_endpoints": [
            "/files", "/files/{file_id}", "/files/{file_id}/download",
            "/categories", "/categories/{category_id}"
        ],
        "commerce_endpoints": [
            "/purchases", "/payments", "/payments/methods", "/invoices"
        ],
        "discovery_endpoints": [
            "/search", "/search/suggestions", "/search/popular"
        ],
        "admin_endpoints": [
            "/analytics/dashboard", "/analytics/export", "/download/stats", "/users"
        ],
    }
