import logging
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.adapters.sqlite.migrator import SQLiteMigrator
from src.api.deps import get_settings
from src.app_shell.config import validate_ops_rules
from src.rules.loader import load_rules

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    settings = get_settings()

    # Load rules, check the environment and migrate the database (fail-fast)
    try:
        rules = load_rules(settings.rules_path)
        validate_ops_rules(rules)
        logger.info("Rules loaded from %s", settings.rules_path)
        applied = SQLiteMigrator(settings.db_path).run_migrations()
        if applied:
            logger.info("Applied migrations: %s", ", ".join(applied))
    except Exception:
        logger.critical("Startup failed", exc_info=True)
        sys.exit(1)

    yield


app = FastAPI(
    title="EXOCORPSE API",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# --- Routers ---
from src.api.routes import (  # noqa: E402
    admin_addons,
    admin_blacklist,
    admin_blog,
    admin_portfolio,
    admin_relationships,
    admin_services,
    admin_wiki,
    auth,
    public,
    storage,
    storage_objects,
)

app.include_router(auth.router, prefix="/api/auth", tags=["Auth"])
app.include_router(admin_services.router, prefix="/api/admin/services", tags=["Admin Services"])
app.include_router(admin_addons.router, prefix="/api/admin/addons", tags=["Admin Add-ons"])
app.include_router(admin_blacklist.router, prefix="/api/admin/blacklist", tags=["Admin Blacklist"])
app.include_router(admin_wiki.router, prefix="/api/admin/wiki", tags=["Admin Wiki"])
app.include_router(
    admin_relationships.router, prefix="/api/admin/relationships", tags=["Admin Relationships"]
)
app.include_router(admin_blog.router, prefix="/api/admin/blog", tags=["Admin Blog"])
app.include_router(admin_portfolio.router, prefix="/api/admin/portfolio", tags=["Admin Portfolio"])
app.include_router(storage.router, prefix="/api/storage", tags=["Storage"])
app.include_router(public.router, prefix="/api/public", tags=["Public"])
app.include_router(storage_objects.router, prefix="/storage", tags=["Storage Objects"])


# CORS (Allow Frontend)
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
def health_check() -> dict[str, Any]:
    """Health check endpoint."""
    return {"status": "ok", "service": "api"}
