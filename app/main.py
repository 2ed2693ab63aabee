# app/main.py

import logging
import os
import subprocess
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request

from app.core.config import get_settings
from app.core.logging_config import configure_logging
from app import models  # noqa: F401  registers models with SQLAlchemy
from app.routes import health, shipping

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Run migrations on startup
    if os.getenv('RUN_MIGRATIONS', 'false').lower() == 'true':
        logger.info("Running database migrations...")
        result = subprocess.run(['alembic', 'upgrade', 'head'], capture_output=True, text=True)
        if result.returncode == 0:
            logger.info("Migrations completed successfully")
        else:
            logger.error(f"Migration failed: {result.stderr}")

    # Rate provider integrations register themselves here; quotes answer 503 until one does
    if not hasattr(app.state, "rate_provider"):
        app.state.rate_provider = None

    yield


settings = get_settings()
configure_logging(settings.LOG_LEVEL)

app = FastAPI(
    title="Checkout Shipping",
    description="Shipping rules, settings and quotes for the checkout",
    version="1.0.0",
    debug=settings.DEBUG,
    lifespan=lifespan
)

# Add middleware to handle HTTPS behind proxy
@app.middleware("http")
async def proxy_headers_middleware(request: Request, call_next):
    forwarded_proto = request.headers.get("x-forwarded-proto")
    if forwarded_proto == "https":
        request.scope["scheme"] = "https"
    response = await call_next(request)
    return response

app.include_router(health.router)
app.include_router(shipping.router)
