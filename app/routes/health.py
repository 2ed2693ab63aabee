import logging

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.dependencies import get_db, get_cache
from app.services.shipping.cache import QuoteCache

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])

@router.get("/health")
async def health_check():
    """Basic health check"""
    return {"status": "healthy", "service": "Checkout Shipping"}

@router.get("/health/db")
async def database_health(db: AsyncSession = Depends(get_db)):
    """Check database connectivity"""
    try:
        await db.execute(text("SELECT 1"))
        return {"status": "healthy", "database": "connected"}
    except SQLAlchemyError as e:
        logger.error(f"Database health check failed: {str(e)}")
        return {
            "status": "unhealthy",
            "database": "error",
            "error": str(e)
        }

@router.get("/health/cache")
async def cache_health(cache: QuoteCache = Depends(get_cache)):
    """Shipping quote cache size after dropping expired entries"""
    removed = cache.cleanup_expired()
    return {"status": "healthy", "expired_removed": removed, **cache.stats()}
