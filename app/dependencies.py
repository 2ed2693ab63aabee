from typing import AsyncGenerator, Optional
from fastapi import HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import async_session
from app.services.shipping.base import BaseRateProvider
from app.services.shipping.cache import QuoteCache, get_quote_cache

async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency for getting async database sessions."""
    async with async_session() as session:
        try:
            yield session
        finally:
            await session.close()


def get_rate_provider(request: Request) -> BaseRateProvider:
    """Rate provider registered on app.state at startup (none by default)."""
    provider: Optional[BaseRateProvider] = getattr(request.app.state, "rate_provider", None)
    if provider is None:
        raise HTTPException(status_code=503, detail="No shipping rate provider configured")
    return provider


def get_cache() -> QuoteCache:
    return get_quote_cache()
