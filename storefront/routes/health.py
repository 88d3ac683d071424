from fastapi import APIRouter, Depends, Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.dependencies import get_db

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check():
    """Basic health check"""
    return {"status": "healthy", "service": "Storefront Backend"}


@router.get("/health/db")
async def database_health(request: Request, db: AsyncSession = Depends(get_db)):
    """Check database and cache connectivity"""
    cache = getattr(request.app.state, "cache", None)
    cache_ok = await cache.ping() if cache is not None else False
    cache_status = "connected" if cache_ok else "unavailable"
    try:
        await db.execute(text("SELECT 1"))
        tables_result = await db.execute(
            text("SELECT table_name FROM information_schema.tables WHERE table_schema = 'public' ORDER BY table_name")
        )
        tables = [row[0] for row in tables_result]
    except Exception as e:
        return {"status": "unhealthy", "database": "error", "cache": cache_status, "error": str(e)}

    return {
        "status": "healthy",
        "database": "connected",
        "cache": cache_status,
        "tables_count": len(tables),
        "tables": tables
    }
