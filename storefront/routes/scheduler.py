"""
Scheduler management endpoints
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.enums import UserRole
from storefront.core.security import get_current_user_email
from storefront.dependencies import get_db
from storefront.scheduler import get_scheduler_status, run_job_now
from storefront.services.user_service import get_user_by_email, require_role

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/scheduler", tags=["scheduler"])


async def require_admin(
    email: str = Depends(get_current_user_email),
    db: AsyncSession = Depends(get_db),
) -> str:
    user = await get_user_by_email(db, email)
    require_role(user, UserRole.ADMIN)
    return email


@router.get("/status", response_model=Dict[str, Any])
async def scheduler_status(
    current_user: str = Depends(require_admin)
):
    """Get current scheduler status and configured jobs"""
    return await get_scheduler_status()


@router.post("/run/{job_id}")
async def run_job(
    job_id: str,
    current_user: str = Depends(require_admin)
):
    """Run a stock analysis job immediately"""
    logger.info(f"User {current_user} manually triggered {job_id}")
    summary = await run_job_now(job_id)
    if summary is None:
        raise HTTPException(status_code=404, detail=f"Unknown job: {job_id}")
    return {"status": "success", "summary": summary.as_dict()}
