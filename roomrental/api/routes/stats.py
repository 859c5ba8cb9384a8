"""
Dashboard statistics endpoints.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from roomrental.core.actor import Actor
from roomrental.core.security import get_current_actor, require_roles
from roomrental.db.session import get_db
from roomrental.models.user import UserRole
from roomrental.schemas.stats import AdminStats, LandlordStats, TenantStats
from roomrental.services import stats_service

router = APIRouter(prefix="/stats", tags=["Dashboards"])


@router.get("/me", response_model=TenantStats)
async def tenant_dashboard(
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    return await stats_service.tenant_stats(db, actor)


@router.get("/landlord", response_model=LandlordStats)
async def landlord_dashboard(
    actor: Actor = Depends(require_roles(UserRole.LANDLORD, UserRole.ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    return await stats_service.landlord_stats(db, actor)


@router.get("/admin", response_model=AdminStats)
async def admin_dashboard(
    actor: Actor = Depends(require_roles(UserRole.ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    return await stats_service.admin_stats(db)
