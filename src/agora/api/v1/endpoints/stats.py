"""Community and personal statistics endpoints."""

from fastapi import APIRouter

from agora.schemas.stats import CommunityStats, DashboardStats
from agora.services import stats_service

from ..dependencies import CurrentUserDep, SessionDep

router = APIRouter(prefix="/stats", tags=["stats"])


@router.get("/community", response_model=CommunityStats)
async def get_community_stats(db: SessionDep) -> CommunityStats:
    return stats_service.community_stats(db)


@router.get("/dashboard", response_model=DashboardStats)
async def get_dashboard_stats(current_user: CurrentUserDep, db: SessionDep) -> DashboardStats:
    """Summarize the caller's questions, answers and received score."""
    return stats_service.dashboard_stats(db, current_user)
