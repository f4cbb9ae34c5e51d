# src/sentiment_dashboard/api/routers/dashboard.py

from fastapi import APIRouter, Depends

from ...core.dependencies import get_analytics_service
from ...core.security import Principal, get_current_principal
from ...schemas import api_schemas
from ...services.analytics_service import AnalyticsService

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get("/stats", response_model=api_schemas.DashboardStats, summary="Dashboard KPIs and the 24-hour sentiment trend")
async def get_dashboard_stats(
    principal: Principal = Depends(get_current_principal),
    analytics_service: AnalyticsService = Depends(get_analytics_service)
):
    """
    Admins get figures over every post, other callers over their granted posts.
    """
    return await analytics_service.dashboard_stats(principal)
