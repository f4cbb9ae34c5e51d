# src/sentiment_dashboard/api/routers/seed.py

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from ...core.dependencies import get_seed_service
from ...core.exceptions import DashboardError
from ...core.security import Principal, require_admin
from ...schemas import api_schemas
from ...services.seed_service import SeedService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/seed", tags=["Seed (admin)"])


@router.post("", response_model=api_schemas.SeedResult, summary="Replace scraped data with the demo data set")
async def seed_database(
    admin: Principal = Depends(require_admin),
    seed_service: SeedService = Depends(get_seed_service)
):
    """Auth users are kept; grants on the deleted posts disappear."""
    try:
        return await seed_service.seed()
    except (HTTPException, DashboardError):
        raise
    except Exception as e:
        logger.error(f"Unexpected error while seeding: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to seed database.")


@router.delete("", response_model=api_schemas.MessageResponse, summary="Delete every scraped row")
async def clear_database(
    admin: Principal = Depends(require_admin),
    seed_service: SeedService = Depends(get_seed_service)
):
    try:
        await seed_service.clear()
    except (HTTPException, DashboardError):
        raise
    except Exception as e:
        logger.error(f"Unexpected error while clearing data: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to clear database.")
    return {"message": "Scraped data cleared."}
