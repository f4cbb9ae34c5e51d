# src/sentiment_dashboard/core/dependencies.py

# ==============================================================================
# REQUEST-SCOPED DEPENDENCIES
# ==============================================================================
# Service providers bound to the request's database session, and the parser
# that turns raw query-string parameters into typed query options.
# ==============================================================================

from typing import Any, Callable, Dict, Optional, Type, TypeVar

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ..db.session import get_db_session
from ..schemas.query_options import QueryOptions
from ..services.access_service import AccessService
from ..services.analytics_service import AnalyticsService
from ..services.data_service import DataService
from ..services.seed_service import SeedService

OptionsT = TypeVar("OptionsT", bound=QueryOptions)


def get_data_service(db: AsyncSession = Depends(get_db_session)) -> DataService:
    """Dependency provider for the DataService."""
    return DataService(db_session=db)


def get_analytics_service(db: AsyncSession = Depends(get_db_session)) -> AnalyticsService:
    """Dependency provider for the AnalyticsService."""
    return AnalyticsService(db_session=db)


def get_access_service(db: AsyncSession = Depends(get_db_session)) -> AccessService:
    return AccessService(db_session=db)


def get_seed_service(db: AsyncSession = Depends(get_db_session)) -> SeedService:
    return SeedService(db_session=db)


def query_options(model: Type[OptionsT], defaults: Optional[Dict[str, Any]] = None) -> Callable[[Request], OptionsT]:
    """
    Builds a dependency parsing the query string into `model`.

    The whole query string is handed to the model, which silently drops the
    values it cannot use. `defaults` replace the model defaults for one route,
    for every field the client did not set with a usable value.
    """
    def dependency(request: Request) -> OptionsT:
        options = model.model_validate(dict(request.query_params))
        for key, value in (defaults or {}).items():
            if key not in options.model_fields_set:
                setattr(options, key, value)
        return options
    return dependency
