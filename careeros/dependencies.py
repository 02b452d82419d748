"""FastAPI dependencies wiring the stores and services together."""
from typing import Optional

from fastapi import Depends

from careeros.database import AsyncSessionLocal
from careeros.services.dashboard_session import SessionRegistry
from careeros.services.entity_store import EntityStores
from careeros.services.overview_service import OverviewService
from careeros.services.progress_service import ProgressService

_stores: Optional[EntityStores] = None
_sessions: Optional[SessionRegistry] = None


def get_stores() -> EntityStores:
    global _stores
    if _stores is None:
        _stores = EntityStores.from_session_factory(AsyncSessionLocal)
    return _stores


def get_sessions() -> SessionRegistry:
    global _sessions
    if _sessions is None:
        _sessions = SessionRegistry()
    return _sessions


def get_overview_service(stores: EntityStores = Depends(get_stores)) -> OverviewService:
    return OverviewService(stores)


def get_progress_service(
    stores: EntityStores = Depends(get_stores),
    overview_service: OverviewService = Depends(get_overview_service),
    sessions: SessionRegistry = Depends(get_sessions),
) -> ProgressService:
    return ProgressService(stores, overview_service, sessions)
