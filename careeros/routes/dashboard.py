"""Dashboard Overview & Notification Routes"""

from fastapi import APIRouter, Depends, HTTPException

from careeros.dependencies import get_overview_service, get_sessions
from careeros.services.dashboard_session import SessionRegistry
from careeros.services.overview_service import OverviewService
from careeros.utils.logger import get_logger

router = APIRouter()
logger = get_logger()


@router.get("/{user_id}/overview")
async def get_overview(
    user_id: int,
    overview_service: OverviewService = Depends(get_overview_service),
    sessions: SessionRegistry = Depends(get_sessions),
):
    try:
        overview = await overview_service.overview(user_id)
    except Exception as e:
        # Never render a partially populated dashboard
        logger.error(f"Overview failed for user {user_id}: {e}")
        raise HTTPException(status_code=503, detail="Could not load your progress")

    sessions.get(user_id).recommendations = overview.recommendations
    return overview.to_dict()


@router.get("/{user_id}/notifications")
async def list_notifications(
    user_id: int,
    sessions: SessionRegistry = Depends(get_sessions),
):
    log = sessions.get(user_id).notifications
    return {
        "notifications": [n.to_dict() for n in log.list()],
        "notificationCount": log.unread_count,
        "hasNotifications": log.has_notifications,
    }


@router.post("/{user_id}/notifications/{notification_id}/read")
async def mark_notification_read(
    user_id: int,
    notification_id: str,
    sessions: SessionRegistry = Depends(get_sessions),
):
    notification = sessions.get(user_id).notifications.mark_read(notification_id)
    return {"success": True, "notification": notification.to_dict()}


@router.post("/{user_id}/notifications/read-all")
async def mark_all_notifications_read(
    user_id: int,
    sessions: SessionRegistry = Depends(get_sessions),
):
    updated = sessions.get(user_id).notifications.mark_all_read()
    return {"success": True, "updated": updated}


@router.get("/{user_id}/recommendations")
async def get_recommendations(
    user_id: int,
    sessions: SessionRegistry = Depends(get_sessions),
):
    """Latest recommendations computed for this session (after an overview or completion)."""
    return {"recommendations": [r.to_dict() for r in sessions.get(user_id).recommendations]}
