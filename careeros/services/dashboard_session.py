"""
Per-user dashboard session state: the notification log and the latest
learning recommendations.

Sessions live in process memory only. Everything here can be discarded and
rebuilt from the entity stores; nothing is a source of truth.
"""
import uuid
from collections import deque
from datetime import datetime, timezone
from typing import Dict, List, Optional

from careeros.config import get_settings
from careeros.exceptions import NotFoundError
from careeros.schemas.progress import Notification, Recommendation, RelatedEntity


class NotificationLog:
    """Capped notification log, newest first. The oldest entry is evicted when full."""

    def __init__(self, capacity: int = 50):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self._items = deque(maxlen=capacity)

    def add(self, notification_type: str, title: str, message: str,
            related_entity: Optional[RelatedEntity] = None) -> Notification:
        notification = Notification(
            id=uuid.uuid4().hex,
            type=notification_type,
            title=title,
            message=message,
            date=datetime.now(timezone.utc),
            is_read=False,
            related_entity=related_entity,
        )
        # appendleft on a full deque drops from the right, i.e. the oldest
        self._items.appendleft(notification)
        return notification

    def list(self) -> List[Notification]:
        return list(self._items)

    def mark_read(self, notification_id: str) -> Notification:
        for n in self._items:
            if n.id == notification_id:
                n.is_read = True
                return n
        raise NotFoundError("Notification", notification_id)

    def mark_all_read(self) -> int:
        count = 0
        for n in self._items:
            if not n.is_read:
                n.is_read = True
                count += 1
        return count

    @property
    def unread_count(self) -> int:
        return sum(1 for n in self._items if not n.is_read)

    @property
    def has_notifications(self) -> bool:
        return self.unread_count > 0

    def __len__(self) -> int:
        return len(self._items)


class DashboardSession:
    def __init__(self, user_id: int, notification_capacity: int = 50):
        self.user_id = user_id
        self.notifications = NotificationLog(notification_capacity)
        self.recommendations: List[Recommendation] = []

    def notify_completion(self, kind: str, entity_id: int) -> Notification:
        return self.notifications.add(
            notification_type="completion",
            title=f"{kind.capitalize()} Completed!",
            message=f"Congratulations! You've completed {kind} #{entity_id}",
            related_entity=RelatedEntity(type=kind, id=entity_id),
        )

    def notify_progress(self, kind: str, entity_id: int) -> Notification:
        return self.notifications.add(
            notification_type="progress",
            title="Progress Update",
            message=f"You've made progress in your {kind} #{entity_id}!",
            related_entity=RelatedEntity(type=kind, id=entity_id),
        )


class SessionRegistry:
    """Maps user id to its DashboardSession. Sessions are never shared across users."""

    def __init__(self, notification_capacity: Optional[int] = None):
        if notification_capacity is None:
            notification_capacity = get_settings().notification_log_size
        self.notification_capacity = notification_capacity
        self._sessions: Dict[int, DashboardSession] = {}

    def get(self, user_id: int) -> DashboardSession:
        session = self._sessions.get(user_id)
        if session is None:
            session = DashboardSession(user_id, self.notification_capacity)
            self._sessions[user_id] = session
        return session

    def discard(self, user_id: int) -> None:
        self._sessions.pop(user_id, None)

    def __contains__(self, user_id: int) -> bool:
        return user_id in self._sessions
