"""
Learning progress mutations and their dashboard side effects.

Every mutation writes one entity store first. Only after the write succeeds
are the affected cached views marked stale and the session's notifications
and recommendations updated. Notification and recommendation updates are
best-effort: their failures are logged and never undo a successful write.

Usage:
    service = ProgressService(stores, OverviewService(stores), SessionRegistry())
    await service.complete_entity("course", enrollment_id, user_id)
"""
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List

from careeros.config import get_settings
from careeros.exceptions import ValidationError
from careeros.services import cache
from careeros.services.dashboard_session import SessionRegistry
from careeros.services.entity_store import EntityStores, LearningStore
from careeros.services.invalidation import (
    QUIZ_SUBMITTED_KEYS,
    USER_ACHIEVEMENTS,
    USER_ENROLLMENTS,
    USER_OVERVIEW,
    USER_PROJECTS,
    USER_SKILLS,
    EventKind,
    invalidations_for,
    user_key,
)
from careeros.services.overview_service import OverviewService
from careeros.services.recommendations import build_recommendations
from careeros.schemas.progress import Recommendation
from careeros.utils.logger import logger


@dataclass(frozen=True)
class LearningKind:
    kind: str
    store_attr: str
    item_field: str
    event: EventKind
    list_key: str


LEARNING_KINDS: Dict[str, LearningKind] = {
    "course": LearningKind("course", "enrollments", "course_id", EventKind.COURSE_COMPLETED, USER_ENROLLMENTS),
    "project": LearningKind("project", "projects", "project_id", EventKind.PROJECT_COMPLETED, USER_PROJECTS),
    "skill": LearningKind("skill", "skills", "soft_skill_id", EventKind.SKILL_COMPLETED, USER_SKILLS),
}


def resolve_kind(kind: str) -> LearningKind:
    learning = LEARNING_KINDS.get(kind)
    if learning is None:
        raise ValidationError(
            f"Unknown learning kind {kind!r}; expected one of {', '.join(LEARNING_KINDS)}"
        )
    return learning


async def cached_list(key: str, loader: Callable[[], Awaitable[List[Any]]], ttl: int = None) -> List[Dict]:
    """Serve a record list from the view cache, loading and caching it on a miss."""
    cached = await cache.cache_get(key)
    if cached is not None:
        return cached
    generation = await cache.cache_generation(key)
    records = await loader()
    payload = [r.to_dict() for r in records]
    if generation is not None:
        await cache.cache_set(key, payload, ttl=ttl or get_settings().list_cache_ttl, generation=generation)
    return payload


class ProgressService:
    def __init__(self, stores: EntityStores, overview_service: OverviewService, sessions: SessionRegistry):
        self.stores = stores
        self.overview_service = overview_service
        self.sessions = sessions

    def _store(self, learning: LearningKind) -> LearningStore:
        return getattr(self.stores, learning.store_attr)

    async def _invalidate(self, keys: List[str], user_id: int, event: str) -> None:
        marked = await cache.cache_invalidate(keys)
        logger.info(
            "cache.invalidated",
            extra={"user_id": user_id, "event": event, "keys": marked},
        )

    # ------------------------------------------------------------------
    # Completion
    # ------------------------------------------------------------------

    async def complete_entity(self, kind: str, entity_id: int, user_id: int):
        """
        Mark a course/project/skill record completed for `user_id`.

        NotFoundError from the store propagates unchanged, before any side
        effect. Repeating the call on a completed record re-marks the same
        keys stale but adds no second notification.
        """
        learning = resolve_kind(kind)
        record, transitioned = await self._store(learning).mark_completed(entity_id, user_id)
        logger.info(
            "completion.applied",
            extra={"user_id": user_id, "kind": learning.kind, "entity_id": entity_id,
                   "transitioned": transitioned},
        )

        if transitioned:
            try:
                self.sessions.get(user_id).notify_completion(learning.kind, entity_id)
            except Exception as exc:
                logger.warning(f"[progress] completion notification failed: {exc}")

        await self._invalidate(invalidations_for(learning.event, user_id), user_id, learning.event.value)
        await self.refresh_recommendations(user_id)
        return record

    async def refresh_recommendations(self, user_id: int) -> List[Recommendation]:
        """
        Recompute the session's recommendations from live store data.

        The fresh snapshot is not written to the view cache, so invalidated
        keys stay stale until the next overview read.
        """
        session = self.sessions.get(user_id)
        try:
            snapshot = await self.overview_service.compute_snapshot(user_id)
        except Exception as exc:
            logger.warning(
                "recommendations.refresh_failed",
                extra={"user_id": user_id, "error": str(exc), "error_type": type(exc).__name__},
            )
            return session.recommendations
        session.recommendations = build_recommendations(snapshot.stats)
        return session.recommendations

    # ------------------------------------------------------------------
    # Progress
    # ------------------------------------------------------------------

    async def update_progress(self, kind: str, entity_id: int, user_id: int, progress: int):
        learning = resolve_kind(kind)
        if progress == 100:
            return await self.complete_entity(learning.kind, entity_id, user_id)
        if not 0 <= progress < 100:
            raise ValidationError("progress must be between 0 and 100")

        record = await self._store(learning).update(entity_id, {"progress": progress}, user_id=user_id)

        try:
            self.sessions.get(user_id).notify_progress(learning.kind, entity_id)
        except Exception as exc:
            logger.warning(f"[progress] progress notification failed: {exc}")

        keys = [user_key(learning.list_key, user_id), user_key(USER_OVERVIEW, user_id)]
        await self._invalidate(keys, user_id, "PROGRESS_UPDATED")
        return record

    # ------------------------------------------------------------------
    # Start / award / submit
    # ------------------------------------------------------------------

    async def start(self, kind: str, user_id: int, item_id: int):
        """Enroll in a course, start a project or start a soft skill."""
        learning = resolve_kind(kind)
        record = await self._store(learning).create(user_id, {learning.item_field: item_id})
        keys = [user_key(learning.list_key, user_id), user_key(USER_OVERVIEW, user_id)]
        await self._invalidate(keys, user_id, f"{learning.kind.upper()}_STARTED")
        return record

    async def award_achievement(self, user_id: int, achievement_id: int):
        record = await self.stores.achievements.create(user_id, {"achievement_id": achievement_id})
        keys = [user_key(USER_ACHIEVEMENTS, user_id), user_key(USER_OVERVIEW, user_id)]
        await self._invalidate(keys, user_id, "ACHIEVEMENT_AWARDED")
        return record

    async def create_quiz_result(self, user_id: int, payload: Any):
        record = await self.stores.quiz_results.create(user_id, payload)
        keys = [user_key(t, user_id) for t in QUIZ_SUBMITTED_KEYS]
        await self._invalidate(keys, user_id, "QUIZ_SUBMITTED")
        return record

    async def create_community_post(self, user_id: int, payload: Any):
        record = await self.stores.posts.create(user_id, payload)
        keys = invalidations_for(EventKind.COMMUNITY_POST_CREATED, user_id, community_id=record.community_id)
        await self._invalidate(keys, user_id, EventKind.COMMUNITY_POST_CREATED.value)
        return record
