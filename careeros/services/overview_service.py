"""
Dashboard overview aggregation.

Builds one user's {stats, recentActivities, recommendations} snapshot from
the live entity stores. Stats and the activity timeline are cached under
user:{id}:overview and recomputed after invalidation; recommendations are
derived fresh on every call.
"""
import asyncio
from typing import List, Optional

from pydantic import ValidationError as PydanticValidationError

from careeros.config import get_settings
from careeros.services import cache
from careeros.services.entity_store import EntityStores
from careeros.services.invalidation import USER_OVERVIEW, user_key
from careeros.services.recommendations import build_recommendations
from careeros.schemas.progress import (
    AchievementRecord,
    Activity,
    ActivityRecord,
    EnrollmentRecord,
    Overview,
    OverviewSnapshot,
    OverviewStats,
    ProjectRecord,
    QuizResultRecord,
    SkillRecord,
)
from careeros.utils.logger import logger
from careeros.utils.metrics import inc

RECENT_ACTIVITY_LIMIT = 10


def compute_stats(
    enrollments: List[EnrollmentRecord],
    projects: List[ProjectRecord],
    skills: List[SkillRecord],
    achievements: List[AchievementRecord],
    quiz_results: List[QuizResultRecord],
) -> OverviewStats:
    completed_courses = sum(1 for e in enrollments if e.is_completed)
    completed_projects = sum(1 for p in projects if p.is_completed)
    mastered_skills = sum(1 for s in skills if s.is_completed)

    total_items = len(enrollments) + len(projects) + len(skills)
    completed_items = completed_courses + completed_projects + mastered_skills
    # Half-up rounding in integer arithmetic; no items means 0%
    overall_progress = (200 * completed_items + total_items) // (2 * total_items) if total_items else 0

    return OverviewStats(
        completed_courses=completed_courses,
        completed_projects=completed_projects,
        mastered_skills=mastered_skills,
        achievement_count=len(achievements),
        has_career_path=len(quiz_results) > 0,
        overall_progress=overall_progress,
    )


def to_activity(record: ActivityRecord) -> Activity:
    """Map a stored record onto the uniform timeline shape."""
    if isinstance(record, EnrollmentRecord):
        title, entity_id = f"Course #{record.course_id}", record.course_id
    elif isinstance(record, ProjectRecord):
        title, entity_id = f"Project #{record.project_id}", record.project_id
    elif isinstance(record, SkillRecord):
        title, entity_id = f"Skill #{record.soft_skill_id}", record.soft_skill_id
    elif isinstance(record, AchievementRecord):
        title, entity_id = f"Achievement #{record.achievement_id}", record.achievement_id
    else:
        raise TypeError(f"Unsupported activity record: {type(record).__name__}")

    return Activity(
        type=record.kind,
        id=record.id,
        title=title,
        progress=record.progress,
        is_completed=record.is_completed,
        date=record.date,
        entity_id=entity_id,
    )


def merge_activities(
    enrollments: List[EnrollmentRecord],
    projects: List[ProjectRecord],
    skills: List[SkillRecord],
    achievements: List[AchievementRecord],
    limit: int = RECENT_ACTIVITY_LIMIT,
) -> List[Activity]:
    """
    Merge all kinds into one timeline, newest first, truncated to `limit`.

    Equal dates keep concatenation order (courses, projects, skills,
    achievements) because the sort is stable.
    """
    activities = [to_activity(r) for r in [*enrollments, *projects, *skills, *achievements]]
    activities.sort(key=lambda a: a.date, reverse=True)
    return activities[:limit]


class OverviewService:
    """Aggregates entity stores into the dashboard overview for one user."""

    def __init__(self, stores: EntityStores, cache_ttl: Optional[int] = None):
        self.stores = stores
        self.cache_ttl = cache_ttl if cache_ttl is not None else get_settings().overview_cache_ttl

    async def compute_snapshot(self, user_id: int) -> OverviewSnapshot:
        """
        Read every store concurrently and compute stats plus the timeline.

        Any failed read fails the whole call; there is no partial snapshot.
        """
        enrollments, projects, skills, achievements, quiz_results = await asyncio.gather(
            self.stores.enrollments.get(user_id),
            self.stores.projects.get(user_id),
            self.stores.skills.get(user_id),
            self.stores.achievements.get(user_id),
            self.stores.quiz_results.get(user_id),
        )
        return OverviewSnapshot(
            stats=compute_stats(enrollments, projects, skills, achievements, quiz_results),
            recent_activities=merge_activities(enrollments, projects, skills, achievements),
        )

    async def snapshot(self, user_id: int) -> OverviewSnapshot:
        key = user_key(USER_OVERVIEW, user_id)
        cached = await cache.cache_get(key)
        if cached is not None:
            try:
                snapshot = OverviewSnapshot.model_validate(cached)
                inc("overview.cache_hit")
                return snapshot
            except PydanticValidationError:
                logger.warning("overview.cache_unreadable", extra={"cache_key": key})

        # Read before the stores so a concurrent invalidation blocks the write-back
        generation = await cache.cache_generation(key)
        inc("overview.recomputed")
        try:
            snapshot = await self.compute_snapshot(user_id)
        except Exception as exc:
            logger.error(
                "overview.failed",
                extra={"user_id": user_id, "error": str(exc), "error_type": type(exc).__name__},
            )
            raise

        if generation is not None:
            await cache.cache_set(key, snapshot.to_dict(), ttl=self.cache_ttl, generation=generation)
        return snapshot

    async def overview(self, user_id: int) -> Overview:
        snapshot = await self.snapshot(user_id)
        return Overview(
            stats=snapshot.stats,
            recent_activities=snapshot.recent_activities,
            recommendations=build_recommendations(snapshot.stats),
        )
