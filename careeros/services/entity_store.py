"""
Entity stores: per-kind persistence for learning progress records.

Every call opens its own AsyncSession, so independent reads can be issued
concurrently, and runs under a fixed deadline (StoreTimeoutError). There is
no retry here; retry policy belongs to callers.

Usage:
    stores = EntityStores.from_session_factory(AsyncSessionLocal)
    record = await stores.enrollments.create(user_id, {"courseId": 3})
    records = await stores.enrollments.get(user_id)
    record, transitioned = await stores.enrollments.mark_completed(record.id, user_id)
"""
import asyncio
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Tuple, Type

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from careeros.config import get_settings
from careeros.exceptions import NotFoundError, StoreTimeoutError, ValidationError
from careeros.models import (
    CommunityPost,
    Enrollment,
    QuizResult,
    UserAchievement,
    UserProject,
    UserSoftSkill,
)
from careeros.schemas.progress import (
    AchievementAward,
    AchievementRecord,
    CommunityPostCreate,
    CommunityPostRecord,
    EnrollmentCreate,
    EnrollmentRecord,
    ProgressUpdate,
    ProjectRecord,
    QuizResultCreate,
    QuizResultRecord,
    SkillRecord,
    UserProjectCreate,
    UserSoftSkillCreate,
)
from careeros.utils.logger import logger
from careeros.utils.metrics import track_duration


def validate_payload(schema: Type[BaseModel], payload: Any) -> BaseModel:
    """Parse a payload into `schema`, converting pydantic errors to ValidationError."""
    if isinstance(payload, schema):
        return payload
    try:
        return schema.model_validate(payload)
    except PydanticValidationError as exc:
        errors = exc.errors(include_url=False, include_context=False, include_input=False)
        fields = ", ".join(".".join(str(p) for p in e["loc"]) or "body" for e in errors)
        raise ValidationError(f"Invalid {schema.__name__} payload: {fields}", errors=errors) from exc


class EntityStore:
    """Append-only store: create and list by owner."""

    name: str = ""
    label: str = ""
    model = None
    record_cls = None
    create_schema: Type[BaseModel] = None
    # Column that must be unique per user, if any
    unique_field: Optional[str] = None

    def __init__(self, session_factory: Callable, timeout_seconds: float = 10.0):
        self._session_factory = session_factory
        self.timeout_seconds = timeout_seconds

    async def _run(self, operation: str, fn, *args):
        try:
            async with track_duration(f"store.{self.name}", operation):
                return await asyncio.wait_for(fn(*args), timeout=self.timeout_seconds)
        except asyncio.TimeoutError:
            logger.error(
                "store.timeout",
                extra={"service": self.name, "operation": operation},
            )
            raise StoreTimeoutError(self.name, operation, self.timeout_seconds) from None

    async def create(self, user_id: int, payload: Any):
        data = validate_payload(self.create_schema, payload)
        return await self._run("create", self._create, user_id, data)

    async def get(self, user_id: int) -> List:
        return await self._run("get", self._get, user_id)

    async def _create(self, user_id: int, data: BaseModel):
        values = data.model_dump()
        async with self._session_factory() as session:
            if self.unique_field:
                column = getattr(self.model, self.unique_field)
                existing = await session.execute(
                    select(self.model.id).where(
                        self.model.user_id == user_id,
                        column == values[self.unique_field],
                    )
                )
                if existing.scalar_one_or_none() is not None:
                    raise ValidationError(
                        f"User {user_id} already has a {self.label} for "
                        f"{self.unique_field}={values[self.unique_field]}"
                    )

            row = self.model(user_id=user_id, **values)
            session.add(row)
            try:
                await session.commit()
            except IntegrityError as exc:
                await session.rollback()
                raise ValidationError(f"Duplicate {self.label} for user {user_id}") from exc
            await session.refresh(row)
            return self.record_cls.from_row(row)

    async def _get(self, user_id: int) -> List:
        async with self._session_factory() as session:
            result = await session.execute(
                select(self.model)
                .where(self.model.user_id == user_id)
                .order_by(self.model.id.asc())
            )
            return [self.record_cls.from_row(row) for row in result.scalars().all()]


class LearningStore(EntityStore):
    """
    Store for progress-tracked records (enrollments, projects, soft skills).

    State machine per row: NotStarted -> InProgress -> Completed. Completed is
    terminal, and is_completed always implies progress == 100.
    """

    async def update(self, entity_id: int, partial: Any, user_id: Optional[int] = None):
        changes = validate_payload(ProgressUpdate, partial)
        fields = changes.model_dump(exclude_none=True)
        record, _ = await self._run("update", self._apply, entity_id, fields, user_id)
        return record

    async def mark_completed(self, entity_id: int, user_id: Optional[int] = None) -> Tuple[Any, bool]:
        """Set progress=100, isCompleted=true. Returns (record, transitioned)."""
        fields = {"progress": 100, "is_completed": True}
        return await self._run("complete", self._apply, entity_id, fields, user_id)

    async def _apply(self, entity_id: int, fields: dict, user_id: Optional[int]):
        async with self._session_factory() as session:
            row = await session.get(self.model, entity_id)
            # Rows owned by someone else are indistinguishable from missing ones
            if row is None or (user_id is not None and row.user_id != user_id):
                raise NotFoundError(self.label, entity_id)

            was_completed = row.is_completed
            progress = fields.get("progress", row.progress)
            is_completed = fields.get("is_completed", row.is_completed)

            if was_completed and (not is_completed or progress != 100):
                raise ValidationError(f"{self.label} {entity_id} is completed and cannot be reopened")
            if is_completed and progress != 100:
                raise ValidationError("isCompleted requires progress to be 100")

            row.progress = progress
            row.is_completed = is_completed
            await session.commit()
            await session.refresh(row)
            return self.record_cls.from_row(row), (is_completed and not was_completed)


class EnrollmentStore(LearningStore):
    name = "enrollments"
    label = "Enrollment"
    model = Enrollment
    record_cls = EnrollmentRecord
    create_schema = EnrollmentCreate
    unique_field = "course_id"


class UserProjectStore(LearningStore):
    name = "user_projects"
    label = "UserProject"
    model = UserProject
    record_cls = ProjectRecord
    create_schema = UserProjectCreate
    unique_field = "project_id"


class UserSoftSkillStore(LearningStore):
    name = "user_soft_skills"
    label = "UserSoftSkill"
    model = UserSoftSkill
    record_cls = SkillRecord
    create_schema = UserSoftSkillCreate
    unique_field = "soft_skill_id"


class AchievementStore(EntityStore):
    name = "achievements"
    label = "UserAchievement"
    model = UserAchievement
    record_cls = AchievementRecord
    create_schema = AchievementAward


class QuizResultStore(EntityStore):
    name = "quiz_results"
    label = "QuizResult"
    model = QuizResult
    record_cls = QuizResultRecord
    create_schema = QuizResultCreate


class CommunityPostStore(EntityStore):
    name = "community_posts"
    label = "CommunityPost"
    model = CommunityPost
    record_cls = CommunityPostRecord
    create_schema = CommunityPostCreate

    async def get_by_community(self, community_id: int) -> List[CommunityPostRecord]:
        return await self._run("get_by_community", self._get_by_community, community_id)

    async def _get_by_community(self, community_id: int) -> List[CommunityPostRecord]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(CommunityPost)
                .where(CommunityPost.community_id == community_id)
                .order_by(CommunityPost.created_at.desc(), CommunityPost.id.desc())
            )
            return [CommunityPostRecord.from_row(row) for row in result.scalars().all()]


@dataclass
class EntityStores:
    enrollments: EnrollmentStore
    projects: UserProjectStore
    skills: UserSoftSkillStore
    achievements: AchievementStore
    quiz_results: QuizResultStore
    posts: CommunityPostStore

    @classmethod
    def from_session_factory(cls, session_factory: Callable, timeout_seconds: float = None) -> "EntityStores":
        if timeout_seconds is None:
            timeout_seconds = get_settings().store_timeout_seconds
        return cls(
            enrollments=EnrollmentStore(session_factory, timeout_seconds),
            projects=UserProjectStore(session_factory, timeout_seconds),
            skills=UserSoftSkillStore(session_factory, timeout_seconds),
            achievements=AchievementStore(session_factory, timeout_seconds),
            quiz_results=QuizResultStore(session_factory, timeout_seconds),
            posts=CommunityPostStore(session_factory, timeout_seconds),
        )
