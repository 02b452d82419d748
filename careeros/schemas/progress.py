"""
Pydantic schemas for learning progress and the dashboard overview.

Stored records are a tagged union over the four activity kinds sharing the
{id, userId, progress, isCompleted, date} base shape. Everything serializes
with camelCase aliases, which is the contract the dashboard client renders.
"""
from datetime import datetime
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# ========== Create payloads ==========
class EnrollmentCreate(CamelModel):
    course_id: int = Field(..., ge=1)


class UserProjectCreate(CamelModel):
    project_id: int = Field(..., ge=1)


class UserSoftSkillCreate(CamelModel):
    soft_skill_id: int = Field(..., ge=1)


class AchievementAward(CamelModel):
    achievement_id: int = Field(..., ge=1)


class QuizResultCreate(CamelModel):
    quiz_type: str = Field(..., min_length=1, max_length=100)
    result: Dict[str, Any]
    recommended_career: str = Field(..., min_length=1, max_length=255)
    recommended_niches: List[str] = Field(default_factory=list)


class CommunityPostCreate(CamelModel):
    community_id: int = Field(..., ge=1)
    title: str = Field(..., min_length=1, max_length=255)
    content: str = Field(..., min_length=1)
    type: str = Field("discussion", min_length=1, max_length=50)


class ProgressUpdate(CamelModel):
    """Partial update accepted by the learning stores."""
    progress: Optional[int] = Field(None, ge=0, le=100)
    is_completed: Optional[bool] = None


# ========== Stored records (tagged union) ==========
class RecordBase(CamelModel):
    id: int
    user_id: int
    progress: Optional[int] = None
    is_completed: bool
    date: datetime


class EnrollmentRecord(RecordBase):
    kind: Literal["course"] = "course"
    course_id: int

    @classmethod
    def from_row(cls, row) -> "EnrollmentRecord":
        return cls(
            id=row.id, user_id=row.user_id, course_id=row.course_id,
            progress=row.progress, is_completed=row.is_completed, date=row.enrolled_at,
        )


class ProjectRecord(RecordBase):
    kind: Literal["project"] = "project"
    project_id: int

    @classmethod
    def from_row(cls, row) -> "ProjectRecord":
        return cls(
            id=row.id, user_id=row.user_id, project_id=row.project_id,
            progress=row.progress, is_completed=row.is_completed, date=row.started_at,
        )


class SkillRecord(RecordBase):
    kind: Literal["skill"] = "skill"
    soft_skill_id: int

    @classmethod
    def from_row(cls, row) -> "SkillRecord":
        return cls(
            id=row.id, user_id=row.user_id, soft_skill_id=row.soft_skill_id,
            progress=row.progress, is_completed=row.is_completed, date=row.started_at,
        )


class AchievementRecord(RecordBase):
    kind: Literal["achievement"] = "achievement"
    achievement_id: int
    is_completed: bool = True

    @classmethod
    def from_row(cls, row) -> "AchievementRecord":
        return cls(
            id=row.id, user_id=row.user_id, achievement_id=row.achievement_id,
            date=row.awarded_at,
        )


ActivityRecord = Annotated[
    Union[EnrollmentRecord, ProjectRecord, SkillRecord, AchievementRecord],
    Field(discriminator="kind"),
]


class QuizResultRecord(CamelModel):
    id: int
    user_id: int
    quiz_type: str
    result: Dict[str, Any]
    recommended_career: str
    recommended_niches: List[str]
    created_at: datetime

    @classmethod
    def from_row(cls, row) -> "QuizResultRecord":
        return cls(
            id=row.id, user_id=row.user_id, quiz_type=row.quiz_type, result=row.result,
            recommended_career=row.recommended_career,
            recommended_niches=row.recommended_niches or [], created_at=row.created_at,
        )


class CommunityPostRecord(CamelModel):
    id: int
    community_id: int
    user_id: int
    title: str
    content: str
    type: str
    created_at: datetime

    @classmethod
    def from_row(cls, row) -> "CommunityPostRecord":
        return cls(
            id=row.id, community_id=row.community_id, user_id=row.user_id,
            title=row.title, content=row.content, type=row.type, created_at=row.created_at,
        )


# ========== Overview ==========
class Activity(CamelModel):
    """One entry of the recent-activity timeline"""
    type: Literal["course", "project", "skill", "achievement"]
    id: int
    title: str
    progress: Optional[int] = None
    is_completed: bool
    date: datetime
    entity_id: int


class OverviewStats(CamelModel):
    completed_courses: int = 0
    completed_projects: int = 0
    mastered_skills: int = 0
    achievement_count: int = 0
    has_career_path: bool = False
    overall_progress: int = Field(0, ge=0, le=100)


class Recommendation(CamelModel):
    type: Literal["project", "skill", "community"]
    id: int
    title: str
    description: str
    reason: str


class OverviewSnapshot(CamelModel):
    """The cached part of the overview; recommendations are never cached."""
    stats: OverviewStats
    recent_activities: List[Activity] = Field(default_factory=list)


class Overview(OverviewSnapshot):
    recommendations: List[Recommendation] = Field(default_factory=list)


# ========== Notifications ==========
class RelatedEntity(CamelModel):
    type: str
    id: int


class Notification(CamelModel):
    id: str
    type: Literal["completion", "progress"]
    title: str
    message: str
    date: datetime
    is_read: bool = False
    related_entity: Optional[RelatedEntity] = None


# ========== Request bodies ==========
class EntityMutation(CamelModel):
    kind: str
    entity_id: int = Field(..., ge=1)

    @field_validator("kind")
    @classmethod
    def normalize_kind(cls, v: str) -> str:
        return v.strip().lower()


class ProgressMutation(EntityMutation):
    progress: int = Field(..., ge=0, le=100)


class CommunityPostBody(CamelModel):
    """Post body; the community comes from the path."""
    user_id: int = Field(..., ge=1)
    title: str
    content: str
    type: str = "discussion"
