"""Learning Progress Routes"""

from fastapi import APIRouter, Depends, Request
from typing import Any, Dict

from careeros.dependencies import get_progress_service, get_stores
from careeros.schemas.progress import (
    AchievementAward,
    EntityMutation,
    EnrollmentCreate,
    ProgressMutation,
    UserProjectCreate,
    UserSoftSkillCreate,
)
from careeros.services.entity_store import EntityStores
from careeros.services.invalidation import (
    USER_ACHIEVEMENTS,
    USER_ENROLLMENTS,
    USER_PROJECTS,
    USER_QUIZ_RESULTS,
    USER_SKILLS,
    user_key,
)
from careeros.services.progress_service import ProgressService, cached_list

router = APIRouter()

# Rate limiter for completion and progress writes
from slowapi import Limiter
from slowapi.util import get_remote_address
limiter = Limiter(key_func=get_remote_address)

MUTATION_RATE_LIMIT = "60/minute"


@router.post("/{user_id}/complete")
@limiter.limit(MUTATION_RATE_LIMIT)
async def complete_entity(
    request: Request,
    user_id: int,
    data: EntityMutation,
    service: ProgressService = Depends(get_progress_service),
):
    record = await service.complete_entity(data.kind, data.entity_id, user_id)
    return {"success": True, "record": record.to_dict()}


@router.patch("/{user_id}/progress")
@limiter.limit(MUTATION_RATE_LIMIT)
async def update_progress(
    request: Request,
    user_id: int,
    data: ProgressMutation,
    service: ProgressService = Depends(get_progress_service),
):
    record = await service.update_progress(data.kind, data.entity_id, user_id, data.progress)
    return {"success": True, "record": record.to_dict()}


# ---------------------------------------------------------------------------
# Enrollments / projects / soft skills
# ---------------------------------------------------------------------------

@router.post("/{user_id}/enrollments", status_code=201)
async def enroll(
    user_id: int,
    data: EnrollmentCreate,
    service: ProgressService = Depends(get_progress_service),
):
    record = await service.start("course", user_id, data.course_id)
    return {"success": True, "enrollment": record.to_dict()}


@router.get("/{user_id}/enrollments")
async def list_enrollments(user_id: int, stores: EntityStores = Depends(get_stores)):
    records = await cached_list(user_key(USER_ENROLLMENTS, user_id), lambda: stores.enrollments.get(user_id))
    return {"enrollments": records}


@router.post("/{user_id}/user-projects", status_code=201)
async def start_project(
    user_id: int,
    data: UserProjectCreate,
    service: ProgressService = Depends(get_progress_service),
):
    record = await service.start("project", user_id, data.project_id)
    return {"success": True, "userProject": record.to_dict()}


@router.get("/{user_id}/user-projects")
async def list_user_projects(user_id: int, stores: EntityStores = Depends(get_stores)):
    records = await cached_list(user_key(USER_PROJECTS, user_id), lambda: stores.projects.get(user_id))
    return {"userProjects": records}


@router.post("/{user_id}/user-skills", status_code=201)
async def start_soft_skill(
    user_id: int,
    data: UserSoftSkillCreate,
    service: ProgressService = Depends(get_progress_service),
):
    record = await service.start("skill", user_id, data.soft_skill_id)
    return {"success": True, "userSoftSkill": record.to_dict()}


@router.get("/{user_id}/user-skills")
async def list_user_skills(user_id: int, stores: EntityStores = Depends(get_stores)):
    records = await cached_list(user_key(USER_SKILLS, user_id), lambda: stores.skills.get(user_id))
    return {"userSoftSkills": records}


# ---------------------------------------------------------------------------
# Achievements / quiz results
# ---------------------------------------------------------------------------

@router.post("/{user_id}/achievements", status_code=201)
async def award_achievement(
    user_id: int,
    data: AchievementAward,
    service: ProgressService = Depends(get_progress_service),
):
    record = await service.award_achievement(user_id, data.achievement_id)
    return {"success": True, "achievement": record.to_dict()}


@router.get("/{user_id}/achievements")
async def list_achievements(user_id: int, stores: EntityStores = Depends(get_stores)):
    records = await cached_list(user_key(USER_ACHIEVEMENTS, user_id), lambda: stores.achievements.get(user_id))
    return {"achievements": records}


@router.post("/{user_id}/quiz-results", status_code=201)
async def create_quiz_result(
    user_id: int,
    data: Dict[str, Any],
    service: ProgressService = Depends(get_progress_service),
):
    record = await service.create_quiz_result(user_id, data)
    return {"success": True, "quizResult": record.to_dict()}


@router.get("/{user_id}/quiz-results")
async def list_quiz_results(user_id: int, stores: EntityStores = Depends(get_stores)):
    records = await cached_list(user_key(USER_QUIZ_RESULTS, user_id), lambda: stores.quiz_results.get(user_id))
    return {"quizResults": records}
