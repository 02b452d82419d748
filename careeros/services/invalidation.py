"""
Invalidation map: which cached views go stale after a mutation event.

The table is plain data (event -> ordered key templates). Templates are
formatted with user_id and, for community events, community_id.
"""
from enum import Enum
from typing import Dict, List, Optional, Tuple

from careeros.exceptions import UnknownEventError, ValidationError


class EventKind(str, Enum):
    COURSE_COMPLETED = "COURSE_COMPLETED"
    PROJECT_COMPLETED = "PROJECT_COMPLETED"
    SKILL_COMPLETED = "SKILL_COMPLETED"
    COMMUNITY_POST_CREATED = "COMMUNITY_POST_CREATED"


# ---------------------------------------------------------------------------
# Cached view keys
# ---------------------------------------------------------------------------

USER_ENROLLMENTS = "user:{user_id}:enrollments"
USER_PROJECTS = "user:{user_id}:user-projects"
USER_SKILLS = "user:{user_id}:user-skills"
USER_ACHIEVEMENTS = "user:{user_id}:achievements"
USER_QUIZ_RESULTS = "user:{user_id}:quiz-results"
USER_RECOMMENDED_COURSES = "user:{user_id}:recommended-courses"
USER_RECOMMENDED_PROJECTS = "user:{user_id}:recommended-projects"
USER_RESUME = "user:{user_id}:resume"
USER_PROFILE = "user:{user_id}:profile"
USER_OVERVIEW = "user:{user_id}:overview"
COMMUNITIES = "communities"
COMMUNITY_DETAIL = "community:{community_id}:detail"
COMMUNITY_POSTS = "community:{community_id}:posts"


INVALIDATION_MAP: Dict[EventKind, Tuple[str, ...]] = {
    EventKind.COURSE_COMPLETED: (
        USER_ENROLLMENTS,
        USER_RECOMMENDED_COURSES,
        USER_ACHIEVEMENTS,
        USER_PROFILE,
        USER_OVERVIEW,
    ),
    EventKind.PROJECT_COMPLETED: (
        USER_PROJECTS,
        USER_RECOMMENDED_PROJECTS,
        USER_ACHIEVEMENTS,
        USER_PROFILE,
        USER_RESUME,
        USER_OVERVIEW,
    ),
    EventKind.SKILL_COMPLETED: (
        USER_SKILLS,
        USER_PROFILE,
        USER_ACHIEVEMENTS,
        USER_RECOMMENDED_PROJECTS,
        USER_RECOMMENDED_COURSES,
        USER_OVERVIEW,
    ),
    EventKind.COMMUNITY_POST_CREATED: (
        COMMUNITIES,
        COMMUNITY_DETAIL,
        COMMUNITY_POSTS,
        USER_ACHIEVEMENTS,  # posting may unlock achievements
    ),
}

# Views touched by a quiz submission (not a completion event)
QUIZ_SUBMITTED_KEYS: Tuple[str, ...] = (
    USER_QUIZ_RESULTS,
    USER_RECOMMENDED_COURSES,
    USER_RECOMMENDED_PROJECTS,
    USER_PROFILE,
    USER_OVERVIEW,
)


def invalidations_for(event_kind, user_id: int, community_id: Optional[int] = None) -> List[str]:
    """
    Return the ordered cache keys that are stale after `event_kind`.

    Raises UnknownEventError for anything outside EventKind.
    """
    try:
        event = EventKind(event_kind)
    except ValueError:
        raise UnknownEventError(event_kind) from None

    templates = INVALIDATION_MAP[event]
    if event is EventKind.COMMUNITY_POST_CREATED and community_id is None:
        raise ValidationError(f"{event.value} requires a community_id")

    return [t.format(user_id=user_id, community_id=community_id) for t in templates]


def user_key(template: str, user_id: int) -> str:
    """Format a single user-scoped key template."""
    return template.format(user_id=user_id)


def community_key(template: str, community_id: int) -> str:
    return template.format(community_id=community_id)
