# Database models package
from careeros.models.enrollment import Enrollment
from careeros.models.user_project import UserProject
from careeros.models.user_soft_skill import UserSoftSkill
from careeros.models.user_achievement import UserAchievement
from careeros.models.quiz_result import QuizResult
from careeros.models.community_post import CommunityPost

__all__ = [
    "Enrollment",
    "UserProject",
    "UserSoftSkill",
    "UserAchievement",
    "QuizResult",
    "CommunityPost",
]
