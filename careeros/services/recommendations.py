"""
Rule-based learning recommendations.

Three fixed thresholds over the overview stats. The ids are placeholders for
catalog items; these rules are the whole recommendation policy.
"""
from typing import List

from careeros.schemas.progress import OverviewStats, Recommendation

COMMUNITY_PROGRESS_THRESHOLD = 30

APPLIED_PROJECT = Recommendation(
    type="project",
    id=1,
    title="Applied Project",
    description="Apply your new skills in a hands-on project",
    reason="Based on your recently completed courses",
)

LEADERSHIP_SKILL = Recommendation(
    type="skill",
    id=1,
    title="Leadership",
    description="Enhance your project management with leadership skills",
    reason="Complement your project experience",
)

TECH_COMMUNITY = Recommendation(
    type="community",
    id=1,
    title="Tech Innovators",
    description="Connect with other learners in your field",
    reason="Enhance your learning with peer discussion",
)


def build_recommendations(stats: OverviewStats) -> List[Recommendation]:
    recommendations = []
    if stats.completed_courses > 0:
        recommendations.append(APPLIED_PROJECT.model_copy())
    if stats.completed_projects > 0:
        recommendations.append(LEADERSHIP_SKILL.model_copy())
    if stats.overall_progress > COMMUNITY_PROGRESS_THRESHOLD:
        recommendations.append(TECH_COMMUNITY.model_copy())
    return recommendations
