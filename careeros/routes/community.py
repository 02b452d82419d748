"""Community Post Routes"""

from fastapi import APIRouter, Depends, Request

from careeros.dependencies import get_progress_service, get_stores
from careeros.schemas.progress import CommunityPostBody
from careeros.services.entity_store import EntityStores
from careeros.services.invalidation import COMMUNITY_POSTS, community_key
from careeros.services.progress_service import ProgressService, cached_list

router = APIRouter()

# Rate limiter for post creation
from slowapi import Limiter
from slowapi.util import get_remote_address
limiter = Limiter(key_func=get_remote_address)

POST_RATE_LIMIT = "20/minute"


@router.post("/{community_id}/posts", status_code=201)
@limiter.limit(POST_RATE_LIMIT)
async def create_post(
    request: Request,
    community_id: int,
    data: CommunityPostBody,
    service: ProgressService = Depends(get_progress_service),
):
    payload = {
        "communityId": community_id,
        "title": data.title,
        "content": data.content,
        "type": data.type,
    }
    record = await service.create_community_post(data.user_id, payload)
    return {"success": True, "post": record.to_dict()}


@router.get("/{community_id}/posts")
async def list_posts(community_id: int, stores: EntityStores = Depends(get_stores)):
    posts = await cached_list(
        community_key(COMMUNITY_POSTS, community_id),
        lambda: stores.posts.get_by_community(community_id),
    )
    return {"posts": posts}
