"""Social analytics endpoints.

GET /users - Top 5 users by post count.
GET /posts?type=popular|latest - Most commented or newest posts.
"""

from fastapi import APIRouter, Depends, Query

from pulse.dependencies import get_rank_engine
from pulse.schemas import ErrorResponse, PostsResponse, TopUsersResponse
from pulse.services.ranking import RankEngine

router = APIRouter()


@router.get(
    "/users",
    response_model=TopUsersResponse,
    responses={502: {"model": ErrorResponse}},
)
async def get_top_users(engine: RankEngine = Depends(get_rank_engine)) -> TopUsersResponse:
    """Get the 5 users with the most posts (cached)."""
    return await engine.top_users()


@router.get(
    "/posts",
    response_model=PostsResponse,
    responses={400: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
)
async def get_posts(
    type: str | None = Query(
        default=None,
        description='Ranking mode: "popular" (most comments) or "latest" (newest)',
        examples=["popular", "latest"],
    ),
    engine: RankEngine = Depends(get_rank_engine),
) -> PostsResponse:
    """Get popular or latest posts (cached per type).

    Raises:
        InvalidQueryType (400): If type is missing or not popular/latest.
        DataSourceError (502): If the upstream fan-out fails.
    """
    return await engine.posts(type)
