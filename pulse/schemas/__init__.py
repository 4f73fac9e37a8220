"""Pydantic schemas for API request/response validation."""

from pulse.schemas.analytics import Post, PostsResponse, TopUsersResponse, UserPostCount
from pulse.schemas.common import ErrorDetail, ErrorResponse, RankedResult
from pulse.schemas.numbers import NumbersResponse

__all__ = [
    "ErrorDetail",
    "ErrorResponse",
    "NumbersResponse",
    "Post",
    "PostsResponse",
    "RankedResult",
    "TopUsersResponse",
    "UserPostCount",
]
