"""Schemas for the social analytics endpoints (/users, /posts)."""

from typing import Any

from pydantic import BaseModel, Field, SerializerFunctionWrapHandler, model_serializer

from pulse.schemas.common import RankedResult


class UserPostCount(BaseModel):
    """A user and the number of posts they have written."""

    user_id: str = Field(alias="userId")
    user_name: str = Field(alias="userName")
    post_count: int = Field(alias="postCount", ge=0)

    model_config = {"populate_by_name": True}


class Post(BaseModel):
    """A post as served upstream, optionally annotated with its comment count.

    Unknown upstream fields are kept and passed through.
    """

    id: int
    user_id: int | str | None = Field(alias="userid", default=None)
    content: str = ""
    comment_count: int | None = Field(alias="commentCount", default=None, ge=0)

    model_config = {"populate_by_name": True, "extra": "allow"}

    @model_serializer(mode="wrap")
    def _omit_missing_comment_count(self, handler: SerializerFunctionWrapHandler) -> dict[str, Any]:
        """Drop the comment count when it was never computed; keep every other field as served."""
        data = handler(self)
        if self.comment_count is None:
            data.pop("commentCount", None)
            data.pop("comment_count", None)
        return data


class TopUsersResponse(RankedResult):
    """Response payload for GET /users (top 5 users by post count)."""

    items: list[UserPostCount] = Field(max_length=5)


class PostsResponse(RankedResult):
    """Response payload for GET /posts?type=popular|latest."""

    items: list[Post] = Field(max_length=5)
