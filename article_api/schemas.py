from pydantic import BaseModel, ConfigDict, Field


# --- Comment ---

class CommentCreate(BaseModel):
    text: str


# --- Article ---

class ArticleResponse(BaseModel):
    """Article row as returned by the mutating routes."""

    id: int
    upvote: int
    upvote_ids: list[str] = Field(default_factory=list, alias="upvoteIds")
    comment: list[str] = Field(default_factory=list)
    model_config = ConfigDict(populate_by_name=True)


class ArticleDetail(ArticleResponse):
    """Article as returned by the read route, with the caller's vote eligibility."""

    can_upvote: bool = Field(alias="canUpvote")


# --- Errors ---

class MessageResponse(BaseModel):
    message: str


class ErrorResponse(BaseModel):
    error: str
