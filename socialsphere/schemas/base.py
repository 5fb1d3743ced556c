"""Shared pydantic base classes: camelCase on the wire, snake_case in Python."""
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class APIModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class RequestModel(APIModel):
    """Request bodies reject fields they do not declare."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")


class MessageResponse(APIModel):
    message: str


class LikeResult(APIModel):
    liked: bool
    like_count: int
