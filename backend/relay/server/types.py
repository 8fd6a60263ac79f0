from pydantic import BaseModel, ConfigDict, Field


class SelectAvatarRequest(BaseModel):
    """Body of POST /avatars. The player is looked up by id across all rooms."""

    model_config = ConfigDict(extra="forbid")

    id: int = Field(ge=0, strict=True)
    avatar: str = Field(min_length=1, max_length=100)
