from datetime import datetime
from typing import Annotated

from pydantic import Field, SecretStr, model_validator

from gallery.schemas.base import BaseSchema


class StoredObject(BaseSchema):
    """Object as listed from the object store"""

    key: str
    size: int
    uploaded: datetime | None = None
    content_type: str | None = None
    custom_metadata: dict[str, str] = Field(default_factory=dict)


class LoginRequest(BaseSchema):
    username: Annotated[str, Field(min_length=1)]
    password: Annotated[SecretStr, Field(min_length=1)]


class LoginResponse(BaseSchema):
    """Login result, the token fields are only set in token auth mode"""

    success: bool = True
    access_token: str | None = None
    token_type: str | None = None
    expires_in: int | None = None


class UploadResponse(BaseSchema):
    success: bool = True
    key: str
    metadata: dict[str, str] = Field(default_factory=dict)


class DeleteRequest(BaseSchema):
    """Delete one object by `key` or several by `keys`"""

    key: str | None = None
    keys: list[str] | None = None

    @model_validator(mode="after")
    def require_key_or_keys(self) -> "DeleteRequest":
        if not self.key and not self.keys:
            raise ValueError("Either key or keys is required")

        return self

    @property
    def target_keys(self) -> list[str]:
        if self.key:
            return [self.key]

        return list(self.keys or [])


class DeleteResponse(BaseSchema):
    success: bool = True
    deleted: int
