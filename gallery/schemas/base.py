from pydantic import BaseModel, ConfigDict


class BaseSchema(BaseModel):
    """Request and response bodies, unknown fields are a validation error (400)"""

    model_config = ConfigDict(from_attributes=True, extra="forbid")
