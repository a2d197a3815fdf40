from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class PermissionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str = Field(..., min_length=1, max_length=100)
    description: str | None = None
    resource: str = Field(..., min_length=1, max_length=50)
    action: str = Field(..., min_length=1, max_length=50)
    created_at: datetime


class MyPermissionsResponse(BaseModel):
    roles: list[str]
    is_super_admin: bool
    permissions: dict[str, list[str]]
