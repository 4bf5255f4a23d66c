from uuid import UUID
from typing import Any

from pydantic import BaseModel, ConfigDict, EmailStr


class CurrentUserResponse(BaseModel):
    id: UUID
    email: EmailStr
    metadata: dict[str, Any]


class UserMetadataUpdate(BaseModel):
    """Partial metadata; keys not sent are left as they are."""

    model_config = ConfigDict(extra="allow")

    full_name: str | None = None
    clinic_name: str | None = None

    def changes(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True)
