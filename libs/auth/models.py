import uuid
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class AuthUser(BaseModel):
    """
    Represents an authenticated user, built from the JWT claims.
    """

    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(..., alias="sub")
    email: Optional[EmailStr] = None
    is_admin: bool = False
    role: str = "volunteer"

    @property
    def id(self) -> uuid.UUID:
        return uuid.UUID(self.user_id)
