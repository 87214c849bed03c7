from typing import Any, Optional

from pydantic import BaseModel, EmailStr, Field


class AuthUser(BaseModel):
    """
    Represents an authenticated user from a Supabase JWT.
    """

    user_id: str = Field(..., alias="sub")
    email: Optional[EmailStr] = None
    role: str = "authenticated"
    app_metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def is_admin(self) -> bool:
        return self.app_metadata.get("role") == "admin"
