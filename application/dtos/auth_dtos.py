from datetime import datetime

from pydantic import BaseModel, Field

from application.dtos.post_dtos import CamelModel


class CredentialsRequest(BaseModel):
    email: str = Field(..., description="Email address of the account")
    password: str = Field(..., description="Account password")


class UserResponse(CamelModel):
    user_id: str
    email: str
    created_at: datetime | None = None


class SessionResponse(CamelModel):
    token: str = Field(..., description="Bearer token for the Authorization header")
    expires_at: datetime
    user: UserResponse
