"""
Pydantic Schemas for the auth service.

Request bodies keep the camelCase keys the web client sends
(idToken, displayName).
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class LoginRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id_token: Optional[str] = Field(None, alias="idToken")


class RegisterRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    email: Optional[str] = Field(None, examples=["maria@example.com"])
    password: Optional[str] = Field(None, examples=["s3nh4-segura"])
    display_name: Optional[str] = Field(None, alias="displayName", examples=["Maria"])


class UserPayload(BaseModel):
    uid: str
    email: Optional[str] = None
    name: str


class UserResponse(BaseModel):
    success: bool = True
    user: UserPayload
    message: Optional[str] = None
