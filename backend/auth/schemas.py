# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""Pydantic request / response models for the auth endpoints."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


# -- Requests --------------------------------------------------------------
# Fields default to None so that a missing field reaches the authenticator
# and fails with the same ValidationError as an empty one.


class RegisterRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


# -- Responses -------------------------------------------------------------


class LoginResponse(BaseModel):
    access_token: str
    token_type: str  # always "bearer"
    expires_at: datetime


class UserInfoResponse(BaseModel):
    id: int
    email: str

    model_config = {"from_attributes": True}
