"""Profile schemas."""

from datetime import datetime
from typing import Optional

from pydantic import EmailStr, Field

from ..core.enums import RoleName
from ._strict_base import OrmResponseModel, StrictRequestModel


class ProfileResponse(OrmResponseModel):
    id: str
    user_id: str
    email: str
    full_name: str
    phone: Optional[str] = None
    company_name: Optional[str] = None
    bio: Optional[str] = None
    avatar_url: Optional[str] = None
    role: RoleName
    credit_balance: int
    created_at: datetime


class ProfileContactUpdate(StrictRequestModel):
    """Editable contact fields. Balance and role are deliberately absent."""

    full_name: Optional[str] = Field(None, min_length=1, max_length=200)
    phone: Optional[str] = Field(None, max_length=50)
    company_name: Optional[str] = Field(None, max_length=200)
    bio: Optional[str] = Field(None, max_length=2000)
    avatar_url: Optional[str] = Field(None, max_length=500)


class SignupRequest(StrictRequestModel):
    """Body of the signup hook, sent once per new identity."""

    email: EmailStr
    full_name: str = Field("", max_length=200)
