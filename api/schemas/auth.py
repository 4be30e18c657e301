"""Request bodies for the authentication endpoints.

Required-ness is checked by the services so that a missing value produces the
same message whether the key is absent or empty.
"""

from typing import Optional
from pydantic import EmailStr, Field

from api.schemas.common import CamelModel, LocationIn
from database.models.users import CompanySize, UserRole


class RegisterRequest(CamelModel):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(None, max_length=128)
    last_name: Optional[str] = None
    location: Optional[LocationIn] = None
    role: Optional[UserRole] = None
    phone: Optional[str] = None
    # Employer-only
    company_name: Optional[str] = None
    company_size: Optional[CompanySize] = None
    industry: Optional[str] = None


class LoginRequest(CamelModel):
    email: Optional[str] = None
    password: Optional[str] = None


class VerifyEmailRequest(CamelModel):
    verification_token: Optional[str] = None
    email: Optional[str] = None


class ResendVerificationRequest(CamelModel):
    email: Optional[str] = None


class UpdateUserRequest(CamelModel):
    email: Optional[EmailStr] = None
    name: Optional[str] = None


class UpdatePasswordRequest(CamelModel):
    old_password: Optional[str] = None
    new_password: Optional[str] = Field(None, max_length=128)
