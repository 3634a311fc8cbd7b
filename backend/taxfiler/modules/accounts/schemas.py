"""
Account request and response schemas.
"""

from datetime import datetime
from typing import Any, Dict, Literal, Optional

from pydantic import EmailStr, Field, field_validator

from taxfiler.shared.schemas import CamelModel

FilingStatus = Literal['single', 'married-joint', 'married-separate', 'head-of-household', 'qualifying-widow']


class SignupRequest(CamelModel):
    """Signup request body."""
    email: EmailStr
    password: str = Field(min_length=6, max_length=72)
    first_name: Optional[str] = None
    last_name: Optional[str] = None

    @field_validator('password')
    @classmethod
    def password_fits_bcrypt(cls, value: str) -> str:
        if len(value.encode('utf-8')) > 72:
            raise ValueError('Password must be at most 72 bytes long')
        return value

    @field_validator('first_name', 'last_name')
    @classmethod
    def strip_names(cls, value: Optional[str]) -> Optional[str]:
        return value.strip() if value is not None else value


class LoginRequest(CamelModel):
    """Login request body."""
    email: EmailStr
    password: str = Field(min_length=1)


class ProfileUpdateRequest(CamelModel):
    """Fields a user may change on their own profile."""
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    filing_status: Optional[FilingStatus] = None

    @field_validator('first_name', 'last_name')
    @classmethod
    def strip_names(cls, value: Optional[str]) -> Optional[str]:
        return value.strip() if value is not None else value


class UserSummary(CamelModel):
    """Public identity subset returned by signup and login."""
    id: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class UserProfile(UserSummary):
    """Full profile - everything except the password hash."""
    filing_status: Optional[str] = None
    tax_classification: Optional[str] = None
    business_name: Optional[str] = None
    address: Optional[Dict[str, Any]] = None
    income: Optional[Dict[str, Any]] = None
    deductions: Optional[Dict[str, Any]] = None
    w9_uploaded: bool = False
    w2_uploaded: bool = False
    form_completion_status: Optional[str] = None
    created_at: Optional[datetime] = None
    last_login: Optional[datetime] = None


class DashboardUser(UserSummary):
    """Dashboard view of the current user with document status."""
    filing_status: Optional[str] = None
    w9_uploaded: bool = False
    w9_upload_date: Optional[datetime] = None
    w9_file_name: Optional[str] = None
    w2_uploaded: bool = False
    w2_upload_date: Optional[datetime] = None
    w2_file_name: Optional[str] = None
    form_completion_status: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class SignupResponse(CamelModel):
    success: bool = True
    message: str = "User registered successfully"
    user: UserSummary


class LoginResponse(CamelModel):
    success: bool = True
    message: str = "Login successful"
    token: str
    token_type: str = "bearer"
    expires_in: int  # seconds
    user: UserSummary


class ProfileResponse(CamelModel):
    success: bool = True
    user: UserProfile


class DashboardUserResponse(CamelModel):
    success: bool = True
    user: DashboardUser


class ProfileUpdateResponse(CamelModel):
    success: bool = True
    message: str = "Profile updated successfully"
    user: DashboardUser
