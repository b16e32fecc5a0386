from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional

PASSWORD_MIN_LENGTH = 6


class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=PASSWORD_MIN_LENGTH)

    @field_validator("name")
    @classmethod
    def clean_name(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("Name is required")
        return cleaned

    @field_validator("email")
    @classmethod
    def lower_email(cls, value: str) -> str:
        return value.lower()


class LoginRequest(BaseModel):
    email: EmailStr
    password: str

    @field_validator("email")
    @classmethod
    def lower_email(cls, value: str) -> str:
        return value.lower()


class RefreshTokenRequest(BaseModel):
    refresh_token: Optional[str] = None


class EmailTokenRequest(BaseModel):
    token: str


class PasswordResetRequest(BaseModel):
    email: EmailStr

    @field_validator("email")
    @classmethod
    def lower_email(cls, value: str) -> str:
        return value.lower()


class PasswordResetConfirm(BaseModel):
    token: str
    password: str = Field(..., min_length=PASSWORD_MIN_LENGTH)


class PasswordChangeRequest(BaseModel):
    current_password: str
    new_password: str = Field(..., min_length=PASSWORD_MIN_LENGTH)


class GoogleCodeRequest(BaseModel):
    code: str = Field(..., min_length=1)
