from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from enum import Enum

from diamondapi.models.user import UserRole


class ErrorCode(str, Enum):
    UNAUTHORIZED = "AUTH_001"
    FORBIDDEN = "AUTH_002"
    NOT_FOUND = "NOT_FOUND_001"
    INVALID_STATE = "INVALID_STATE_001"
    VALIDATION = "VALIDATION_001"
    CONFLICT = "CONFLICT_001"
    CONCURRENCY = "CONCURRENCY_001"


class Error(BaseModel):
    code: ErrorCode
    message: str
    details: Optional[dict] = None


class BaseResponse(BaseModel):
    success: bool = True
    data: Optional[dict] = None
    error: Optional[Error] = None
    meta: Optional[dict] = None


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    role: UserRole


class TokenData(BaseModel):
    user_id: Optional[int] = None
    role: Optional[UserRole] = None
