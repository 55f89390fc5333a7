from datetime import datetime
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field, EmailStr

from notekeeper.api.validation import (
    COLOR_PATTERN,
    CONTENT_MAX_LENGTH,
    NAME_MAX_LENGTH,
    PASSWORD_MIN_LENGTH,
)

T = TypeVar("T")


# Envelope

class ApiResponse(BaseModel, Generic[T]):
    """Envelope shared by every JSON response"""
    success: bool = True
    message: Optional[str] = None
    data: Optional[T] = None


# Users

class UserCreateRequest(BaseModel):
    """Request model to register a new user"""
    name: str = Field(..., min_length=1, max_length=NAME_MAX_LENGTH, description="Display name")
    email: EmailStr = Field(..., description="User email")
    password: str = Field(..., min_length=PASSWORD_MIN_LENGTH, description="Plaintext password (min 6 chars)")


class LoginRequest(BaseModel):
    """Request model to log in with email and password"""
    email: EmailStr
    password: str = Field(..., min_length=1)


class ProfileUpdateRequest(BaseModel):
    """Update profile request (partial)"""
    name: Optional[str] = Field(None, min_length=1, max_length=NAME_MAX_LENGTH)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(None, min_length=PASSWORD_MIN_LENGTH)


class UserResponse(BaseModel):
    """User response without sensitive fields"""
    id: str
    name: str
    email: str
    created_at: datetime


class AuthPayload(BaseModel):
    """Token plus the authenticated user"""
    token: str = Field(..., description="JWT access token")
    user: UserResponse


# Notes

class NoteCreateRequest(BaseModel):
    """Create note request"""
    title: str = Field(..., min_length=1, description="Trimmed, then 1-100 chars")
    content: str = Field(..., min_length=1, max_length=CONTENT_MAX_LENGTH)
    tags: Optional[List[str]] = Field(None, description="Tags; duplicates are dropped")
    color: Optional[str] = Field(None, pattern=COLOR_PATTERN, description="Hex color, e.g. #ffffff")


class NoteUpdateRequest(BaseModel):
    """Update note request (partial)"""
    title: Optional[str] = Field(None, min_length=1, description="Trimmed, then 1-100 chars")
    content: Optional[str] = Field(None, min_length=1, max_length=CONTENT_MAX_LENGTH)
    tags: Optional[List[str]] = None
    color: Optional[str] = Field(None, pattern=COLOR_PATTERN)


class NoteResponse(BaseModel):
    """Note response model"""
    id: str
    title: str
    content: str
    tags: List[str]
    color: str
    owner_id: str
    created_at: datetime
    updated_at: datetime


class NoteListResponse(BaseModel):
    """Listing response; count is the number of notes returned"""
    success: bool = True
    count: int
    data: List[NoteResponse]
