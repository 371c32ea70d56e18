from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field

from constants import (
    MESSAGE_MAX_LENGTH,
    MESSAGE_MIN_LENGTH,
    NAME_MAX_LENGTH,
    NAME_MIN_LENGTH,
)


class ContactSubmission(BaseModel):
    name: str = Field(..., min_length=NAME_MIN_LENGTH, max_length=NAME_MAX_LENGTH)
    email: EmailStr
    message: str = Field(..., min_length=MESSAGE_MIN_LENGTH, max_length=MESSAGE_MAX_LENGTH)


class ValidationIssue(BaseModel):
    message: str
    path: List[str]


class NotificationResult(BaseModel):
    delivered: bool
    external_id: Optional[str] = None


class ContactAccepted(BaseModel):
    success: bool = True
    id: Optional[str] = None


class ErrorResponse(BaseModel):
    error: str


class ValidationErrorResponse(ErrorResponse):
    details: List[ValidationIssue]


class HealthResponse(BaseModel):
    status: str
    uptime: float
    version: str
