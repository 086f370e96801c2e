"""Pydantic schemas for validation and serialization."""
from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, Field, field_validator, ConfigDict
from pydantic.alias_generators import to_camel
from shared.enums import FileType
from shared.models import APP_TIMEZONE
from shared.validation import Validator, ValidationError


def format_validation_errors(exc):
    """Flatten a pydantic ValidationError into a single message."""
    errors = []
    for error in exc.errors():
        field = '.'.join(str(x) for x in error['loc'])
        msg = error['msg']
        errors.append(f"{field}: {msg}" if field else msg)
    return '; '.join(errors)


class ApiModel(BaseModel):
    """Base for API payloads: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        use_enum_values=True,
    )

    def to_json(self):
        return self.model_dump(mode='json', by_alias=True)


def _as_utc(value):
    # SQLite hands back naive datetimes; they were written as UTC
    if isinstance(value, datetime) and value.tzinfo is None:
        return value.replace(tzinfo=APP_TIMEZONE)
    return value


# Auth Schemas
class RegisterRequest(ApiModel):
    email: str
    password: str
    name: Optional[str] = Field(default=None, max_length=200)

    @field_validator('email')
    @classmethod
    def validate_email(cls, v):
        try:
            return Validator.validate_email(v)
        except ValidationError as e:
            raise ValueError(str(e))

    @field_validator('password')
    @classmethod
    def validate_password(cls, v):
        try:
            return Validator.validate_password(v)
        except ValidationError as e:
            raise ValueError(str(e))

    @field_validator('name')
    @classmethod
    def strip_name(cls, v):
        if v is None:
            return None
        return v.strip() or None


class LoginRequest(ApiModel):
    email: str
    password: str = Field(..., min_length=1)

    @field_validator('email')
    @classmethod
    def validate_email(cls, v):
        try:
            return Validator.validate_email(v)
        except ValidationError as e:
            raise ValueError(str(e))


class UserResponse(ApiModel):
    id: str
    email: str
    name: Optional[str] = None


class AuthResponse(ApiModel):
    user: UserResponse
    access_token: str
    refresh_token: str


# Project Schemas
class ProjectSummary(ApiModel):
    id: str
    name: str


class ProjectResponse(ApiModel):
    id: str
    user_id: str
    name: str
    description: Optional[str] = None
    address: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    created_at: datetime
    updated_at: datetime

    @field_validator('created_at', 'updated_at', mode='before')
    @classmethod
    def to_utc(cls, v):
        return _as_utc(v)


class ProjectListItem(ProjectResponse):
    media_count: int = 0


# Media Schemas
class MediaResponse(ApiModel):
    id: str
    project_id: str
    user_id: str
    file_type: FileType
    file_path: str
    thumbnail_path: Optional[str] = None
    file_size: int = Field(..., ge=0)
    mime_type: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    captured_at: datetime
    uploaded_at: datetime
    project: Optional[ProjectSummary] = None

    @field_validator('captured_at', 'uploaded_at', mode='before')
    @classmethod
    def to_utc(cls, v):
        return _as_utc(v)


class ProjectDetailResponse(ProjectResponse):
    media: List[MediaResponse] = Field(default_factory=list)
    notes_count: int = 0


# Note Schemas
class NoteResponse(ApiModel):
    id: int
    project_id: str
    body: str
    created_at: datetime

    @field_validator('created_at', mode='before')
    @classmethod
    def to_utc(cls, v):
        return _as_utc(v)


# Simple photo Schemas
class PhotoResponse(ApiModel):
    id: int
    project_id: str
    filename: str
    original_name: str
    mimetype: str
    size: int
    uploaded_at: datetime

    @field_validator('uploaded_at', mode='before')
    @classmethod
    def parse_uploaded_at(cls, v):
        # Raw SQL rows from SQLite may carry the timestamp as text
        if isinstance(v, str):
            v = datetime.fromisoformat(v)
        return _as_utc(v)
