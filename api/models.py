"""
API request and response models for the boilerplate REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
projects/models.py, which own the internal domain representation. Route
handlers map between the two.

Separation of concerns: domain dataclasses = domain truth; api/ models = API contract.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from auth.models import SafeUser
from auth.tokens import MAX_SECRET_BYTES
from projects.models import Project


def _require_bcrypt_length(value: Optional[str]) -> Optional[str]:
    """A multibyte password can pass max_length=72 and still exceed bcrypt's 72-byte limit."""
    if value is not None and len(value.encode("utf-8")) > MAX_SECRET_BYTES:
        raise ValueError(f"password must be at most {MAX_SECRET_BYTES} bytes when UTF-8 encoded")
    return value


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


class LoginRequest(BaseModel):
    """Request body for POST /api/v1/auth."""

    model_config = ConfigDict(str_strip_whitespace=True)

    username: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1, max_length=72)


class LoginResponse(BaseModel):
    """Response body for a successful login.

    expires_in is the token's absolute max age in seconds, counted from now.
    """

    model_config = ConfigDict(frozen=True)

    username: str
    token: str
    token_type: str = "bearer"
    expires_in: int


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class UserCreate(BaseModel):
    """Request body for POST /api/v1/users.

    password is capped at 72 characters and 72 UTF-8 bytes: bcrypt refuses
    longer input.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    username: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=8, max_length=72)

    @field_validator("password")
    @classmethod
    def check_password_bytes(cls, value: Optional[str]) -> Optional[str]:
        return _require_bcrypt_length(value)


class UserPatch(BaseModel):
    """Request body for PATCH /api/v1/users/me. All fields optional."""

    model_config = ConfigDict(str_strip_whitespace=True)

    username: Optional[str] = Field(default=None, min_length=1, max_length=255)
    password: Optional[str] = Field(default=None, min_length=8, max_length=72)

    @field_validator("password")
    @classmethod
    def check_password_bytes(cls, value: Optional[str]) -> Optional[str]:
        return _require_bcrypt_length(value)


class UserResponse(BaseModel):
    """Safe user view. There is no password or api_key field to leak."""

    model_config = ConfigDict(frozen=True)

    id: int
    username: str
    created_at: str

    @classmethod
    def from_safe_user(cls, user: SafeUser) -> "UserResponse":
        return cls(id=user.id, username=user.username, created_at=user.created_at or "")


class ApiKeyCreatedResponse(BaseModel):
    """Response for POST /api/v1/users/me/api-key.

    api_key is the plaintext key, shown ONCE. composite_key is the ready-made
    X-API-Key header value ("<user_id>:<api_key>").
    """

    model_config = ConfigDict(frozen=True)

    user_id: int
    api_key: str
    composite_key: str


# ---------------------------------------------------------------------------
# Projects
# ---------------------------------------------------------------------------


class ProjectCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=2000)


class ProjectPatch(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=2000)


class ProjectResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    user_id: int
    name: str
    description: Optional[str] = None
    created_at: str

    @classmethod
    def from_project(cls, project: Project) -> "ProjectResponse":
        """Factory Method: the dataclass-to-contract mapping lives beside the model."""
        return cls(
            id=project.id,
            user_id=project.user_id,
            name=project.name,
            description=project.description,
            created_at=project.created_at,
        )


# ---------------------------------------------------------------------------
# Files
# ---------------------------------------------------------------------------


class FileUploadResponse(BaseModel):
    """Response for POST /api/v1/files. The file is served at /public/{filename}."""

    model_config = ConfigDict(frozen=True)

    id: str
    filename: str
    name: str


# ---------------------------------------------------------------------------
# Shared
# ---------------------------------------------------------------------------


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/v1/health.

    status is "healthy" when every component reports "ok", otherwise "degraded".
    """

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str] = Field(default_factory=dict)
