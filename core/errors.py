"""
core/errors.py -- Domain error taxonomy.

Every domain failure is a KnownError carrying a machine-readable ErrorCode.
Stores raise these at the point of detection; nothing below the API layer
catches or rewraps them. api/main.py maps each code to an HTTP status.

Store-level constraint violations (duplicate username, duplicate ACL grant,
dangling foreign key) are NOT wrapped: sqlalchemy.exc.IntegrityError
propagates as-is and is mapped to 409 at the boundary.

Layer rule: core/ is the kernel. No imports from other project packages.
"""

from enum import Enum
from typing import Optional


class ErrorCode(str, Enum):
    USER_NOT_FOUND = "UserNotFound"
    USER_CREDENTIALS_NOT_VALID = "UserCredentialsNotValid"
    USER_API_TOKEN_NOT_VALID = "UserApiTokenNotValid"
    ACCESS_DENIED = "AccessDenied"
    PROJECT_NOT_FOUND = "ProjectNotFound"
    ACL_ENTRY_NOT_FOUND = "AclEntryNotFound"
    SECRET_TOO_LONG = "SecretTooLong"


class KnownError(Exception):
    """An expected, classified failure with an associated error code."""

    code: ErrorCode
    default_message: str = ""

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class UserNotFoundError(KnownError):
    code = ErrorCode.USER_NOT_FOUND
    default_message = "User not found."


class UserCredentialsNotValidError(KnownError):
    code = ErrorCode.USER_CREDENTIALS_NOT_VALID
    default_message = "Invalid username or password."


class UserApiTokenNotValidError(KnownError):
    code = ErrorCode.USER_API_TOKEN_NOT_VALID
    default_message = "API key is not valid."


class AccessDeniedError(KnownError):
    code = ErrorCode.ACCESS_DENIED
    default_message = "Access denied."


class ProjectNotFoundError(KnownError):
    code = ErrorCode.PROJECT_NOT_FOUND
    default_message = "Project not found."


class AclEntryNotFoundError(KnownError):
    code = ErrorCode.ACL_ENTRY_NOT_FOUND
    default_message = "Access entry not found."


class SecretTooLongError(KnownError):
    code = ErrorCode.SECRET_TOO_LONG
    default_message = "Password must be at most 72 bytes when UTF-8 encoded."
