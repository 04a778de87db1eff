"""
API request and response models for the credential service.

These Pydantic v2 models define the HTTP transport contract. They are
separate from the dataclasses in auth/models.py, which own the internal
domain representation. Route handlers map between the two.

Wire names are camelCase (backendToken, frontendToken) to match the existing
frontend; Python attribute names stay snake_case. Always serialize with
model_dump(by_alias=True).
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class OpEnum(str, Enum):
    AUTH = "AUTH"
    VERIFY = "VERIFY"


class ErrorCode(str, Enum):
    """Machine-readable codes returned in the `code` field of 4xx bodies."""

    POST_MISSING_BODY = "post:missing_body"
    POST_MISSING_FIELD_OP = "post:missing_field_op"
    POST_INVALID_OP = "post:invalid_op"
    AUTH_MISSING_FIELD_EMAIL = "auth:missing_field_email"
    AUTH_MISSING_FIELD_PASSWD = "auth:missing_field_passwd"
    AUTH_INCORRECT_PASSWD = "auth:incorrect_passwd"
    VERIFY_MISSING_FIELD_FTOKEN = "verify:missing_field_ftoken"


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class AuthRequest(BaseModel):
    """Body of POST /auth. Every field is optional at this layer.

    The route checks presence per operation so each missing field maps to its
    own error code instead of a generic 422. Unknown keys are ignored.
    """

    model_config = ConfigDict(extra="ignore")

    op: Optional[str] = None
    email: Optional[str] = None
    passwd: Optional[str] = None
    ftoken: Optional[str] = None

    @field_validator("op", "email", "passwd", "ftoken", mode="before")
    @classmethod
    def scalar_to_str(cls, value: Any) -> Optional[str]:
        """Accept numbers and booleans as their text form; drop lists and objects.

        A field holding a list or object is treated the same as a missing
        field, and so is a string with lone surrogates (valid JSON escapes
        such as "\\ud800" that cannot be UTF-8 encoded for bcrypt or the
        database). Runs before type validation so a bad field never fails
        the whole body.
        """
        if value is None:
            return None
        if isinstance(value, str):
            try:
                value.encode("utf-8")
            except UnicodeEncodeError:
                return None
            return value
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, (int, float)):
            return str(value)
        return None


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class AuthResponse(BaseModel):
    """Response for op=AUTH. Both fields are null on a storage failure."""

    model_config = ConfigDict(frozen=True)

    backend_token: Optional[str] = Field(default=None, serialization_alias="backendToken")
    frontend_token: Optional[str] = Field(default=None, serialization_alias="frontendToken")


class VerifyResponse(BaseModel):
    """Response for op=VERIFY. Both fields are null when the token is unknown."""

    model_config = ConfigDict(frozen=True)

    email: Optional[str] = None
    backend_token: Optional[str] = Field(default=None, serialization_alias="backendToken")


class ErrorResponse(BaseModel):
    """Body of 4xx/5xx error responses."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: Optional[str] = None


class HealthResponse(BaseModel):
    """Response for GET /health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str]
