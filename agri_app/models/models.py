"""Data models for agri_app.

DB-backed and auth DTOs validated with Pydantic:
- PredictionRecord: one row of the `predictions` table
- ChangeEvent: one row-level change decoded from the change feed
- AuthUser / Session / Credentials: identity service payloads

Rows coming from psycopg are dicts; validate them here before they reach
controllers so malformed rows fail at the service boundary.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

__all__ = [
    "PredictionRecord",
    "ChangeEvent",
    "AuthStatus",
    "AuthChangeEvent",
    "AuthUser",
    "Session",
    "Credentials",
]


class _TZModel(BaseModel):
    """Base with tz-aware datetime normalization to UTC when missing."""

    @staticmethod
    def _ensure_tz(dt: datetime) -> datetime:
        if dt.tzinfo is None:
            return dt.replace(tzinfo=timezone.utc)
        return dt


# ========= predictions =========

class PredictionRecord(_TZModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: Union[int, str]
    crop_type: str
    yield_: float = Field(..., alias="yield", ge=0, description="tons/hectare")
    confidence: float = Field(..., ge=0, le=1)
    created_at: datetime

    @field_validator("id", mode="before")
    @classmethod
    def _id_scalar(cls, v: Any) -> Union[int, str]:  # noqa: N805
        # uuid primary keys arrive as uuid.UUID from psycopg
        if isinstance(v, (int, str)):
            return v
        return str(v)

    @field_validator("created_at")
    @classmethod
    def _tz_created(cls, v: datetime) -> datetime:  # noqa: N805
        return cls._ensure_tz(v)


ChangeType = Literal["INSERT", "UPDATE", "DELETE"]


class ChangeEvent(BaseModel):
    table: str
    type: ChangeType
    schema_name: str = Field(default="public", alias="schema")
    record: Optional[Dict[str, Any]] = None
    old_record: Optional[Dict[str, Any]] = None

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("type", mode="before")
    @classmethod
    def _upper_type(cls, v: Any) -> Any:  # noqa: N805
        return v.upper() if isinstance(v, str) else v


# ========= identity =========

class AuthStatus(str, Enum):
    UNKNOWN = "unknown"
    LOADING = "loading"
    AUTHENTICATED = "authenticated"
    ANONYMOUS = "anonymous"


class AuthChangeEvent(str, Enum):
    INITIAL_SESSION = "INITIAL_SESSION"
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"


class AuthUser(BaseModel):
    id: str
    email: Optional[str] = None

    @property
    def display_name(self) -> str:
        if not self.email:
            return self.id[:8]
        return self.email.split("@")[0]


class Session(_TZModel):
    user: AuthUser
    access_token: str
    refresh_token: Optional[str] = None
    expires_at: Optional[datetime] = None

    @field_validator("expires_at")
    @classmethod
    def _tz_expires(cls, v: Optional[datetime]) -> Optional[datetime]:  # noqa: N805
        return cls._ensure_tz(v) if v is not None else None

    def expires_within(self, seconds: float, now: Optional[datetime] = None) -> bool:
        if self.expires_at is None:
            return False
        now = now or datetime.now(timezone.utc)
        return self.expires_at - now <= timedelta(seconds=seconds)

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return self.expires_within(0, now)

    @classmethod
    def from_token_response(cls, payload: Dict[str, Any], now: Optional[datetime] = None) -> "Session":
        """Build from a GoTrue token grant / signup response body"""
        now = now or datetime.now(timezone.utc)
        expires_at = None
        if payload.get("expires_at"):
            expires_at = datetime.fromtimestamp(int(payload["expires_at"]), tz=timezone.utc)
        elif payload.get("expires_in"):
            expires_at = now + timedelta(seconds=int(payload["expires_in"]))

        return cls(
            user=AuthUser.model_validate(payload["user"]),
            access_token=payload["access_token"],
            refresh_token=payload.get("refresh_token"),
            expires_at=expires_at,
        )


class Credentials(BaseModel):
    email: str = Field(..., min_length=3)
    password: str = Field(..., min_length=1, repr=False)

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, v: str) -> str:  # noqa: N805
        v = v.strip().lower()
        if "@" not in v:
            raise ValueError("invalid email address")
        return v
