"""Response envelope returned by every engine entry point."""

from __future__ import annotations

from enum import Enum
from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, Field, computed_field

T = TypeVar("T")


class DataSource(str, Enum):
    """Where a response's data came from."""
    CACHE = "cache"
    API = "api"


class ApiResponse(BaseModel, Generic[T]):
    """
    Success/failure envelope.

    Callers must check `success` before reading `data`.
    """
    success: bool
    data: Optional[T] = None
    errors: list[str] = Field(default_factory=list)
    source: Optional[DataSource] = None

    @classmethod
    def ok(cls, data: T, source: Optional[DataSource] = None) -> ApiResponse[T]:
        return cls(success=True, data=data, source=source)

    @classmethod
    def fail(cls, *errors: str) -> ApiResponse[T]:
        return cls(success=False, errors=list(errors))


class UsageStats(BaseModel):
    """Upstream request counts for quota monitoring."""
    today: int = 0
    yesterday: int = 0

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total(self) -> int:
        return self.today + self.yesterday
