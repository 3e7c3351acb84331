"""
Conversation Models

Pydantic models for chat messages and the observable session snapshot.
"""

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


def utc_now() -> datetime:
    return datetime.now(UTC)


class Message(BaseModel):
    """Single entry in the conversation log."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    text: str = Field(
        ...,
        description="User input or assistant/error output",
        min_length=1,
    )
    is_user: bool = Field(
        ...,
        alias="isUser",
        description="True when authored by the local user",
    )
    timestamp: datetime = Field(
        default_factory=utc_now,
        description="Creation time",
    )

    @classmethod
    def user(cls, text: str, timestamp: datetime | None = None) -> "Message":
        return cls(text=text, is_user=True, timestamp=timestamp or utc_now())

    @classmethod
    def assistant(cls, text: str, timestamp: datetime | None = None) -> "Message":
        return cls(text=text, is_user=False, timestamp=timestamp or utc_now())

    def to_record(self) -> dict[str, Any]:
        """Flat persisted form: ``{"text", "isUser", "timestamp"}``."""
        return {
            "text": self.text,
            "isUser": self.is_user,
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "Message":
        return cls.model_validate(record)


class SessionSnapshot(BaseModel):
    """Immutable view of session state handed to observers."""

    model_config = ConfigDict(frozen=True)

    messages: tuple[Message, ...] = ()
    is_loading: bool = False
    api_key: str = ""

    @property
    def has_api_key(self) -> bool:
        return bool(self.api_key)
