"""Conversation state, persistence and the send protocol."""

from chatai.session.notices import MISSING_API_KEY_NOTICE, describe_failure
from chatai.session.store import (
    API_KEY_KEY,
    MESSAGES_KEY,
    CompletionOutcome,
    SessionStore,
)

__all__ = [
    "SessionStore",
    "CompletionOutcome",
    "MESSAGES_KEY",
    "API_KEY_KEY",
    "MISSING_API_KEY_NOTICE",
    "describe_failure",
]
