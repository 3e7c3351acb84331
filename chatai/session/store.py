"""
Session Store

Sole owner of the conversation log, the API credential and the loading
flag. Every mutation is written through to a KeyValueStore and announced to
subscribed listeners as a SessionSnapshot.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from chatai.llm.base import BaseInferenceClient
from chatai.llm.errors import InferenceError, MalformedResponseError, MissingCredentialError
from chatai.models import Message, SessionSnapshot, utc_now
from chatai.session.notices import describe_failure
from chatai.storage.base import KeyValueStore, StorageError

logger = logging.getLogger(__name__)

MESSAGES_KEY = "messages"
API_KEY_KEY = "api_key"

Listener = Callable[[SessionSnapshot], None]
FailureFormatter = Callable[[InferenceError], str]


@dataclass(frozen=True)
class CompletionOutcome:
    """Structured result of one request, kept before it is flattened to text."""

    prompt: str
    reply: str | None = None
    error: InferenceError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class SessionStore:
    """
    Conversation state container with write-through persistence.

    ``send_message`` never raises for inference failures: they are turned
    into assistant messages by ``failure_formatter``. The loading flag is
    observational unless ``single_flight`` is enabled, in which case a send
    issued while another is in flight is dropped.
    """

    def __init__(
        self,
        storage: KeyValueStore,
        client: BaseInferenceClient,
        *,
        single_flight: bool = False,
        clock: Callable[[], datetime] = utc_now,
        failure_formatter: FailureFormatter = describe_failure,
    ) -> None:
        self._storage = storage
        self._client = client
        self._single_flight = single_flight
        self._clock = clock
        self._failure_formatter = failure_formatter

        self._messages: list[Message] = []
        self._api_key = ""
        self._is_loading = False
        self._listeners: list[Listener] = []
        self._last_outcome: CompletionOutcome | None = None

    # ------------------------------------------------------------------
    # Observable state
    # ------------------------------------------------------------------

    @property
    def messages(self) -> tuple[Message, ...]:
        return tuple(self._messages)

    @property
    def is_loading(self) -> bool:
        return self._is_loading

    @property
    def api_key(self) -> str:
        return self._api_key

    @property
    def last_outcome(self) -> CompletionOutcome | None:
        return self._last_outcome

    @property
    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            messages=tuple(self._messages),
            is_loading=self._is_loading,
            api_key=self._api_key,
        )

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener``; the returned callable unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def load_initial_state(self) -> None:
        """Load the persisted log and credential, each falling back to empty."""
        self._messages = self._load_messages()
        self._api_key = self._load_api_key()
        logger.info(
            "Session state loaded",
            extra={"message_count": len(self._messages), "has_api_key": bool(self._api_key)},
        )
        self._notify()

    def set_credential(self, key: str) -> None:
        self._api_key = key
        self._persist(API_KEY_KEY, key)
        logger.info("API key updated", extra={"has_api_key": bool(key)})
        self._notify()

    def append_message(self, message: Message) -> None:
        self._messages.append(message)
        self._persist_messages()
        self._notify()

    async def send_message(self, text: str) -> None:
        """
        Send ``text`` to the inference client and record the exchange.

        Blank input is ignored. Without a credential a configuration notice
        is appended and no request is made.
        """
        if not text.strip():
            return

        if not self._api_key:
            error = MissingCredentialError()
            self._last_outcome = CompletionOutcome(prompt=text, error=error)
            logger.info("Send skipped: no API key configured")
            self.append_message(Message.assistant(self._failure_formatter(error), self._clock()))
            return

        if self._single_flight and self._is_loading:
            self._last_outcome = None
            logger.warning("Send rejected: a request is already in flight")
            return

        self.append_message(Message.user(text, self._clock()))
        self._is_loading = True
        self._notify()

        try:
            outcome = await self._request_reply(text)
            self._last_outcome = outcome
            if outcome.ok:
                reply_text = outcome.reply
            else:
                reply_text = self._failure_formatter(outcome.error)
            self.append_message(Message.assistant(reply_text, self._clock()))
        finally:
            self._is_loading = False
            self._notify()

    def clear_conversation(self) -> None:
        self._messages = []
        self._persist_messages()
        logger.info("Conversation cleared")
        self._notify()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _request_reply(self, text: str) -> CompletionOutcome:
        try:
            reply = await self._client.complete(text, self._api_key)
        except InferenceError as exc:
            logger.warning(
                f"Inference failed: {exc}",
                extra={"failure_kind": exc.kind.value},
            )
            return CompletionOutcome(prompt=text, error=exc)
        except Exception as exc:
            logger.exception("Unexpected error during inference")
            error = InferenceError(f"{type(exc).__name__}: {exc}")
            error.__cause__ = exc
            return CompletionOutcome(prompt=text, error=error)

        if not reply:
            return CompletionOutcome(prompt=text, error=MalformedResponseError("empty reply"))
        return CompletionOutcome(prompt=text, reply=reply)

    def _load_messages(self) -> list[Message]:
        try:
            raw = self._storage.read(MESSAGES_KEY)
        except StorageError as exc:
            logger.warning(f"Discarding unreadable conversation log: {exc}")
            return []
        if raw is None:
            return []
        if not isinstance(raw, list):
            logger.warning(
                "Discarding conversation log with unexpected type",
                extra={"stored_type": type(raw).__name__},
            )
            return []
        try:
            return [Message.from_record(self._decode_record(record)) for record in raw]
        except (TypeError, ValueError) as exc:
            logger.warning(f"Discarding corrupt conversation log: {exc}")
            return []

    @staticmethod
    def _decode_record(record: Any) -> Any:
        # Older stores kept each record as its own JSON string.
        if isinstance(record, str):
            return json.loads(record)
        return record

    def _load_api_key(self) -> str:
        try:
            raw = self._storage.read(API_KEY_KEY)
        except StorageError as exc:
            logger.warning(f"Discarding unreadable API key: {exc}")
            return ""
        if raw is None:
            return ""
        if not isinstance(raw, str):
            logger.warning("Discarding API key with unexpected type")
            return ""
        return raw

    def _persist_messages(self) -> None:
        self._persist(MESSAGES_KEY, [message.to_record() for message in self._messages])

    def _persist(self, key: str, value: Any) -> None:
        try:
            self._storage.write(key, value)
        except StorageError as exc:
            logger.error(f"Failed to persist {key}: {exc}")

    def _notify(self) -> None:
        snapshot = self.snapshot
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Session listener failed")
