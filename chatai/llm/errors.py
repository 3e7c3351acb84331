"""
Inference Errors

Structured failure taxonomy for the remote inference client. The session
store decides how a failure is shown; these types only describe it.
"""

from enum import Enum


class FailureKind(str, Enum):
    """Category of an inference failure."""

    CONFIGURATION = "configuration"
    TRANSPORT = "transport"
    PROTOCOL = "protocol"
    MALFORMED_RESPONSE = "malformed_response"
    UNEXPECTED = "unexpected"


class InferenceError(Exception):
    """Base class for all inference failures."""

    kind: FailureKind = FailureKind.UNEXPECTED


class MissingCredentialError(InferenceError):
    """No API key is configured."""

    kind = FailureKind.CONFIGURATION

    def __init__(self, message: str = "API key is not set") -> None:
        super().__init__(message)


class TransportError(InferenceError):
    """The request produced no HTTP response at all."""

    kind = FailureKind.TRANSPORT

    def __init__(self, cause: Exception) -> None:
        self.cause = cause
        detail = str(cause) or type(cause).__name__
        super().__init__(f"Network error: {detail}")


class ProtocolError(InferenceError):
    """The endpoint answered with a non-200 status."""

    kind = FailureKind.PROTOCOL

    def __init__(self, status_code: int, body: str) -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(f"API Error: {status_code} - {body}")


class MalformedResponseError(InferenceError):
    """A 200 response whose body does not have the expected shape."""

    kind = FailureKind.MALFORMED_RESPONSE

    def __init__(self, detail: str, body: str = "") -> None:
        self.detail = detail
        self.body = body
        super().__init__(f"Unexpected response format: {detail}")
