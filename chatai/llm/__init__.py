"""
Remote Inference Module

Single-shot completion clients for the generative-language endpoint.

Usage:
    from chatai.config import get_settings
    from chatai.llm import GeminiClient

    async with GeminiClient.from_settings(get_settings().gemini) as client:
        reply = await client.complete("Hello!", api_key)
"""

from chatai.llm.base import BaseInferenceClient
from chatai.llm.errors import (
    FailureKind,
    InferenceError,
    MalformedResponseError,
    MissingCredentialError,
    ProtocolError,
    TransportError,
)
from chatai.llm.gemini import GeminiClient
from chatai.llm.models import (
    Candidate,
    Content,
    GenerateContentRequest,
    GenerateContentResponse,
    Part,
)

__all__ = [
    # Base classes
    "BaseInferenceClient",
    # Errors
    "FailureKind",
    "InferenceError",
    "MissingCredentialError",
    "TransportError",
    "ProtocolError",
    "MalformedResponseError",
    # Wire models
    "Part",
    "Content",
    "Candidate",
    "GenerateContentRequest",
    "GenerateContentResponse",
    # Clients
    "GeminiClient",
]
