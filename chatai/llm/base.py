"""
Base Inference Client

Abstract base class for remote inference clients. The session store only
depends on this interface, so tests and alternative endpoints can plug in.
"""

import logging
from abc import ABC, abstractmethod

logger = logging.getLogger(__name__)


class BaseInferenceClient(ABC):
    """
    Abstract single-shot completion client.

    Attributes:
        provider_name: Identifier used in log records
        model: Model identifier the client targets
    """

    def __init__(self, provider_name: str, model: str):
        self.provider_name = provider_name
        self.model = model

        logger.info(
            f"Initialized {provider_name} client",
            extra={"provider": provider_name, "model": model},
        )

    @abstractmethod
    async def complete(self, prompt: str, api_key: str) -> str:
        """
        Send ``prompt`` and return the reply text.

        Args:
            prompt: User text, sent verbatim
            api_key: Credential for the endpoint

        Returns:
            Reply text of the first candidate

        Raises:
            InferenceError: Any failure, classified by ``kind``
        """
        pass  # pragma: no cover - abstract method

    async def aclose(self) -> None:
        """Release transport resources."""

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    def _log_request(self, prompt: str) -> None:
        logger.debug(
            f"{self.provider_name} request",
            extra={
                "provider": self.provider_name,
                "model": self.model,
                "prompt_chars": len(prompt),
            },
        )

    def _log_response(self, reply: str, **details) -> None:
        logger.debug(
            f"{self.provider_name} response",
            extra={
                "provider": self.provider_name,
                "model": self.model,
                "reply_chars": len(reply),
                **details,
            },
        )
