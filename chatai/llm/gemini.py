"""
Gemini Inference Client

Implementation of BaseInferenceClient for Google's generative-language
REST API. One POST per completion; no retries and no streaming.
"""

import logging
import re

import httpx
from pydantic import ValidationError

from chatai.config import GeminiSettings, generate_content_url
from chatai.llm.base import BaseInferenceClient
from chatai.llm.errors import (
    MalformedResponseError,
    MissingCredentialError,
    ProtocolError,
    TransportError,
)
from chatai.llm.models import GenerateContentRequest, GenerateContentResponse

logger = logging.getLogger(__name__)

_KEY_PARAM = re.compile(r"([?&]key=)[^&\s\"']+")


class RedactApiKeyFilter(logging.Filter):
    """Masks the ``key`` query parameter in records from HTTP libraries."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = _KEY_PARAM.sub(r"\1***", message)
        if redacted != message:
            record.msg = redacted
            record.args = ()
        return True


def install_key_redaction(logger_names=("httpx", "httpcore")) -> None:
    """Attach RedactApiKeyFilter once to each named logger."""
    for name in logger_names:
        target = logging.getLogger(name)
        if not any(isinstance(f, RedactApiKeyFilter) for f in target.filters):
            target.addFilter(RedactApiKeyFilter())


class GeminiClient(BaseInferenceClient):
    """
    generateContent client backed by ``httpx.AsyncClient``.

    The API key travels as the ``key`` query parameter and is never logged.
    Pass ``client`` to share a connection pool or to inject a mock transport.
    """

    def __init__(
        self,
        base_url: str = "https://generativelanguage.googleapis.com",
        api_version: str = "v1beta",
        model: str = "gemini-2.0-flash-exp",
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ):
        super().__init__(provider_name="gemini", model=model)

        self.base_url = base_url.rstrip("/")
        self.api_version = api_version
        self.timeout = timeout
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=float(timeout))
        install_key_redaction()

    @classmethod
    def from_settings(
        cls,
        settings: GeminiSettings,
        client: httpx.AsyncClient | None = None,
    ) -> "GeminiClient":
        return cls(
            base_url=settings.base_url,
            api_version=settings.api_version,
            model=settings.model,
            timeout=settings.timeout,
            client=client,
        )

    @property
    def endpoint(self) -> str:
        return generate_content_url(self.base_url, self.api_version, self.model)

    async def complete(self, prompt: str, api_key: str) -> str:
        """Send one generateContent request and return the first reply text."""
        if not api_key:
            raise MissingCredentialError()

        self._log_request(prompt)
        payload = GenerateContentRequest.from_prompt(prompt).to_payload()

        try:
            response = await self.client.post(
                self.endpoint,
                params={"key": api_key},
                headers={"Content-Type": "application/json"},
                json=payload,
            )
        except httpx.HTTPError as exc:
            logger.warning(
                "Gemini request failed before a response arrived",
                extra={"endpoint": self.endpoint, "error": type(exc).__name__},
            )
            raise TransportError(exc) from exc

        if response.status_code != 200:
            logger.warning(
                f"Gemini returned HTTP {response.status_code}",
                extra={"endpoint": self.endpoint, "status_code": response.status_code},
            )
            raise ProtocolError(response.status_code, response.text)

        parsed = self._parse(response)
        reply = parsed.first_text()
        if not reply:
            raise MalformedResponseError(
                "missing candidates[0].content.parts[0].text", body=response.text
            )

        self._log_response(
            reply,
            finish_reason=parsed.candidates[0].finish_reason,
            total_tokens=parsed.usage_metadata.total_token_count if parsed.usage_metadata else None,
        )
        return reply

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    @staticmethod
    def _parse(response: httpx.Response) -> GenerateContentResponse:
        try:
            data = response.json()
        except ValueError as exc:
            raise MalformedResponseError("body is not JSON", body=response.text) from exc
        try:
            return GenerateContentResponse.model_validate(data)
        except ValidationError as exc:
            raise MalformedResponseError(
                f"{exc.error_count()} validation error(s) in response body",
                body=response.text,
            ) from exc
