"""
generateContent Wire Models

Pydantic models for the request and response bodies of the
generative-language ``generateContent`` call.
"""

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Part(BaseModel):
    """One content part. Only text parts are produced or read."""

    text: Optional[str] = Field(
        None,
        description="Text payload of the part"
    )


class Content(BaseModel):
    """A turn of content made of one or more parts."""

    parts: List[Part] = Field(
        ...,
        description="Ordered content parts",
        min_length=1
    )
    role: Optional[str] = Field(
        None,
        description="Author role (set by the API on responses)"
    )


class GenerateContentRequest(BaseModel):
    """Request body for generateContent."""

    contents: List[Content] = Field(
        ...,
        description="Conversation contents",
        min_length=1
    )

    @classmethod
    def from_prompt(cls, prompt: str) -> "GenerateContentRequest":
        """Single-turn request carrying ``prompt`` as the sole part."""
        return cls(contents=[Content(parts=[Part(text=prompt)])])

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class Candidate(BaseModel):
    """One generated candidate."""

    model_config = ConfigDict(populate_by_name=True)

    content: Optional[Content] = Field(
        None,
        description="Generated content (absent when blocked)"
    )
    finish_reason: Optional[str] = Field(
        None,
        alias="finishReason",
        description="Reason the generation stopped"
    )


class UsageMetadata(BaseModel):
    """Token accounting reported by the API."""

    model_config = ConfigDict(populate_by_name=True)

    prompt_token_count: int = Field(0, alias="promptTokenCount", ge=0)
    candidates_token_count: int = Field(0, alias="candidatesTokenCount", ge=0)
    total_token_count: int = Field(0, alias="totalTokenCount", ge=0)


class GenerateContentResponse(BaseModel):
    """Response body for generateContent."""

    model_config = ConfigDict(populate_by_name=True)

    candidates: List[Candidate] = Field(
        default_factory=list,
        description="Generated candidates"
    )
    usage_metadata: Optional[UsageMetadata] = Field(
        None,
        alias="usageMetadata",
        description="Token usage information"
    )
    model_version: Optional[str] = Field(
        None,
        alias="modelVersion",
        description="Model version that produced the response"
    )

    def first_text(self) -> str | None:
        """Text of the first candidate's first part, or None if absent."""
        if not self.candidates:
            return None
        content = self.candidates[0].content
        if content is None or not content.parts:
            return None
        return content.parts[0].text
