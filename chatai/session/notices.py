"""User-facing text for failures shown in the conversation log."""

from chatai.llm.errors import FailureKind, InferenceError

MISSING_API_KEY_NOTICE = "Please set an API key first! Open the settings."

ERROR_PREFIX = "Something went wrong"


def describe_failure(error: InferenceError) -> str:
    """Flatten a structured inference failure into chat text."""
    if error.kind is FailureKind.CONFIGURATION:
        return MISSING_API_KEY_NOTICE
    return f"{ERROR_PREFIX}: {error}"
