import httpx
from fastmcp import FastMCP
from google.genai import errors as genai_errors
from pydantic import ValidationError

from studylens.exceptions import (
    AuthenticationError,
    EmptyInputError,
    EmptyResponseError,
    IntegrationError,
    InvalidAttachmentError,
    RateLimitError,
)
from studylens.models.study import ContentInput, ImageAttachment
from studylens.observers import log_failure
from studylens.services import attachments as attachment_service
from studylens.services import gemini as gemini_service

mcp = FastMCP("Studylens")

_HANDLED = (
    AuthenticationError,
    IntegrationError,
    RateLimitError,
    EmptyInputError,
    InvalidAttachmentError,
    genai_errors.APIError,
    httpx.TransportError,
    ValidationError,
)


def _handle_mcp_error(e: Exception) -> dict:
    """Convert exceptions to agent-friendly error dicts."""
    if isinstance(e, AuthenticationError):
        return {"error": "auth_error", "message": str(e), "action": "Ask user to set GEMINI_API_KEY in .env"}
    if isinstance(e, (EmptyInputError, InvalidAttachmentError, ValidationError)):
        return {"error": "invalid_input", "message": str(e)}
    if isinstance(e, EmptyResponseError):
        return {"error": "empty_response", "reason": e.reason, "message": str(e)}
    if isinstance(e, RateLimitError) or (isinstance(e, genai_errors.APIError) and e.code == 429):
        return {"error": "rate_limit", "message": str(e), "action": "Wait a moment and retry"}
    if isinstance(e, httpx.TimeoutException):
        return {"error": "gemini_timeout", "message": str(e) or "Gemini request timed out", "action": "Retry, or send less content"}
    if isinstance(e, httpx.TransportError):
        return {"error": "gemini_unreachable", "message": str(e)}
    if isinstance(e, (IntegrationError, genai_errors.APIError)):
        return {"error": "integration_error", "message": str(e)}
    return {"error": "unknown_error", "message": str(e)}


def _content(text: str, images: list[dict] | None, image_urls: list[str] | None) -> ContentInput:
    inline = [ImageAttachment.model_validate(image) for image in images or []]
    content = ContentInput(text=text, images=attachment_service.collect_attachments(inline, image_urls))
    if content.is_empty():
        raise EmptyInputError("Provide some text or at least one image to analyze.")
    return content


# --- Study tools ---

@mcp.tool
def study_analyze(text: str = "", images: list[dict] | None = None, image_urls: list[str] | None = None) -> dict:
    """Summarize study material and write multiple-choice questions about it.
    Pass the material as text, and optionally images as {"mime_type", "data" (base64)} dicts or public image_urls.
    Returns a summary, a numbered list of questions (with answer and explanation) and web references."""
    try:
        content = _content(text, images, image_urls)
        result = gemini_service.analyze(content.text, content.images, on_error=log_failure)
        return {**result.model_dump(), "count": len(result.questions)}
    except _HANDLED as e:
        return _handle_mcp_error(e)


@mcp.tool
def study_generate_more(
    existing_questions: list[str],
    text: str = "",
    images: list[dict] | None = None,
    image_urls: list[str] | None = None,
) -> dict:
    """Write 5 more multiple-choice questions about the same material without repeating existing_questions.
    Pass the same text/images used for study_analyze and the questions it returned."""
    try:
        content = _content(text, images, image_urls)
        questions = gemini_service.generate_more(
            content.text, content.images, existing_questions, on_error=log_failure,
        )
        return {"questions": questions, "count": len(questions)}
    except _HANDLED as e:
        return _handle_mcp_error(e)
