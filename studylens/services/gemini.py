"""Gemini study analysis service: sends the prompt contract and parses the answer."""

import base64
import binascii

from google import genai
from google.genai import types

from studylens.config import Settings, get_settings
from studylens.exceptions import AuthenticationError, EmptyResponseError, InvalidAttachmentError
from studylens.models.study import (
    AnalysisMode,
    AnalysisRequest,
    AnalysisResult,
    GroundingSource,
    ImageAttachment,
    TextPart,
)
from studylens.observers import ErrorObserver
from studylens.services.parser import extract_references, parse_analysis, parse_question_list
from studylens.services.prompts import build_request

_EMPTY_MESSAGES = {
    AnalysisMode.INITIAL: {
        "safety": "The request was blocked due to safety settings. Please check the content for any sensitive material.",
        "early_stop": "Analysis stopped unexpectedly. Reason: {finish_reason}.",
        "unspecified": "AI service returned an empty response.",
    },
    AnalysisMode.SUPPLEMENTAL: {
        "safety": "The request for more questions was blocked due to safety settings.",
        "early_stop": "Generation stopped unexpectedly. Reason: {finish_reason}.",
        "unspecified": "AI service returned an empty response while generating more questions.",
    },
}


def classify_empty_response(finish_reason: str | None, mode: AnalysisMode) -> EmptyResponseError:
    """Map the completion status of a text-less response to an error."""
    if finish_reason == "SAFETY":
        reason = "safety"
    elif finish_reason:
        reason = "early_stop"
    else:
        reason = "unspecified"
    message = _EMPTY_MESSAGES[mode][reason].format(finish_reason=finish_reason)
    return EmptyResponseError(message, reason=reason, finish_reason=finish_reason)


def _get_client(settings: Settings) -> genai.Client:
    if not settings.gemini_api_key:
        raise AuthenticationError(
            "Gemini API key not configured. Get one at "
            "https://aistudio.google.com/apikey and set GEMINI_API_KEY in .env"
        )
    return genai.Client(
        api_key=settings.gemini_api_key,
        http_options=types.HttpOptions(timeout=settings.request_timeout_ms),
    )


def _decode(image: ImageAttachment) -> bytes:
    try:
        return base64.b64decode(image.data)
    except (binascii.Error, ValueError) as e:
        raise InvalidAttachmentError(f"Image data for {image.mime_type} is not valid base64") from e


def to_contents(request: AnalysisRequest) -> types.Content:
    """Wire form of a request, parts in the order they were built."""
    parts = []
    for part in request.parts:
        if isinstance(part, TextPart):
            parts.append(types.Part.from_text(text=part.text))
        else:
            image = part.inline_data
            parts.append(types.Part.from_bytes(data=_decode(image), mime_type=image.mime_type))
    return types.Content(role="user", parts=parts)


def _finish_reason(response: types.GenerateContentResponse) -> str | None:
    if not response.candidates:
        return None
    reason = response.candidates[0].finish_reason
    if reason is None:
        return None
    return getattr(reason, "value", str(reason))


def _grounding_sources(response: types.GenerateContentResponse) -> list[GroundingSource | None]:
    if not response.candidates:
        return []
    metadata = response.candidates[0].grounding_metadata
    if metadata is None or not metadata.grounding_chunks:
        return []
    return [
        GroundingSource(uri=chunk.web.uri, title=chunk.web.title) if chunk.web else None
        for chunk in metadata.grounding_chunks
    ]


def _generate(
    operation: str,
    request: AnalysisRequest,
    settings: Settings,
    on_error: ErrorObserver | None,
) -> tuple[str, types.GenerateContentResponse]:
    """Single call to Gemini. Never retried; failures go to the observer and propagate."""
    try:
        client = _get_client(settings)
        config = None
        if request.use_search:
            config = types.GenerateContentConfig(
                tools=[types.Tool(google_search=types.GoogleSearch())],
            )
        response = client.models.generate_content(
            model=settings.gemini_model,
            contents=to_contents(request),
            config=config,
        )
        text = response.text
        if not text:
            raise classify_empty_response(_finish_reason(response), request.mode)
    except Exception as e:
        if on_error is not None:
            on_error(operation, e)
        raise
    return text, response


def analyze(
    text: str,
    images: list[ImageAttachment],
    settings: Settings | None = None,
    on_error: ErrorObserver | None = None,
) -> AnalysisResult:
    """Summary, questions and web references for the given content."""
    settings = settings or get_settings()
    request = build_request(AnalysisMode.INITIAL, text, images)
    raw_text, response = _generate("analyze", request, settings, on_error)
    parsed = parse_analysis(raw_text)
    return AnalysisResult(
        summary=parsed.summary,
        questions=parsed.questions,
        references=extract_references(_grounding_sources(response)),
    )


def generate_more(
    text: str,
    images: list[ImageAttachment],
    existing_questions: list[str],
    settings: Settings | None = None,
    on_error: ErrorObserver | None = None,
) -> list[str]:
    """A fresh batch of questions that avoids repeating ``existing_questions``."""
    settings = settings or get_settings()
    request = build_request(AnalysisMode.SUPPLEMENTAL, text, images, existing_questions)
    raw_text, _ = _generate("generate_more", request, settings, on_error)
    return parse_question_list(raw_text)
