import base64

import pytest
from unittest.mock import MagicMock

from fastapi.testclient import TestClient
from google.genai import types

from studylens.config import Settings
from studylens.models.study import ImageAttachment


# --- Canned Gemini answers ---

SUMMARY_TEXT = """**Hydraulic Systems**
- Pumps convert mechanical energy into hydraulic energy
  - Engine-driven pumps are the primary source
- Accumulators store fluid under pressure"""

QUESTION_1 = """1. What converts mechanical energy into hydraulic energy?
   A) Accumulator
   B) Pump
   C) Reservoir
   Answer: B
   Explanation: According to Hydraulic Systems, pumps convert mechanical energy."""

QUESTION_2 = """2. What stores fluid under pressure?
   A) Accumulator
   B) Filter
   C) Valve
   Answer: A
   Explanation: According to Hydraulic Systems, accumulators store fluid under pressure."""

ANALYSIS_TEXT = f"""### SUMMARY ###
{SUMMARY_TEXT}

### QUESTIONS ###
{QUESTION_1}
{QUESTION_2}
"""

MORE_QUESTIONS_TEXT = """1. What is the primary hydraulic pump source?
   A) Engine-driven pump
   B) Hand pump
   C) Ram air turbine
   Answer: A
   Explanation: According to Hydraulic Systems, engine-driven pumps are primary.

2. Which component holds pressurised fluid?
   A) Reservoir
   B) Accumulator
   C) Pump
   Answer: B
   Explanation: According to Hydraulic Systems, accumulators store fluid under pressure.
"""

PNG_BYTES = b"\x89PNG\r\n\x1a\nfake-image"
PNG_IMAGE = ImageAttachment(mime_type="image/png", data=base64.b64encode(PNG_BYTES).decode("ascii"))
JPEG_IMAGE = ImageAttachment(mime_type="image/jpeg", data=base64.b64encode(b"\xff\xd8jpeg").decode("ascii"))


def make_response(
    text: str | None = None,
    finish_reason=types.FinishReason.STOP,
    web: list[tuple[str | None, str | None] | None] | None = None,
) -> types.GenerateContentResponse:
    """Build a real GenerateContentResponse. ``web`` entries of None are chunks without a web source."""
    content = types.Content(role="model", parts=[types.Part(text=text)]) if text is not None else None
    metadata = None
    if web is not None:
        chunks = []
        for entry in web:
            if entry is None:
                chunks.append(types.GroundingChunk())
            else:
                uri, title = entry
                chunks.append(types.GroundingChunk(web=types.GroundingChunkWeb(uri=uri, title=title)))
        metadata = types.GroundingMetadata(grounding_chunks=chunks)
    return types.GenerateContentResponse(
        candidates=[types.Candidate(content=content, finish_reason=finish_reason, grounding_metadata=metadata)],
    )


@pytest.fixture
def settings():
    return Settings(gemini_api_key="test-key", gemini_model="gemini-test", _env_file=None)


@pytest.fixture
def mock_genai_client(mocker):
    """Mocked genai.Client; set ``models.generate_content.return_value`` per test."""
    client = MagicMock()
    mocker.patch("studylens.services.gemini.genai.Client", return_value=client)
    return client


@pytest.fixture
def api_client():
    """FastAPI TestClient for router tests."""
    from studylens.main import api
    return TestClient(api)
