from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field


class AnalysisMode(str, Enum):
    INITIAL = "initial"
    SUPPLEMENTAL = "supplemental"


class ImageAttachment(BaseModel):
    mime_type: str
    data: str  # base64 encoded


class ContentInput(BaseModel):
    text: str = ""
    images: list[ImageAttachment] = Field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.text.strip() and not self.images


class TextPart(BaseModel):
    kind: Literal["text"] = "text"
    text: str


class InlineDataPart(BaseModel):
    kind: Literal["inline_data"] = "inline_data"
    inline_data: ImageAttachment


class AnalysisRequest(BaseModel):
    mode: AnalysisMode
    parts: list[TextPart | InlineDataPart]
    use_search: bool = False


class WebReference(BaseModel):
    uri: str
    title: str


class GroundingSource(BaseModel):
    uri: str | None = None
    title: str | None = None


class ParsedAnalysis(BaseModel):
    summary: str
    questions: list[str]


class AnalysisResult(BaseModel):
    summary: str
    questions: list[str]
    references: list[WebReference] = Field(default_factory=list)


class MoreQuestionsResult(BaseModel):
    questions: list[str]
    count: int


class StudySessionView(BaseModel):
    session_id: str
    result: AnalysisResult
    question_count: int
    added_questions: int = 0
