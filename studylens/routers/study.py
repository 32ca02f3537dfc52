from fastapi import APIRouter, File, Form, Response, UploadFile
from pydantic import BaseModel, Field

from studylens.exceptions import EmptyInputError
from studylens.models.study import (
    AnalysisResult,
    ContentInput,
    ImageAttachment,
    MoreQuestionsResult,
    StudySessionView,
)
from studylens.observers import log_failure
from studylens.services import attachments as attachment_service
from studylens.services import gemini as gemini_service
from studylens.services.sessions import get_session_store

router = APIRouter(prefix="/api/study", tags=["study"])


class AnalyzeRequest(BaseModel):
    text: str = ""
    images: list[ImageAttachment] = Field(default_factory=list)
    image_urls: list[str] = Field(default_factory=list)


class MoreQuestionsRequest(AnalyzeRequest):
    existing_questions: list[str] = Field(default_factory=list)


def _content(req: AnalyzeRequest) -> ContentInput:
    content = ContentInput(
        text=req.text,
        images=attachment_service.collect_attachments(req.images, req.image_urls),
    )
    if content.is_empty():
        raise EmptyInputError("Please provide some text or at least one image to analyze.")
    return content


@router.post("/analyze")
def analyze(req: AnalyzeRequest) -> AnalysisResult:
    content = _content(req)
    return gemini_service.analyze(content.text, content.images, on_error=log_failure)


@router.post("/analyze/upload")
def analyze_upload(
    text: str = Form(""),
    files: list[UploadFile] | None = File(None),
) -> AnalysisResult:
    images = [
        attachment_service.attachment_from_file(upload.filename, upload.content_type, upload.file.read())
        for upload in files or []
    ]
    content = ContentInput(text=text, images=images)
    if content.is_empty():
        raise EmptyInputError("Please provide some text or at least one image to analyze.")
    return gemini_service.analyze(content.text, content.images, on_error=log_failure)


@router.post("/questions")
def generate_more(req: MoreQuestionsRequest) -> MoreQuestionsResult:
    content = _content(req)
    questions = gemini_service.generate_more(
        content.text, content.images, req.existing_questions, on_error=log_failure,
    )
    return MoreQuestionsResult(questions=questions, count=len(questions))


@router.post("/sessions")
def create_session(req: AnalyzeRequest) -> StudySessionView:
    session = get_session_store().create(_content(req), on_error=log_failure)
    return session.view()


@router.get("/sessions/{session_id}")
def get_session(session_id: str) -> StudySessionView:
    return get_session_store().get(session_id).view()


@router.post("/sessions/{session_id}/analyze")
def reanalyze_session(session_id: str) -> StudySessionView:
    return get_session_store().reanalyze(session_id, on_error=log_failure).view()


@router.post("/sessions/{session_id}/questions")
def generate_more_for_session(session_id: str) -> StudySessionView:
    session, added = get_session_store().generate_more(session_id, on_error=log_failure)
    return session.view(added_questions=added)


@router.delete("/sessions/{session_id}", status_code=204)
def delete_session(session_id: str) -> Response:
    get_session_store().delete(session_id)
    return Response(status_code=204)
