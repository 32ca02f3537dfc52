from pydantic import BaseModel


class ErrorResponse(BaseModel):
    error_code: str
    message: str


class GeminiStatus(BaseModel):
    configured: bool
    model: str


class StatusResponse(BaseModel):
    gemini: GeminiStatus
    active_sessions: int
