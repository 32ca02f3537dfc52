"""In-memory study sessions: one analysis plus the questions appended to it.

Each session allows one Gemini call in flight at a time, so an analyze and a
generate-more on the same session cannot race when merging results.
"""

import threading
import uuid
from collections import OrderedDict
from dataclasses import dataclass, field
from functools import lru_cache

from studylens.config import Settings, get_settings
from studylens.exceptions import EmptyInputError, SessionBusyError, SessionNotFoundError
from studylens.models.study import AnalysisResult, ContentInput, StudySessionView
from studylens.observers import ErrorObserver
from studylens.services import gemini as gemini_service


@dataclass
class StudySession:
    id: str
    content: ContentInput
    result: AnalysisResult
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def view(self, added_questions: int = 0) -> StudySessionView:
        return StudySessionView(
            session_id=self.id,
            result=self.result,
            question_count=len(self.result.questions),
            added_questions=added_questions,
        )


class SessionStore:
    def __init__(self, max_sessions: int = 100):
        self.max_sessions = max_sessions
        self._sessions: OrderedDict[str, StudySession] = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._sessions)

    def get(self, session_id: str) -> StudySession:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                raise SessionNotFoundError(f"Study session not found: {session_id}")
            self._sessions.move_to_end(session_id)
            return session

    def delete(self, session_id: str) -> None:
        with self._lock:
            if self._sessions.pop(session_id, None) is None:
                raise SessionNotFoundError(f"Study session not found: {session_id}")

    def _add(self, session: StudySession) -> None:
        with self._lock:
            self._sessions[session.id] = session
            while len(self._sessions) > self.max_sessions:
                self._sessions.popitem(last=False)

    def create(
        self,
        content: ContentInput,
        settings: Settings | None = None,
        on_error: ErrorObserver | None = None,
    ) -> StudySession:
        """Analyze the content and keep the result; nothing is stored on failure."""
        if content.is_empty():
            raise EmptyInputError("Please provide some text or at least one image to analyze.")
        result = gemini_service.analyze(content.text, content.images, settings=settings, on_error=on_error)
        session = StudySession(id=uuid.uuid4().hex, content=content, result=result)
        self._add(session)
        return session

    def reanalyze(
        self,
        session_id: str,
        settings: Settings | None = None,
        on_error: ErrorObserver | None = None,
    ) -> StudySession:
        """Replace the session's result with a fresh analysis of the same content."""
        session = self.get(session_id)
        if not session.lock.acquire(blocking=False):
            raise SessionBusyError(f"Study session {session_id} already has a request in progress")
        try:
            session.result = gemini_service.analyze(
                session.content.text, session.content.images, settings=settings, on_error=on_error,
            )
        finally:
            session.lock.release()
        return session

    def generate_more(
        self,
        session_id: str,
        settings: Settings | None = None,
        on_error: ErrorObserver | None = None,
    ) -> tuple[StudySession, int]:
        """Append a new batch of questions. Returns the session and how many were added."""
        session = self.get(session_id)
        if not session.lock.acquire(blocking=False):
            raise SessionBusyError(f"Study session {session_id} already has a request in progress")
        try:
            new_questions = gemini_service.generate_more(
                session.content.text,
                session.content.images,
                list(session.result.questions),
                settings=settings,
                on_error=on_error,
            )
            session.result.questions.extend(new_questions)
        finally:
            session.lock.release()
        return session, len(new_questions)


@lru_cache
def get_session_store() -> SessionStore:
    return SessionStore(max_sessions=get_settings().max_sessions)
