"""Recover summary, questions and references from a Gemini answer.

The model is asked to follow a fixed layout but does not always comply, so
nothing here raises on malformed structure: missing markers degrade to a
fallback result instead.
"""

from collections.abc import Iterable

from studylens.models.study import GroundingSource, ParsedAnalysis, WebReference
from studylens.services.prompts import QUESTIONS_MARKER, SUMMARY_MARKER

SUMMARY_PLACEHOLDER = "Could not parse summary."

_DIGITS = "0123456789"


def _starts_question(line: str) -> bool:
    """True for lines like ``"3. ..."`` or ``"  12. ..."``."""
    stripped = line.lstrip(" \t")
    i = 0
    while i < len(stripped) and stripped[i] in _DIGITS:
        i += 1
    return i > 0 and stripped[i:i + 2] == ". "


def parse_question_list(raw_text: str) -> list[str]:
    """Split text into numbered question blocks.

    A block runs from a line starting with ``<digits>. `` up to the next such
    line, so option/answer/explanation lines stay with their question.
    """
    if not raw_text:
        return []

    blocks: list[list[str]] = [[]]
    for index, line in enumerate(raw_text.split("\n")):
        if index > 0 and _starts_question(line):
            blocks.append([])
        blocks[-1].append(line)

    questions = []
    for block in blocks:
        question = "\n".join(block).strip()
        if question:
            questions.append(question)
    return questions


def parse_analysis(raw_text: str) -> ParsedAnalysis:
    """Extract the summary and question sections of an initial analysis."""
    questions_at = raw_text.find(QUESTIONS_MARKER)
    summary_at = raw_text.find(SUMMARY_MARKER)

    if questions_at == -1 and summary_at == -1:
        return ParsedAnalysis(summary=raw_text, questions=[])

    summary = SUMMARY_PLACEHOLDER
    if summary_at != -1:
        summary_start = summary_at + len(SUMMARY_MARKER)
        # First questions marker after the summary marker closes the summary
        summary_end = raw_text.find(QUESTIONS_MARKER, summary_start)
        if summary_end != -1:
            summary = raw_text[summary_start:summary_end].strip()

    questions: list[str] = []
    if questions_at != -1:
        region = raw_text[questions_at + len(QUESTIONS_MARKER):].strip()
        questions = parse_question_list(region)

    return ParsedAnalysis(summary=summary, questions=questions)


def extract_references(sources: Iterable[GroundingSource | None]) -> list[WebReference]:
    """Web references from grounding metadata, deduplicated by uri in first-seen order."""
    seen: set[str] = set()
    references = []
    for source in sources:
        if source is None or not source.uri:
            continue
        if source.uri in seen:
            continue
        seen.add(source.uri)
        references.append(WebReference(uri=source.uri, title=source.title or source.uri))
    return references
