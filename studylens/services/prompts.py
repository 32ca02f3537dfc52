"""Prompt contract for study analysis.

Builds the ordered list of parts sent to Gemini: the source text, the images
in upload order, and a fixed instruction block that always comes last so the
model reads everything before it as material rather than as instructions.
"""

from studylens.models.study import (
    AnalysisMode,
    AnalysisRequest,
    ImageAttachment,
    InlineDataPart,
    TextPart,
)

SUMMARY_MARKER = "### SUMMARY ###"
QUESTIONS_MARKER = "### QUESTIONS ###"
EXISTING_QUESTIONS_MARKER = "--- EXISTING QUESTIONS ---"

NEW_QUESTION_COUNT = 5

_MCQ_RULES = """--- MCQ RULES ---
1.  **Levels**: Generate questions at three cognitive levels: Level 1 (Recall), Level 2 (Comprehension), and Level 3 (Application/Evaluation).
2.  **Format**: Each question must have exactly 3 options (A, B, C). Exactly one answer is correct. The other two must be plausible distractors.
3.  **Wording**: Use exact wording/phrases from the provided content. Do not use external sources for questions.
4.  **Answer & Explanation**: Include the correct answer letter and a short explanation referencing the relevant section of the content.
5.  **Organization**: Group questions by topic if identifiable from the text."""

INITIAL_TEMPLATE = f"""
You are an expert instructor and examiner. I will provide you with content from training material, which may include text and images. Your task is to generate a structured summary and high-quality Multiple Choice Questions (MCQs) directly from the provided content.

You MUST use your web search tool to find related content, verify information, and provide context for your analysis.

First, create the summary following these rules:
--- SUMMARY RULES ---
1.  **Use Only Provided Words**: Use exact words and terminology from the provided content. Do not paraphrase or add external information.
2.  **Structure and Formatting**: Use **bolded headings** for main topics. Use nested bullet points for lists and key details under each heading. Keep the information in the order it appears in the content.
3.  **Accuracy**: The summary must be a direct and faithful representation of the provided content.

After the summary, create the Multiple Choice Questions following these rules:
{_MCQ_RULES}

--- OUTPUT STRUCTURE ---
Structure your response EXACTLY as follows, using the specified delimiters. Do not add any other formatting or explanations.

{SUMMARY_MARKER}
[Your structured summary here, following the summary rules]

{QUESTIONS_MARKER}
[Your list of MCQs here, following the MCQ rules, numbered sequentially]
1. Question text from provided content?
   A) Option 1
   B) Option 2
   C) Option 3
   Answer: B
   Explanation: According to [content section], ...
2. Another question?
   A) Option 1
   B) Option 2
   C) Option 3
   Answer: C
   Explanation: Based on the scenario described in [content section], ...
"""

_SUPPLEMENTAL_HEAD = f"""
You are an expert instructor and examiner. Based on the provided content (text and images), generate {NEW_QUESTION_COUNT} MORE unique Multiple Choice Questions (MCQs).

DO NOT repeat questions from this list of existing questions:
{EXISTING_QUESTIONS_MARKER}
"""

_SUPPLEMENTAL_TAIL = f"""
---

Follow these rules for the new questions:
{_MCQ_RULES}

--- OUTPUT STRUCTURE ---
Output ONLY the {NEW_QUESTION_COUNT} new questions, numbered sequentially starting from 1. Do not include any other delimiters or headings like "{QUESTIONS_MARKER}".
1. New question text?
   A) Option A
   B) Option B
   C) Option C
   Answer: A
   Explanation: ...
2. Another new question?
   A) Option 1
   B) Option 2
   C) Option 3
   Answer: C
   Explanation: ...
"""


def supplemental_template(prior_questions: list[str]) -> str:
    """Instruction block for a follow-up batch, embedding what already exists."""
    return _SUPPLEMENTAL_HEAD + "\n\n".join(prior_questions) + _SUPPLEMENTAL_TAIL


def build_request(
    mode: AnalysisMode,
    text: str,
    images: list[ImageAttachment],
    prior_questions: list[str] | None = None,
) -> AnalysisRequest:
    """Assemble the parts for one Gemini call.

    Order is text (omitted when empty), then images in upload order, then the
    instruction block. ``prior_questions`` only matters in supplemental mode.
    Attachments are passed through untouched.
    """
    parts: list[TextPart | InlineDataPart] = []
    if text:
        parts.append(TextPart(text=text))
    for image in images:
        parts.append(InlineDataPart(inline_data=image))

    if mode == AnalysisMode.SUPPLEMENTAL:
        instruction = supplemental_template(list(prior_questions or []))
    else:
        instruction = INITIAL_TEMPLATE
    parts.append(TextPart(text=instruction))

    return AnalysisRequest(
        mode=mode,
        parts=parts,
        use_search=mode == AnalysisMode.INITIAL,
    )
