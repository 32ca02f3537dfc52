from studylens.models.study import AnalysisMode, ImageAttachment, InlineDataPart, TextPart
from studylens.services.prompts import (
    EXISTING_QUESTIONS_MARKER,
    INITIAL_TEMPLATE,
    QUESTIONS_MARKER,
    SUMMARY_MARKER,
    build_request,
    supplemental_template,
)
from conftest import JPEG_IMAGE, PNG_IMAGE


class TestPartOrdering:
    def test_text_then_images_then_instruction(self):
        req = build_request(AnalysisMode.INITIAL, "Source text", [PNG_IMAGE, JPEG_IMAGE])
        assert len(req.parts) == 4
        assert req.parts[0] == TextPart(text="Source text")
        assert req.parts[1] == InlineDataPart(inline_data=PNG_IMAGE)
        assert req.parts[2] == InlineDataPart(inline_data=JPEG_IMAGE)
        assert req.parts[3] == TextPart(text=INITIAL_TEMPLATE)

    def test_empty_text_is_omitted(self):
        req = build_request(AnalysisMode.INITIAL, "", [PNG_IMAGE])
        assert len(req.parts) == 2
        assert isinstance(req.parts[0], InlineDataPart)
        assert all(not (isinstance(p, TextPart) and p.text == "") for p in req.parts)

    def test_text_only(self):
        req = build_request(AnalysisMode.INITIAL, "Only text", [])
        assert [type(p) for p in req.parts] == [TextPart, TextPart]
        assert req.parts[-1].text == INITIAL_TEMPLATE

    def test_deterministic(self):
        a = build_request(AnalysisMode.SUPPLEMENTAL, "t", [PNG_IMAGE], ["1. Q?"])
        b = build_request(AnalysisMode.SUPPLEMENTAL, "t", [PNG_IMAGE], ["1. Q?"])
        assert a == b

    def test_empty_image_data_passes_through(self):
        broken = ImageAttachment(mime_type="image/png", data="")
        req = build_request(AnalysisMode.INITIAL, "t", [broken])
        assert req.parts[1].inline_data == broken


class TestInitialMode:
    def test_uses_search(self):
        assert build_request(AnalysisMode.INITIAL, "t", []).use_search is True

    def test_markers_in_order(self):
        assert INITIAL_TEMPLATE.index(SUMMARY_MARKER) < INITIAL_TEMPLATE.index(QUESTIONS_MARKER)

    def test_describes_question_format(self):
        assert "A, B, C" in INITIAL_TEMPLATE
        assert "Answer:" in INITIAL_TEMPLATE
        assert "Explanation:" in INITIAL_TEMPLATE
        assert "web search" in INITIAL_TEMPLATE

    def test_ignores_prior_questions(self):
        req = build_request(AnalysisMode.INITIAL, "t", [], ["1. Old question?"])
        assert req.parts[-1].text == INITIAL_TEMPLATE
        assert "Old question" not in req.parts[-1].text


class TestSupplementalMode:
    def test_no_search(self):
        assert build_request(AnalysisMode.SUPPLEMENTAL, "t", [], []).use_search is False

    def test_embeds_prior_questions_with_blank_line(self):
        req = build_request(AnalysisMode.SUPPLEMENTAL, "t", [], ["1. First?", "2. Second?"])
        instruction = req.parts[-1].text
        assert EXISTING_QUESTIONS_MARKER in instruction
        assert "1. First?\n\n2. Second?" in instruction
        assert instruction.index(EXISTING_QUESTIONS_MARKER) < instruction.index("1. First?")

    def test_omitted_prior_questions_is_empty_list(self):
        req = build_request(AnalysisMode.SUPPLEMENTAL, "t", [])
        assert req.parts[-1].text == supplemental_template([])

    def test_asks_for_five_without_markers(self):
        instruction = supplemental_template([])
        assert "5 MORE" in instruction
        assert "starting from 1" in instruction
        assert SUMMARY_MARKER not in instruction
        assert "web search" not in instruction
