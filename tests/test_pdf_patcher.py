"""
Positional patcher tests — cover rectangles, redraw coordinates, aborts.

Run: pytest tests/test_pdf_patcher.py -v
"""

import pytest

from conftest import build_pdf, make_change, make_span, pdf_lines

from resume_patcher.core.errors import PositionalPatchFailure
from resume_patcher.services.pdf_document import PdfDocument, WHITE, map_to_fitz_font
from resume_patcher.services.pdf_patcher import (
    apply_positional_changes,
    cover_rectangle,
    text_origin,
)


@pytest.fixture
def document(resume_pdf):
    doc = PdfDocument.load(resume_pdf)
    yield doc
    doc.close()


def _positioned(original="Built web apps.", modified="Built scalable web applications.", **span_kwargs):
    span_kwargs.setdefault("y", 100)
    return make_change(original, modified, position=make_span(original, **span_kwargs))


class TestGeometry:

    def test_cover_rectangle_flips_y_and_pads(self):
        change = _positioned(width=90)
        assert cover_rectangle(change, 792) == (48, 792 - 100 - 14 - 2, 94, 18)

    def test_text_origin_uses_font_size(self):
        change = _positioned()
        assert text_origin(change, 792) == (50, 792 - 100 - 12)


class TestApplyPositionalChanges:

    def test_draws_rectangle_then_text(self, document):
        change = _positioned(width=90)
        applied = apply_positional_changes(document, [change])

        assert applied == 1
        rect, text = document.operations[0]
        assert rect.kind == "rectangle"
        assert (rect.x, rect.y, rect.width, rect.height) == (48, 676, 94, 18)
        assert rect.color == WHITE
        assert text.kind == "text"
        assert (text.x, text.y) == (50, 680)
        assert text.text == "Built scalable web applications."
        assert text.size == 12
        assert text.font == "helv"

    def test_changes_drawn_in_input_order(self, document):
        first = _positioned("Built web apps.", "First", y=100)
        second = _positioned("Used SQL.", "Second", y=114)
        apply_positional_changes(document, [first, second])
        texts = [op.text for op in document.operations[0] if op.kind == "text"]
        assert texts == ["First", "Second"]

    def test_change_without_position_is_skipped(self, document, observer):
        change = make_change("Used SQL.", "Used PostgreSQL.")
        assert apply_positional_changes(document, [change], observer) == 0
        assert document.operations == {}
        assert observer.kinds() == ["position_skipped"]

    def test_unselected_change_is_skipped(self, document):
        change = _positioned()
        change.selected = False
        assert apply_positional_changes(document, [change]) == 0
        assert document.operations == {}

    def test_empty_change_list_draws_nothing(self, document):
        assert apply_positional_changes(document, []) == 0
        assert document.all_operations() == []

    def test_page_out_of_range_aborts(self, document):
        change = _positioned(page_index=3)
        with pytest.raises(PositionalPatchFailure, match="page 3"):
            apply_positional_changes(document, [change])

    def test_unknown_font_falls_back_to_default(self, document):
        change = _positioned()
        change.position.font_name = "EBGaramond-Regular"
        apply_positional_changes(document, [change])
        assert document.operations[0][1].font == "helv"

    def test_draw_failure_is_wrapped(self, document, monkeypatch):
        def explode(*args, **kwargs):
            raise RuntimeError("content stream locked")

        monkeypatch.setattr(document, "draw_text", explode)
        with pytest.raises(PositionalPatchFailure, match="content stream locked") as info:
            apply_positional_changes(document, [_positioned()])
        assert isinstance(info.value.cause, RuntimeError)


class TestSavedOutput:

    def test_output_contains_replacement(self, document):
        apply_positional_changes(document, [_positioned(y=100)])
        assert "Built scalable web applications." in pdf_lines(document.save())[0]

    def test_no_changes_keeps_original_text(self, document, resume_pdf):
        apply_positional_changes(document, [])
        assert pdf_lines(document.save()) == pdf_lines(resume_pdf)


class TestFontMapping:

    @pytest.mark.parametrize("name,expected", [
        ("Helvetica", "helv"),
        ("Arial-BoldMT", "hebo"),
        ("Times-Italic", "tiit"),
        ("Courier-BoldOblique", "cobi"),
    ])
    def test_builtin_names(self, name, expected):
        assert map_to_fitz_font(name) == expected

    def test_unknown_font_raises(self):
        with pytest.raises(ValueError):
            map_to_fitz_font("Calibri")

    def test_multi_page_geometry(self):
        with PdfDocument.load(build_pdf(["x"], width=595, height=842, pages=2)) as doc:
            assert doc.page_count == 2
            sizes = [doc.page_size(i) for i in range(doc.page_count)]
            assert [(s.width, s.height) for s in sizes] == [(595, 842), (595, 842)]
            with pytest.raises(IndexError):
                doc.page_size(2)
