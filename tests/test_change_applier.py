"""
Change applier tests — positional first, reflow on any structural failure.

Run: pytest tests/test_change_applier.py -v
"""

import asyncio

import pytest

from conftest import build_pdf, make_change, make_span, pdf_lines

from resume_patcher.core.errors import ExtractionFailure
from resume_patcher.services.change_applier import (
    STRATEGY_POSITIONAL,
    STRATEGY_REFLOW,
    apply_changes_to_resume,
    generate_modified_pdf,
    run_patch_pipeline,
)
from resume_patcher.services.pdf_document import PdfDocument


def _page_size(pdf_bytes):
    with PdfDocument.load(pdf_bytes) as doc:
        size = doc.page_size(0)
    return size.width, size.height


class TestPositionalPath:

    def test_positioned_change_patches_in_place(self, resume_pdf, resume_text):
        change = make_change(
            "Built web apps.", "Built scalable web applications.",
            position=make_span("Built web apps.", y=100),
        )
        outcome = run_patch_pipeline(resume_pdf, [change], resume_text)
        assert outcome.strategy == STRATEGY_POSITIONAL
        assert outcome.applied == 1
        assert outcome.failure is None
        assert "Built scalable web applications." in pdf_lines(outcome.pdf_bytes)[0]

    def test_empty_change_list_keeps_document(self, resume_pdf, resume_text, observer):
        outcome = run_patch_pipeline(resume_pdf, [], resume_text, observer)
        assert outcome.strategy == STRATEGY_POSITIONAL
        assert pdf_lines(outcome.pdf_bytes) == pdf_lines(resume_pdf)
        assert observer.events == []

    def test_unselected_only_is_not_a_failure(self, resume_pdf, resume_text):
        change = make_change("Used SQL.", "Used PostgreSQL.", selected=False)
        outcome = run_patch_pipeline(resume_pdf, [change], resume_text)
        assert outcome.strategy == STRATEGY_POSITIONAL
        assert outcome.applied == 0

    def test_same_input_gives_same_text(self, resume_pdf, resume_text):
        change = make_change(
            "Used SQL.", "Used PostgreSQL.", position=make_span("Used SQL.", y=120),
        )
        first = run_patch_pipeline(resume_pdf, [change], resume_text)
        second = run_patch_pipeline(resume_pdf, [change], resume_text)
        assert pdf_lines(first.pdf_bytes) == pdf_lines(second.pdf_bytes)


class TestReflowFallback:

    def test_no_positions_falls_back_to_reflow(self, resume_pdf, resume_text, observer):
        change = make_change("Built web apps.", "Built scalable web applications.")
        outcome = run_patch_pipeline(resume_pdf, [change], resume_text, observer)
        assert outcome.strategy == STRATEGY_REFLOW
        assert "has a position" in outcome.failure
        assert pdf_lines(outcome.pdf_bytes) == [["Built scalable web applications.", "Used SQL."]]
        assert observer.kinds() == ["patch_failed", "reflow_started"]

    def test_page_out_of_range_discards_partial_edits(self, resume_pdf, resume_text):
        good = make_change(
            "Used SQL.", "Used PostgreSQL.", "change_1", position=make_span("Used SQL.", y=120),
        )
        bad = make_change(
            "Built web apps.", "Built scalable web applications.", "change_2",
            position=make_span("Built web apps.", page_index=4),
        )
        outcome = run_patch_pipeline(resume_pdf, [good, bad], resume_text)
        assert outcome.strategy == STRATEGY_REFLOW
        # reflow restarts from text, so both replacements land and nothing is drawn twice
        assert pdf_lines(outcome.pdf_bytes) == [["Built scalable web applications.", "Used PostgreSQL."]]

    def test_reflow_uses_original_page_size(self, resume_text):
        original = build_pdf(resume_text.split("\n"), width=595, height=842)
        change = make_change("Used SQL.", "Used PostgreSQL.")
        outcome = run_patch_pipeline(original, [change], resume_text)
        assert outcome.strategy == STRATEGY_REFLOW
        assert _page_size(outcome.pdf_bytes) == (595, 842)

    def test_unreadable_original_reflows_on_letter(self, resume_text, observer):
        change = make_change("Used SQL.", "Used PostgreSQL.")
        output = generate_modified_pdf(b"not a pdf", [change], resume_text, observer)
        assert _page_size(output) == (612, 792)
        assert pdf_lines(output) == [["Built web apps.", "Used PostgreSQL."]]
        assert observer.kinds()[:2] == ["patch_failed", "reflow_started"]

    def test_reflow_only_applies_selected_changes(self, resume_pdf, resume_text):
        kept = make_change("Used SQL.", "Used PostgreSQL.", "change_1")
        dropped = make_change("Built web apps.", "Built nothing.", "change_2", selected=False)
        outcome = run_patch_pipeline(resume_pdf, [kept, dropped], resume_text)
        assert pdf_lines(outcome.pdf_bytes) == [["Built web apps.", "Used PostgreSQL."]]


class TestApplyChangesToResume:

    def test_extracts_and_positions_when_no_text_given(self, resume_pdf, observer):
        change = make_change("Used SQL.", "Used PostgreSQL.")
        outcome = asyncio.run(apply_changes_to_resume(resume_pdf, [change], observer=observer))
        assert change.position is not None
        assert change.position.text == "Used SQL."
        assert outcome.strategy == STRATEGY_POSITIONAL
        assert outcome.applied == 1

    def test_supplied_text_positions_unpositioned_changes(self, resume_pdf, resume_text, observer):
        change = make_change("Used SQL.", "Used PostgreSQL.")
        outcome = asyncio.run(apply_changes_to_resume(resume_pdf, [change], resume_text, observer))
        assert change.position is not None
        assert change.position.text == "Used SQL."
        assert outcome.strategy == STRATEGY_POSITIONAL
        assert outcome.applied == 1
        assert observer.events == []

    def test_supplied_text_keeps_existing_positions(self, resume_pdf, resume_text):
        given = make_span("Used SQL.", y=120)
        change = make_change("Used SQL.", "Used PostgreSQL.", position=given)
        asyncio.run(apply_changes_to_resume(resume_pdf, [change], resume_text))
        assert change.position == given

    def test_unmatched_change_is_skipped_without_error(self, resume_pdf, observer):
        hit = make_change("Used SQL.", "Used PostgreSQL.", "change_1")
        miss = make_change("Won a hackathon", "Won two hackathons", "change_2")
        outcome = asyncio.run(apply_changes_to_resume(resume_pdf, [hit, miss], observer=observer))
        assert outcome.strategy == STRATEGY_POSITIONAL
        assert outcome.applied == 1
        assert miss.position is None
        assert observer.kinds() == ["match_miss", "position_skipped"]

    def test_unmatched_change_is_a_no_op_under_reflow(self, resume_pdf, resume_text, observer):
        miss = make_change("Won a hackathon", "Won two hackathons")
        outcome = asyncio.run(apply_changes_to_resume(resume_pdf, [miss], resume_text, observer))
        assert outcome.strategy == STRATEGY_REFLOW
        assert pdf_lines(outcome.pdf_bytes) == [["Built web apps.", "Used SQL."]]
        assert "match_miss" in observer.kinds()

    def test_empty_pdf_raises_extraction_failure(self):
        with pytest.raises(ExtractionFailure):
            asyncio.run(apply_changes_to_resume(b"", [make_change("a", "b")]))
