import pytest

from docspan.locators.models import SpreadsheetLocator
from docspan.search.hits import SEARCH_HIT_ADAPTER
from docspan.search.navigation import OpenAnnotation, OpenAttachment, OpenDocument, open_container, resolve_open
from docspan.text.intervals import Range


def _hit(**raw):
    return SEARCH_HIT_ADAPTER.validate_python(raw)


def test_paragraph_hit_opens_block_with_highlights():
    req = resolve_open(_hit(kind="docx_block", archive_id="A", block_id="b3", highlights=[{"start": 1, "end": 4}]))

    assert req == OpenDocument(archive_id="A", block_id="b3", highlights=[Range(1, 4)])


def test_field_hit_prefers_best_paragraph():
    req = resolve_open(
        _hit(
            kind="main_doc_field",
            archive_id="A",
            field_name="title",
            highlights=[{"start": 0, "end": 2}],
            best_block_id="b7",
            best_block_highlights=[{"start": 10, "end": 12}],
        )
    )

    assert req.block_id == "b7"
    assert req.highlights == [Range(10, 12)]
    assert req.field_name is None


def test_field_hit_without_paragraph_opens_field():
    req = resolve_open(_hit(kind="main_doc_field", archive_id="A", field_name="title", highlights=[{"start": 0, "end": 2}]))

    assert req == OpenDocument(archive_id="A", field_name="title", field_highlights=[Range(0, 2)])


def test_attachment_and_annotation_hits():
    att = resolve_open(_hit(kind="attachment_name", archive_id="A", file_id="F1", display_name="акт.pdf"))
    ann = resolve_open(
        _hit(
            kind="annotation",
            archive_id="A",
            annotation_id="n1",
            target_kind="excel",
            target_ref="X1",
            locator={"sheet_name": "S", "row": 4, "col": 0},
            content="проверить сумму",
        )
    )

    assert att == OpenAttachment(archive_id="A", file_id="F1", display_name="акт.pdf")
    assert isinstance(ann, OpenAnnotation)
    assert ann.locator == SpreadsheetLocator(sheet_name="S", row=4, col=0)


def test_annotation_hit_with_broken_locator_opens_without_focus():
    ann = resolve_open(
        _hit(kind="annotation", archive_id="A", annotation_id="n1", target_kind="excel", locator={"col": 1})
    )

    assert ann.locator is None


def test_unknown_hit_type_and_container():
    with pytest.raises(TypeError):
        resolve_open(object())
    assert open_container("A") == OpenDocument(archive_id="A")
