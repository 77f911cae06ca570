from docspan.locators.index import (
    AttachmentView,
    PrimaryDocView,
    block_key,
    cell_key,
    field_key,
    filter_by_current_target,
    group_by_target_ref,
    index_by_locator_key,
    page_key,
    row_key,
    sheet_scoped,
)
from docspan.locators.models import parse_annotation


def _a(aid, kind, ref, locator):
    return parse_annotation(
        {
            "annotation_id": aid,
            "archive_id": "A1",
            "target_kind": kind,
            "target_ref": ref,
            "locator": locator,
            "content": f"заметка {aid}",
        }
    )


ANNOTATIONS = [
    _a("1", "docx", "A1", {"block_id": "b1", "start": 0, "end": 2}),
    _a("2", "docx", "A1", {"block_id": "b1"}),
    _a("3", "docx", "A1", {"block_id": "b2"}),
    _a("4", "docx", "A1", {"field_name": "title"}),
    _a("5", "pdf", "P1", {"page": 3}),
    _a("6", "pdf", "P1", {"page": None}),
    _a("7", "excel", "X1", {"sheet_name": "S1", "row": 2}),
    _a("8", "excel", "X1", {"sheet_name": "S1", "row": 2, "col": 1}),
    _a("9", "excel", "X1", {"sheet_name": "S2", "row": 2, "col": 1}),
    _a("10", "docx", "D1", {"page": 1}),
]


def test_index_by_block_and_field():
    assert index_by_locator_key(ANNOTATIONS, "primary_doc", block_key) == {"b1": ["1", "2"], "b2": ["3"]}
    assert index_by_locator_key(ANNOTATIONS, "primary_doc", field_key) == {"title": ["4"]}


def test_index_by_page_only_counts_requested_kind():
    assert index_by_locator_key(ANNOTATIONS, "pdf", page_key) == {3: ["5"]}
    assert index_by_locator_key(ANNOTATIONS, "secondary_doc", page_key) == {1: ["10"]}


def test_row_and_cell_markers_are_disjoint_and_sheet_scoped():
    rows = index_by_locator_key(ANNOTATIONS, "spreadsheet", sheet_scoped("S1", row_key))
    cells = index_by_locator_key(ANNOTATIONS, "spreadsheet", sheet_scoped("S1", cell_key))

    assert rows == {2: ["7"]}
    assert cells == {(2, 1): ["8"]}


def test_filter_primary_doc_block_and_whole_document():
    block = filter_by_current_target(ANNOTATIONS, PrimaryDocView(block_id="b1"))
    whole = filter_by_current_target(ANNOTATIONS, PrimaryDocView())

    assert [a.annotation_id for a in block] == ["1", "2"]
    assert [a.annotation_id for a in whole] == ["1", "2", "3", "4"]


def test_filter_attachment_ignores_page():
    visible = filter_by_current_target(ANNOTATIONS, AttachmentView(file_id="P1", file_type="pdf", page=1))

    assert [a.annotation_id for a in visible] == ["5", "6"]


def test_scope_all_returns_everything():
    assert len(filter_by_current_target(ANNOTATIONS, PrimaryDocView(block_id="b1"), scope="all")) == len(ANNOTATIONS)
    assert len(filter_by_current_target(ANNOTATIONS, None)) == len(ANNOTATIONS)


def test_group_by_target_ref_skips_primary_doc():
    groups = group_by_target_ref(ANNOTATIONS)

    assert set(groups) == {"P1", "X1", "D1"}
    assert [a.annotation_id for a in groups["X1"]] == ["7", "8", "9"]
