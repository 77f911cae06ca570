import pytest

from docspan.backend.contracts import BackendError, CellsResponse, SheetInfoResponse
from docspan.grid.geometry import COL_HEADER_HEIGHT, ROW_HEIGHT
from docspan.grid.session import CellVisual, GridSession, GridState
from docspan.locators.models import parse_annotation


class FakeBackend:
    def __init__(self, info=None, fail_cells=False):
        self.info = info or SheetInfoResponse.model_validate(
            {
                "file_id": "X1",
                "sheets": [{"name": "S1", "rows": 500, "cols": 30}, {"name": "S2", "rows": 10, "cols": 3}],
                "default_sheet": "S2",
            }
        )
        self.fail_cells = fail_cells
        self.cell_requests = []

    def get_excel_sheet_info(self, file_id):
        return self.info

    def get_excel_sheet_cells(self, req):
        self.cell_requests.append(req)
        if self.fail_cells:
            raise BackendError("файл занят")
        rows = req.row_end - req.row_start
        cols = req.col_end - req.col_start
        cells = [
            [f"{req.sheet_name}:{r}:{c}" for c in range(req.col_start, req.col_start + cols)]
            for r in range(req.row_start, req.row_start + rows)
        ]
        return CellsResponse(row_start=req.row_start, col_start=req.col_start, cells=cells)


def _session(backend=None):
    s = GridSession(backend or FakeBackend(), "A1", "X1")
    s.load_info()
    s.set_viewport(1200, 600)
    return s


def test_load_info_selects_default_sheet():
    s = _session()

    assert s.sheet_name == "S2"
    assert s.state == GridState.WINDOW_COMPUTED


def test_load_info_falls_back_to_first_sheet():
    info = SheetInfoResponse.model_validate({"sheets": [{"name": "Only", "rows": 3, "cols": 3}], "default_sheet": "Nope"})
    s = _session(FakeBackend(info=info))

    assert s.sheet_name == "Only"


def test_no_sheets_leaves_no_active_sheet():
    s = _session(FakeBackend(info=SheetInfoResponse()))

    assert s.sheet_name is None
    assert s.state == GridState.DIMENSIONS_LOADED
    assert s.fetch() is None


def test_identical_window_is_fetched_once():
    backend = FakeBackend()
    s = _session(backend)

    s.fetch()
    s.fetch()

    assert len(backend.cell_requests) == 1
    assert s.state == GridState.CELLS_LOADED
    assert s.cell_text(9, 2) == "S2:9:2"


def test_sheet_switch_clears_cache_and_refetches():
    backend = FakeBackend()
    s = _session(backend)
    s.fetch()
    s.select_sheet("S1")
    s.fetch()
    s.select_sheet("S2")

    assert s.cache_size == 0
    assert s.scroll_top == 0
    s.fetch()
    assert len(backend.cell_requests) == 3


def test_sub_cell_scroll_does_not_recompute_window():
    s = _session()
    s.select_sheet("S1")
    s.fetch()

    assert s.scroll_to(0, 5) is False
    assert s.state == GridState.CELLS_LOADED
    assert s.scroll_to(0, COL_HEADER_HEIGHT + ROW_HEIGHT * 40) is True
    assert s.state == GridState.WINDOW_COMPUTED


def test_stale_response_is_cached_but_not_rendered():
    backend = FakeBackend()
    s = _session(backend)
    s.select_sheet("S1")
    first = s.begin_fetch()
    s.scroll_to(0, COL_HEADER_HEIGHT + ROW_HEIGHT * 200)
    second = s.begin_fetch()

    assert s.complete_fetch(second, backend.get_excel_sheet_cells(s.request_for(second))) is True
    shown = s.rendered_window
    assert s.complete_fetch(first, backend.get_excel_sheet_cells(s.request_for(first))) is False
    assert s.rendered_window == shown
    assert s.cache_size == 2


def test_response_for_previous_sheet_is_discarded():
    backend = FakeBackend()
    s = _session(backend)
    s.select_sheet("S1")
    ticket = s.begin_fetch()
    cells = backend.get_excel_sheet_cells(s.request_for(ticket))
    s.select_sheet("S2")

    assert s.complete_fetch(ticket, cells) is False
    assert s.cells is None
    assert s.cache_size == 0


def test_fetch_failure_sets_message():
    s = _session(FakeBackend(fail_cells=True))

    assert s.fetch() is None
    assert s.message == "файл занят"


def test_focus_on_other_sheet_switches_then_scrolls():
    s = _session()

    s.focus("S1", 100, 5)

    assert s.sheet_name == "S1"
    assert s.focused == (100, 5)
    assert s.scroll_top == COL_HEADER_HEIGHT + ROW_HEIGHT * 98
    assert s.cell_visual(100, 5) == CellVisual.FOCUSED


def test_focus_before_info_is_deferred():
    s = GridSession(FakeBackend(), "A1", "X1")
    s.focus("S1", 7)
    s.load_info()

    assert s.sheet_name == "S1"
    assert s.row_focused(7)


def test_unknown_sheet_is_rejected():
    s = _session()
    with pytest.raises(ValueError):
        s.select_sheet("missing")


def test_markers_and_visual_precedence():
    s = _session()
    s.select_sheet("S1")
    s.set_annotations(
        [
            parse_annotation(
                {
                    "annotation_id": aid,
                    "archive_id": "A1",
                    "target_kind": "excel",
                    "target_ref": ref,
                    "locator": loc,
                    "content": "x",
                }
            )
            for aid, ref, loc in [
                ("r", "X1", {"sheet_name": "S1", "row": 1}),
                ("c", "X1", {"sheet_name": "S1", "row": 1, "col": 1}),
                ("o", "X1", {"sheet_name": "S2", "row": 1, "col": 1}),
                ("f", "X9", {"sheet_name": "S1", "row": 2, "col": 2}),
            ]
        ]
    )

    assert s.row_markers() == {1: ["r"]}
    assert s.cell_markers() == {(1, 1): ["c"]}
    assert s.cell_visual(1, 1) == CellVisual.ANNOTATED
    assert s.cell_visual(2, 2) == CellVisual.PLAIN
    s.set_hover(1, 1)
    assert s.cell_visual(1, 1) == CellVisual.HOVERED
    s.draft_for_cell(1, 1)
    assert s.cell_visual(1, 1) == CellVisual.FOCUSED


def test_context_menu_drafts():
    s = _session()

    row = s.draft_for_row(3)
    cell = s.draft_for_cell(3, 2)

    assert row.to_wire()["locator"] == {"sheet_name": "S2", "row": 3}
    assert cell.to_wire()["locator"] == {"sheet_name": "S2", "row": 3, "col": 2}
    assert cell.to_wire()["target_kind"] == "excel"
    assert cell.target_ref == "X1"


def test_header_label():
    s = _session()
    s.fetch()

    assert s.header_label() == "S2: строки 1-10 из 10, столбцы A-C из 3"


def test_open_file_resets_state():
    s = _session()
    s.fetch()
    s.open_file("X2")

    assert s.state == GridState.IDLE
    assert s.info is None
    assert s.cache_size == 0
