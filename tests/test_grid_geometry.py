from docspan.grid.geometry import (
    COL_HEADER_HEIGHT,
    COL_WIDTH,
    MAX_WINDOW_COLS,
    MAX_WINDOW_ROWS,
    OVERSCAN_COLS,
    OVERSCAN_ROWS,
    ROW_HEADER_WIDTH,
    ROW_HEIGHT,
    WindowOrigin,
    column_name,
    compute_window_origin,
    compute_window_size,
    fetch_window,
    focus_scroll_offsets,
)


def test_window_size_adds_overscan_and_is_capped():
    size = compute_window_size(COL_WIDTH * 5, ROW_HEIGHT * 10)

    assert size.rows == 10 + 2 * OVERSCAN_ROWS
    assert size.cols == 5 + 2 * OVERSCAN_COLS

    huge = compute_window_size(10**7, 10**7)
    assert huge.rows == MAX_WINDOW_ROWS
    assert huge.cols == MAX_WINDOW_COLS


def test_origin_at_top_left_is_zero():
    assert compute_window_origin(0, 0, 1000, 50) == WindowOrigin(0, 0)


def test_origin_subtracts_header_and_overscan():
    scroll_top = COL_HEADER_HEIGHT + ROW_HEIGHT * 100
    scroll_left = ROW_HEADER_WIDTH + COL_WIDTH * 20

    origin = compute_window_origin(scroll_left, scroll_top, 1000, 50)

    assert origin.row_start == 100 - OVERSCAN_ROWS
    assert origin.col_start == 20 - OVERSCAN_COLS


def test_origin_clamps_to_last_row_of_small_sheet():
    size = compute_window_size(800, 600)
    for scroll_top in (0, 500, 10**6):
        origin = compute_window_origin(0, scroll_top, 10, 3)
        window = fetch_window(origin, size, 10, 3)

        assert origin.row_start <= 9
        assert window.row_end <= 10
        assert window.col_end <= 3


def test_origin_for_empty_sheet():
    origin = compute_window_origin(5000, 5000, 0, 0)

    assert origin == WindowOrigin(0, 0)
    assert fetch_window(origin, compute_window_size(100, 100), 0, 0).is_empty


def test_focus_scroll_offsets_leave_margin():
    left, top = focus_scroll_offsets(10, 4)

    assert top == COL_HEADER_HEIGHT + 10 * ROW_HEIGHT - 2 * ROW_HEIGHT
    assert left == ROW_HEADER_WIDTH + 4 * COL_WIDTH - COL_WIDTH
    assert focus_scroll_offsets(0) == (None, 0)


def test_column_name():
    assert column_name(0) == "A"
    assert column_name(25) == "Z"
    assert column_name(26) == "AA"
    assert column_name(27) == "AB"
    assert column_name(701) == "ZZ"
    assert column_name(702) == "AAA"
