"""
Геометрия виртуализированной таблицы: размеры окна выборки и его начало.

Все величины в пикселях; ячейки фиксированного размера, заголовки строк и
столбцов фиксированной толщины.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

ROW_HEIGHT = 26
COL_WIDTH = 140
ROW_HEADER_WIDTH = 56
COL_HEADER_HEIGHT = 28
OVERSCAN_ROWS = 12
OVERSCAN_COLS = 4
MAX_WINDOW_ROWS = 260
MAX_WINDOW_COLS = 60
# Пока размер области просмотра неизвестен
FALLBACK_VISIBLE_ROWS = 20
FALLBACK_VISIBLE_COLS = 10
FOCUS_ROWS_ABOVE = 2
FOCUS_COLS_LEFT = 1


@dataclass(frozen=True)
class WindowSize:
    rows: int
    cols: int


@dataclass(frozen=True)
class WindowOrigin:
    row_start: int
    col_start: int


@dataclass(frozen=True)
class CellWindow:
    """
    Прямоугольник ячеек [row_start, row_end) x [col_start, col_end).
    """

    row_start: int
    row_end: int
    col_start: int
    col_end: int

    @property
    def is_empty(self) -> bool:
        return self.row_end <= self.row_start or self.col_end <= self.col_start

    def cache_key(self, file_id: str, sheet_name: str) -> tuple:
        return (file_id, sheet_name, self.row_start, self.row_end, self.col_start, self.col_end)

    def contains(self, row: int, col: int) -> bool:
        return self.row_start <= row < self.row_end and self.col_start <= col < self.col_end


def compute_window_size(viewport_width: float, viewport_height: float) -> WindowSize:
    """
    Размер окна выборки: видимые ячейки плюс запас с обеих сторон, но не больше максимума.

    Parameters
    ----------
    viewport_width : float
        Ширина области прокрутки
    viewport_height : float
        Высота области прокрутки

    Returns
    -------
    WindowSize
        Число строк и столбцов окна
    """
    visible_rows = math.ceil(viewport_height / ROW_HEIGHT) if viewport_height > 0 else FALLBACK_VISIBLE_ROWS
    visible_cols = math.ceil(viewport_width / COL_WIDTH) if viewport_width > 0 else FALLBACK_VISIBLE_COLS
    return WindowSize(
        rows=min(MAX_WINDOW_ROWS, visible_rows + OVERSCAN_ROWS * 2),
        cols=min(MAX_WINDOW_COLS, visible_cols + OVERSCAN_COLS * 2),
    )


def _axis_origin(scroll: float, header: int, cell: int, overscan: int, dimension: int) -> int:
    first_visible = math.floor(max(0.0, scroll - header) / cell)
    start = max(0, first_visible - overscan)
    return min(max(0, dimension - 1), start)


def compute_window_origin(
    scroll_left: float,
    scroll_top: float,
    sheet_rows: int,
    sheet_cols: int,
) -> WindowOrigin:
    """
    Левый верхний угол окна выборки для текущей прокрутки.

    Начало не выходит за последнюю строку/столбец листа.

    Parameters
    ----------
    scroll_left, scroll_top : float
        Смещение прокрутки
    sheet_rows, sheet_cols : int
        Размеры листа

    Returns
    -------
    WindowOrigin
        Первая строка и первый столбец окна
    """
    return WindowOrigin(
        row_start=_axis_origin(scroll_top, COL_HEADER_HEIGHT, ROW_HEIGHT, OVERSCAN_ROWS, sheet_rows),
        col_start=_axis_origin(scroll_left, ROW_HEADER_WIDTH, COL_WIDTH, OVERSCAN_COLS, sheet_cols),
    )


def fetch_window(origin: WindowOrigin, size: WindowSize, sheet_rows: int, sheet_cols: int) -> CellWindow:
    """
    Прямоугольник, который реально запрашивается у бэкенда: окно, обрезанное листом.
    """
    r0 = max(0, min(sheet_rows, origin.row_start))
    c0 = max(0, min(sheet_cols, origin.col_start))
    r1 = max(r0, min(sheet_rows, origin.row_start + size.rows))
    c1 = max(c0, min(sheet_cols, origin.col_start + size.cols))
    return CellWindow(row_start=r0, row_end=r1, col_start=c0, col_end=c1)


def focus_scroll_offsets(row: int, col: int | None = None) -> tuple[float | None, float]:
    """
    Прокрутка, при которой строка row на две строки ниже верхнего края,
    а столбец col (если задан) на один столбец правее левого края.

    Returns
    -------
    tuple[float | None, float]
        (scroll_left или None, scroll_top)
    """
    top = COL_HEADER_HEIGHT + max(0, row) * ROW_HEIGHT
    scroll_top = max(0, top - ROW_HEIGHT * FOCUS_ROWS_ABOVE)
    if col is None:
        return None, scroll_top
    left = ROW_HEADER_WIDTH + max(0, col) * COL_WIDTH
    return max(0, left - COL_WIDTH * FOCUS_COLS_LEFT), scroll_top


def canvas_size(sheet_rows: int, sheet_cols: int) -> tuple[int, int]:
    """
    Полный размер прокручиваемого холста листа (ширина, высота).
    """
    return (
        ROW_HEADER_WIDTH + sheet_cols * COL_WIDTH,
        COL_HEADER_HEIGHT + sheet_rows * ROW_HEIGHT,
    )


def column_name(index: int) -> str:
    """
    Буквенное имя столбца: 0 -> A, 25 -> Z, 26 -> AA.
    """
    n = index + 1
    name = ""
    while n > 0:
        n, rem = divmod(n - 1, 26)
        name = chr(65 + rem) + name
    return name
