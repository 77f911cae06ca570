from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from docspan.backend.contracts import (
    BackendError,
    CellsRequest,
    CellsResponse,
    DocumentBackend,
    SheetInfo,
    SheetInfoResponse,
)
from docspan.grid.geometry import (
    CellWindow,
    WindowOrigin,
    WindowSize,
    column_name,
    compute_window_origin,
    compute_window_size,
    fetch_window,
    focus_scroll_offsets,
)
from docspan.locators.index import cell_key, index_by_locator_key, row_key, sheet_scoped
from docspan.locators.models import Annotation, AnnotationDraft, SpreadsheetLocator

logger = logging.getLogger(__name__)


class GridState(str, Enum):
    IDLE = "idle"
    DIMENSIONS_LOADED = "dimensions_loaded"
    WINDOW_COMPUTED = "window_computed"
    CELLS_LOADED = "cells_loaded"


class CellVisual(str, Enum):
    FOCUSED = "focused"
    HOVERED = "hovered"
    ANNOTATED = "annotated"
    PLAIN = "plain"


@dataclass(frozen=True)
class FetchTicket:
    """
    Запрос прямоугольника ячеек, выданный в определённом поколении сессии.
    """

    generation: int
    key: tuple
    window: CellWindow


@dataclass(frozen=True)
class PendingFocus:
    sheet_name: str
    row: int
    col: int | None = None


class GridSession:
    """
    Просмотр одной таблицы с виртуализацией: грузится только окно ячеек вокруг видимой области.

    Состояния: IDLE -> DIMENSIONS_LOADED -> WINDOW_COMPUTED -> CELLS_LOADED.
    Прокрутка и изменение размера возвращают в WINDOW_COMPUTED, смена листа
    в DIMENSIONS_LOADED. Кэш окон принадлежит только текущему листу.

    Parameters
    ----------
    backend : DocumentBackend
        Бэкенд документов
    archive_id : str
        Архив, которому принадлежит файл (для черновиков аннотаций)
    file_id : str
        Открытый табличный файл
    """

    def __init__(self, backend: DocumentBackend, archive_id: str, file_id: str) -> None:
        self.backend = backend
        self.archive_id = archive_id
        self.file_id = file_id
        self.state = GridState.IDLE
        self.info: SheetInfoResponse | None = None
        self.sheet_name: str | None = None
        self.size: WindowSize = compute_window_size(0, 0)
        self.scroll_left: float = 0.0
        self.scroll_top: float = 0.0
        self.origin: WindowOrigin | None = None
        self.cells: CellsResponse | None = None
        self.rendered_window: CellWindow | None = None
        self.message: str | None = None
        self.focused: tuple[int, int | None] | None = None
        self.hovered: tuple[int, int] | None = None
        self.annotations: list[Annotation] = []
        self._pending_focus: PendingFocus | None = None
        self._cache: dict[tuple, CellsResponse] = {}
        self._generation = 0

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def sheet(self) -> SheetInfo | None:
        if self.info is None or self.sheet_name is None:
            return None
        return self.info.sheet(self.sheet_name)

    @property
    def cache_size(self) -> int:
        return len(self._cache)

    def _reset_sheet_state(self) -> None:
        self._cache.clear()
        self.scroll_left = 0.0
        self.scroll_top = 0.0
        self.origin = None
        self.cells = None
        self.rendered_window = None
        self.hovered = None
        self.focused = None

    def open_file(self, file_id: str) -> None:
        """
        Переключает сессию на другой файл; всё состояние старого файла сбрасывается.
        """
        self._generation += 1
        self.file_id = file_id
        self.info = None
        self.sheet_name = None
        self.message = None
        self._pending_focus = None
        self._reset_sheet_state()
        self.state = GridState.IDLE

    def load_info(self) -> bool:
        """
        Загружает список листов и выбирает лист по умолчанию.

        Returns
        -------
        bool
            True, если размеры загружены и применены
        """
        generation, file_id = self._generation, self.file_id
        try:
            info = self.backend.get_excel_sheet_info(file_id)
        except BackendError as exc:
            logger.warning("Не удалось загрузить листы %s: %s", file_id, exc)
            if generation == self._generation:
                self.message = str(exc)
            return False
        return self.apply_info(generation, info)

    def apply_info(self, generation: int, info: SheetInfoResponse) -> bool:
        if generation != self._generation:
            logger.debug("Отброшены размеры листов для устаревшего файла")
            return False
        self.info = info
        self.message = None
        default = info.default_sheet if info.default_sheet and info.sheet(info.default_sheet) else None
        if default is None and info.sheets:
            default = info.sheets[0].name
        if self._pending_focus is not None and info.sheet(self._pending_focus.sheet_name):
            default = self._pending_focus.sheet_name
        if default is None:
            self.sheet_name = None
            self.state = GridState.DIMENSIONS_LOADED
            return True
        self.select_sheet(default)
        return True

    def select_sheet(self, sheet_name: str) -> None:
        """
        Делает лист активным. Кэш, прокрутка и окно сбрасываются сразу,
        до того как успеет прийти ответ для старого листа.
        """
        if self.info is None or self.info.sheet(sheet_name) is None:
            raise ValueError(f"Лист не найден: {sheet_name}")
        if sheet_name != self.sheet_name:
            self._generation += 1
            self.sheet_name = sheet_name
            self._reset_sheet_state()
            self.state = GridState.DIMENSIONS_LOADED
            logger.debug("Активный лист: %s (file=%s)", sheet_name, self.file_id)
        pending = self._pending_focus
        if pending is not None and pending.sheet_name == sheet_name:
            self._pending_focus = None
            self._apply_focus(pending.row, pending.col)
        else:
            self._recompute_origin()

    def set_viewport(self, width: float, height: float) -> bool:
        self.size = compute_window_size(width, height)
        return self._recompute_origin(force=True)

    def scroll_to(self, scroll_left: float, scroll_top: float) -> bool:
        """
        Обновляет прокрутку; окно пересчитывается, только если сдвинулось его начало.

        Returns
        -------
        bool
            True, если окно изменилось
        """
        self.scroll_left = max(0.0, scroll_left)
        self.scroll_top = max(0.0, scroll_top)
        return self._recompute_origin()

    def _recompute_origin(self, force: bool = False) -> bool:
        sheet = self.sheet
        if sheet is None:
            return False
        origin = compute_window_origin(self.scroll_left, self.scroll_top, sheet.rows, sheet.cols)
        if origin == self.origin and not force:
            return False
        self.origin = origin
        self.state = GridState.WINDOW_COMPUTED
        return True

    @property
    def active_window(self) -> CellWindow | None:
        sheet = self.sheet
        if sheet is None or self.origin is None:
            return None
        return fetch_window(self.origin, self.size, sheet.rows, sheet.cols)

    def _active_key(self) -> tuple | None:
        window = self.active_window
        if window is None or self.sheet_name is None:
            return None
        return window.cache_key(self.file_id, self.sheet_name)

    def _show(self, window: CellWindow, cells: CellsResponse) -> None:
        self.cells = cells
        self.rendered_window = window
        self.state = GridState.CELLS_LOADED

    def begin_fetch(self) -> FetchTicket | None:
        """
        Запрос для активного окна или None, если запрашивать нечего.

        Если окно уже в кэше, оно сразу показывается и запрос не нужен.
        """
        window = self.active_window
        if window is None or window.is_empty or self.sheet_name is None:
            return None
        key = window.cache_key(self.file_id, self.sheet_name)
        cached = self._cache.get(key)
        if cached is not None:
            self._show(window, cached)
            return None
        return FetchTicket(generation=self._generation, key=key, window=window)

    def request_for(self, ticket: FetchTicket) -> CellsRequest:
        file_id, sheet_name, r0, r1, c0, c1 = ticket.key
        return CellsRequest(
            file_id=file_id,
            sheet_name=sheet_name,
            row_start=r0,
            row_end=r1,
            col_start=c0,
            col_end=c1,
        )

    def complete_fetch(self, ticket: FetchTicket, cells: CellsResponse) -> bool:
        """
        Применяет ответ на запрос ячеек.

        Ответ для другого файла или листа отбрасывается целиком. Ответ для
        того же листа попадает в кэш, но показывается, только если его
        прямоугольник совпадает с активным окном.

        Returns
        -------
        bool
            True, если ответ показан
        """
        if ticket.generation != self._generation:
            logger.debug("Отброшен ответ для устаревшего листа: %s", ticket.key)
            return False
        self._cache[ticket.key] = cells
        if ticket.key != self._active_key():
            return False
        self.message = None
        self._show(ticket.window, cells)
        return True

    def fail_fetch(self, ticket: FetchTicket, exc: BaseException) -> None:
        logger.warning("Не удалось загрузить ячейки %s: %s", ticket.key, exc)
        if ticket.generation == self._generation:
            self.message = str(exc)

    def fetch(self) -> CellsResponse | None:
        """
        Загружает активное окно (из кэша или с бэкенда) и возвращает видимые ячейки.
        """
        ticket = self.begin_fetch()
        if ticket is None:
            return self.cells
        try:
            cells = self.backend.get_excel_sheet_cells(self.request_for(ticket))
        except BackendError as exc:
            self.fail_fetch(ticket, exc)
            return self.cells
        self.complete_fetch(ticket, cells)
        return self.cells

    def cell_text(self, row: int, col: int) -> str:
        if self.cells is None:
            return ""
        r = row - self.cells.row_start
        c = col - self.cells.col_start
        if r < 0 or c < 0 or r >= len(self.cells.cells):
            return ""
        line = self.cells.cells[r]
        return line[c] if c < len(line) else ""

    def focus(self, sheet_name: str, row: int, col: int | None = None) -> None:
        """
        Прокручивает к строке/ячейке; на другом листе сначала переключает лист.

        Parameters
        ----------
        sheet_name : str
            Лист цели; пустая строка означает активный лист
        row : int
            Строка (с нуля)
        col : int | None
            Столбец; None фокусирует строку
        """
        target = sheet_name or self.sheet_name
        if self.info is None:
            if target:
                self._pending_focus = PendingFocus(target, row, col)
            return
        if target and target != self.sheet_name and self.info.sheet(target) is not None:
            self._pending_focus = PendingFocus(target, row, col)
            self.select_sheet(target)
            return
        self._apply_focus(row, col)

    def _apply_focus(self, row: int, col: int | None) -> None:
        left, top = focus_scroll_offsets(row, col)
        self.focused = (row, col)
        self.scroll_to(self.scroll_left if left is None else left, top)

    def set_hover(self, row: int | None, col: int | None = None) -> None:
        self.hovered = (row, col) if row is not None and col is not None else None

    def set_annotations(self, annotations: list[Annotation]) -> None:
        self.annotations = [a for a in annotations if a.target_ref == self.file_id]

    def row_markers(self) -> dict[int, list[str]]:
        """
        Аннотации уровня строки на активном листе: строка -> идентификаторы.
        """
        if self.sheet_name is None:
            return {}
        return index_by_locator_key(self.annotations, "spreadsheet", sheet_scoped(self.sheet_name, row_key))

    def cell_markers(self) -> dict[tuple[int, int], list[str]]:
        if self.sheet_name is None:
            return {}
        return index_by_locator_key(self.annotations, "spreadsheet", sheet_scoped(self.sheet_name, cell_key))

    def row_focused(self, row: int) -> bool:
        return self.focused is not None and self.focused == (row, None)

    def cell_visual(self, row: int, col: int, markers: dict | None = None) -> CellVisual:
        """
        Вид ячейки: фокус важнее наведения, наведение важнее отметки аннотации.
        """
        if self.focused == (row, col):
            return CellVisual.FOCUSED
        if self.hovered == (row, col):
            return CellVisual.HOVERED
        if markers is None:
            markers = self.cell_markers()
        if (row, col) in markers:
            return CellVisual.ANNOTATED
        return CellVisual.PLAIN

    def draft_for_row(self, row: int) -> AnnotationDraft:
        self.focused = (row, None)
        return self._draft(SpreadsheetLocator(sheet_name=self.sheet_name or "", row=row))

    def draft_for_cell(self, row: int, col: int) -> AnnotationDraft:
        self.focused = (row, col)
        return self._draft(SpreadsheetLocator(sheet_name=self.sheet_name or "", row=row, col=col))

    def _draft(self, locator: SpreadsheetLocator) -> AnnotationDraft:
        return AnnotationDraft(archive_id=self.archive_id, target_ref=self.file_id, locator=locator)

    def header_label(self) -> str:
        """
        Подпись над таблицей: лист, показанные строки и столбцы.
        """
        sheet = self.sheet
        if sheet is None:
            return "Лист не выбран"
        window = self.rendered_window or self.active_window
        if window is None or window.is_empty:
            return f"{sheet.name}: {sheet.rows} x {sheet.cols}"
        return (
            f"{sheet.name}: строки {window.row_start + 1}-{window.row_end} из {sheet.rows}, "
            f"столбцы {column_name(window.col_start)}-{column_name(window.col_end - 1)} из {sheet.cols}"
        )
