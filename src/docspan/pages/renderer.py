from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Literal, Protocol

logger = logging.getLogger(__name__)

PAGE_SCALE = 1.2
THUMB_SCALE = 0.45
SINGLE_PAGE_SCALE = 1.4

Variant = Literal["pages", "thumbs"]


class PageHandle(Protocol):
    def get_viewport(self, scale: float = 1.0) -> Any: ...

    def render(self, surface: Any, viewport: Any) -> Any: ...


class PagedDocument(Protocol):
    @property
    def num_pages(self) -> int: ...

    def get_page(self, page_no: int) -> PageHandle: ...


@dataclass(frozen=True)
class ObserverOptions:
    """
    Настройки наблюдателя видимости: запас в пикселях сверху и снизу и минимальная доля видимости.
    """

    margin_px: float = 600.0
    threshold: float = 0.01


def intersection_ratio(
    top: float,
    bottom: float,
    viewport_top: float,
    viewport_bottom: float,
    options: ObserverOptions = ObserverOptions(),
) -> float:
    """
    Доля страницы [top, bottom), попадающая в расширенную запасом область просмотра.
    """
    height = bottom - top
    if height <= 0:
        return 0.0
    lo = max(top, viewport_top - options.margin_px)
    hi = min(bottom, viewport_bottom + options.margin_px)
    return max(0.0, hi - lo) / height


class PageVisibilityRenderer:
    """
    Отрисовка страниц документа по мере их появления в области просмотра.

    Каждая страница рисуется один раз; при ошибке отметка снимается, и
    следующее пересечение повторит попытку. Прокрутка к странице не рисует её.

    Parameters
    ----------
    surface_factory : Callable[[int, Any], Any]
        Создаёт поверхность для страницы по номеру и viewport
    scroller : Callable[[int], None] | None
        Прокручивает контейнер страницы в область просмотра
    variant : Variant
        "pages" для чтения, "thumbs" для сетки миниатюр
    options : ObserverOptions
        Параметры наблюдателя видимости
    """

    def __init__(
        self,
        surface_factory: Callable[[int, Any], Any],
        scroller: Callable[[int], None] | None = None,
        variant: Variant = "pages",
        options: ObserverOptions = ObserverOptions(),
    ) -> None:
        self.surface_factory = surface_factory
        self.scroller = scroller
        self.scale = THUMB_SCALE if variant == "thumbs" else PAGE_SCALE
        self.options = options
        self.document: PagedDocument | None = None
        self.surfaces: dict[int, Any] = {}
        self.message: str | None = None
        self._rendered: set[int] = set()
        self._generation = 0

    @property
    def num_pages(self) -> int:
        return self.document.num_pages if self.document is not None else 0

    def set_document(self, document: PagedDocument | None) -> None:
        self._generation += 1
        self.document = document
        self.surfaces = {}
        self.message = None
        self._rendered.clear()

    def is_rendered(self, page_no: int) -> bool:
        return page_no in self._rendered

    def on_intersection(self, page_no: int, ratio: float) -> bool:
        """
        Сигнал наблюдателя: страница пересекла расширенную область просмотра.

        Returns
        -------
        bool
            True, если страница была отрисована этим вызовом
        """
        if ratio < self.options.threshold:
            return False
        return self.render_page(page_no)

    def render_page(self, page_no: int) -> bool:
        doc = self.document
        if doc is None or page_no < 1 or page_no > doc.num_pages or page_no in self._rendered:
            return False
        generation = self._generation
        self._rendered.add(page_no)
        try:
            page = doc.get_page(page_no)
            viewport = page.get_viewport(self.scale)
            surface = self.surface_factory(page_no, viewport)
            page.render(surface, viewport)
        except Exception as exc:
            logger.warning("Не удалось отрисовать страницу %s: %s", page_no, exc)
            if generation == self._generation:
                self._rendered.discard(page_no)
            return False
        if generation != self._generation:
            return False
        self.surfaces[page_no] = surface
        return True

    def scroll_to_page(self, page_no: int) -> int | None:
        """
        Прокручивает к странице без отрисовки; номер ограничивается числом страниц.
        """
        n = self.num_pages
        if n == 0 or self.scroller is None:
            return None
        target = max(1, min(n, page_no))
        self.scroller(target)
        return target


@dataclass(frozen=True)
class RenderHandle:
    """
    Документ и функция отрисовки одной страницы, принадлежащие одному просмотрщику.
    """

    document: PagedDocument
    render: Callable[[PagedDocument, int], Any]


class SinglePageViewer:
    """
    Просмотр PDF по одной странице с переходами вперёд/назад.
    """

    def __init__(
        self,
        surface_factory: Callable[[int, Any], Any],
        on_page_change: Callable[[int], None] | None = None,
        scale: float = SINGLE_PAGE_SCALE,
    ) -> None:
        self.surface_factory = surface_factory
        self.on_page_change = on_page_change
        self.scale = scale
        self.handle: RenderHandle | None = None
        self.current_page = 1
        self.surface: Any = None
        self.message: str | None = None

    @property
    def num_pages(self) -> int:
        return self.handle.document.num_pages if self.handle is not None else 0

    def _render(self, document: PagedDocument, page_no: int) -> Any:
        page = document.get_page(page_no)
        viewport = page.get_viewport(self.scale)
        surface = self.surface_factory(page_no, viewport)
        page.render(surface, viewport)
        return surface

    def load(self, document: PagedDocument) -> None:
        self.handle = RenderHandle(document=document, render=self._render)
        self.current_page = 1
        self.message = None
        self.surface = None
        if document.num_pages:
            self._draw(1)

    def _draw(self, page_no: int) -> bool:
        try:
            self.surface = self.handle.render(self.handle.document, page_no)
        except Exception as exc:
            logger.warning("Не удалось отрисовать страницу %s: %s", page_no, exc)
            self.message = str(exc)
            return False
        return True

    def goto(self, page_no: int) -> bool:
        if self.handle is None:
            return False
        target = max(1, min(self.num_pages or 1, page_no))
        self.current_page = target
        if self.on_page_change is not None:
            self.on_page_change(target)
        return self._draw(target)

    def next_page(self) -> bool:
        return self.goto(self.current_page + 1)

    def prev_page(self) -> bool:
        return self.goto(self.current_page - 1)
