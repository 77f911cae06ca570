"""
Адаптер постраничной отрисовки PDF поверх pdfplumber.

Даёт минимальный интерфейс, нужный рендерерам: число страниц, страница по
номеру, viewport для масштаба и отрисовка страницы в поверхность.
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

PDF_POINTS_PER_INCH = 72


class PageLibraryUnavailable(RuntimeError):
    """
    Библиотека отрисовки страниц не установлена; повторять бессмысленно.
    """


def _pdfplumber():
    try:
        import pdfplumber  # type: ignore
    except ImportError as e:
        raise PageLibraryUnavailable("Для отображения PDF требуется pdfplumber") from e
    return pdfplumber


@dataclass(frozen=True)
class Viewport:
    width: float
    height: float
    scale: float


@dataclass
class ImageSurface:
    """
    Поверхность, в которую рисуется страница (PIL-изображение после отрисовки).
    """

    page_no: int
    image: Any = None

    @property
    def size(self) -> tuple[int, int]:
        if self.image is None:
            return (0, 0)
        return self.image.size


class PdfPage:
    def __init__(self, page: Any, page_no: int) -> None:
        self._page = page
        self.page_no = page_no

    def get_viewport(self, scale: float = 1.0) -> Viewport:
        return Viewport(
            width=float(self._page.width) * scale,
            height=float(self._page.height) * scale,
            scale=scale,
        )

    def render(self, surface: ImageSurface, viewport: Viewport) -> ImageSurface:
        resolution = max(1, int(round(PDF_POINTS_PER_INCH * viewport.scale)))
        surface.image = self._page.to_image(resolution=resolution).original
        return surface


class PdfDocument:
    """
    Открытый PDF. Страницы нумеруются с 1.
    """

    def __init__(self, pdf: Any) -> None:
        self._pdf = pdf

    @property
    def num_pages(self) -> int:
        return len(self._pdf.pages)

    def get_page(self, page_no: int) -> PdfPage:
        if page_no < 1 or page_no > self.num_pages:
            raise ValueError(f"Страница {page_no} вне диапазона 1..{self.num_pages}")
        return PdfPage(self._pdf.pages[page_no - 1], page_no)

    def close(self) -> None:
        self._pdf.close()

    def __enter__(self) -> PdfDocument:
        return self

    def __exit__(self, *exc) -> None:
        self.close()


def open_document(data: bytes) -> PdfDocument:
    """
    Открывает PDF из байтов.

    Raises
    ------
    PageLibraryUnavailable
        pdfplumber не установлен
    """
    pdfplumber = _pdfplumber()
    doc = PdfDocument(pdfplumber.open(io.BytesIO(data)))
    logger.debug("PDF открыт: %d стр.", doc.num_pages)
    return doc


def fit_scale(page_height: float, max_height: float) -> float:
    """
    Масштаб миниатюры: не крупнее 1.0 и не выше max_height.
    """
    if page_height <= 0:
        return 1.0
    return min(1.0, max_height / page_height)
