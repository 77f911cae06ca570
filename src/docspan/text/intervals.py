from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass


@dataclass(frozen=True)
class Range:
    """
    Полуоткрытый диапазон символов [start, end) внутри конкретного текста.

    Parameters
    ----------
    start : int
        Начало (включительно)
    end : int
        Конец (исключительно)
    """

    start: int
    end: int

    @property
    def is_valid(self) -> bool:
        """
        Диапазон конечен, неотрицателен и не пуст.
        """
        return (
            _is_finite(self.start)
            and _is_finite(self.end)
            and self.start >= 0
            and self.end > self.start
        )

    @property
    def length(self) -> int:
        return max(0, self.end - self.start)

    def shift(self, delta: int) -> Range:
        return Range(self.start + delta, self.end + delta)

    def slice(self, text: str) -> str:
        return text[self.start : self.end]


@dataclass(frozen=True)
class Segment:
    """
    Кусок текста для отрисовки: подсвеченный или обычный.

    Parameters
    ----------
    text : str
        Текст сегмента
    is_highlighted : bool
        Попадает ли сегмент в подсветку
    """

    text: str
    is_highlighted: bool


def _is_finite(value) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def merge_ranges(ranges: Iterable[Range]) -> list[Range]:
    """
    Слияние пересекающихся и соприкасающихся диапазонов.

    Невалидные диапазоны (нечисловые границы или end <= start) отбрасываются,
    дробные границы усекаются до целых до слияния, остальные сортируются
    по (start, end) и склеиваются за один проход.

    Parameters
    ----------
    ranges : Iterable[Range]
        Исходные диапазоны в любом порядке

    Returns
    -------
    list[Range]
        Отсортированные непересекающиеся диапазоны
    """
    whole = (
        Range(int(r.start), int(r.end)) for r in ranges if _is_finite(r.start) and _is_finite(r.end)
    )
    valid = sorted((r for r in whole if r.end > r.start), key=lambda r: (r.start, r.end))
    if not valid:
        return []
    merged: list[Range] = [valid[0]]
    for current in valid[1:]:
        last = merged[-1]
        if current.start <= last.end:
            merged[-1] = Range(last.start, max(last.end, current.end))
        else:
            merged.append(current)
    return merged


def clamp_range(r: Range, length: int) -> Range:
    """
    Прижимает диапазон к границам текста [0, length].

    Parameters
    ----------
    r : Range
        Исходный диапазон
    length : int
        Длина текста

    Returns
    -------
    Range
        Диапазон в пределах текста; может оказаться пустым
    """
    start = max(0, min(length, r.start))
    end = max(0, min(length, r.end))
    return Range(int(start), int(end))


def highlight_segments(text: str, ranges: Iterable[Range]) -> list[Segment]:
    """
    Разбиение текста на чередующиеся подсвеченные и обычные сегменты.

    Parameters
    ----------
    text : str
        Исходный текст
    ranges : Iterable[Range]
        Диапазоны подсветки (могут пересекаться и выходить за текст)

    Returns
    -------
    list[Segment]
        Разбиение текста без пропусков и наложений; конкатенация даёт text
    """
    merged = merge_ranges(ranges)
    if not text or not merged:
        return [Segment(text=text, is_highlighted=False)]

    segments: list[Segment] = []
    pos = 0
    for r in merged:
        clamped = clamp_range(r, len(text))
        start = max(pos, clamped.start)
        end = clamped.end
        if end <= start:
            continue
        if start > pos:
            segments.append(Segment(text=text[pos:start], is_highlighted=False))
        segments.append(Segment(text=text[start:end], is_highlighted=True))
        pos = end
    if pos < len(text):
        segments.append(Segment(text=text[pos:], is_highlighted=False))
    if not segments:
        return [Segment(text=text, is_highlighted=False)]
    return segments
