from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass, field

from docspan.text.intervals import Range

ELLIPSIS = "…"
DEFAULT_BEFORE = 20
DEFAULT_AFTER = 60
ANNOTATION_BEFORE = 10
ANNOTATION_AFTER = 80
DEDUPE_MAX_CHARS = 160

FIELD_PRIORITY = {
    "instruction_no": 0,
    "title": 1,
    "content": 2,
    "issued_at": 3,
}
UNKNOWN_FIELD_PRIORITY = 9

_WHITESPACE_RE = re.compile(r"\s+")
_PUNCT_RE = re.compile(r"[，。！？；：、“”‘’（）()【】\[\]<>《》\-—_.,!?:;'\"`~]")
# Подписи структурных полей, которыми бэкенд предваряет их значения
_FIELD_LABEL_RE = re.compile(r"指令编号|指令号|编号|指令标题|标题|下发时间|发文时间|指令内容")
_TRAILING_DIGITS_RE = re.compile(r"(\d+)$")


@dataclass(frozen=True)
class Snippet:
    """
    Ограниченный отрывок текста вокруг совпадения.

    Parameters
    ----------
    text : str
        Текст отрывка (с многоточиями по краям, если он обрезан)
    ranges : list[Range]
        Диапазоны подсветки в координатах отрывка
    """

    text: str
    ranges: list[Range] = field(default_factory=list)


def make_snippet(
    text: str,
    ranges: Sequence[Range],
    before: int = DEFAULT_BEFORE,
    after: int = DEFAULT_AFTER,
) -> Snippet:
    """
    Вырезает окно текста вокруг первого совпадения и пересчитывает диапазоны.

    Parameters
    ----------
    text : str
        Исходный текст
    ranges : Sequence[Range]
        Диапазоны совпадений относительно text
    before : int
        Сколько символов оставить до начала первого совпадения
    after : int
        Сколько символов оставить после его конца

    Returns
    -------
    Snippet
        Отрывок и диапазоны подсветки в его координатах
    """
    if not text:
        return Snippet(text="", ranges=[])
    valid = [r for r in ranges if r.end > r.start]
    if not valid:
        limit = before + after
        if len(text) > limit:
            return Snippet(text=text[:limit] + ELLIPSIS, ranges=[])
        return Snippet(text=text, ranges=[])

    first = min(valid, key=lambda r: (r.start, r.end))
    start = max(0, first.start - before)
    end = min(len(text), first.end + after)
    snippet = text[start:end]
    shift = -start
    if start > 0:
        snippet = ELLIPSIS + snippet
        shift += 1
    # подсветка не заходит на многоточия
    lo = shift + start
    hi = len(snippet)
    if end < len(text):
        snippet = snippet + ELLIPSIS

    remapped: list[Range] = []
    for r in valid:
        moved = r.shift(shift)
        clipped = Range(max(lo, moved.start), min(hi, moved.end))
        if clipped.end > clipped.start:
            remapped.append(clipped)
    return Snippet(text=snippet, ranges=remapped)


def normalize_for_dedupe(text: str) -> str:
    """
    Нормализованная форма отрывка для сравнения дубликатов.

    Удаляются пробелы, распространённая пунктуация и подписи структурных полей,
    результат обрезается до DEDUPE_MAX_CHARS.
    """
    out = _WHITESPACE_RE.sub("", text or "")
    out = _PUNCT_RE.sub("", out)
    out = out.replace(ELLIPSIS, "")
    out = _FIELD_LABEL_RE.sub("", out)
    return out[:DEDUPE_MAX_CHARS]


def block_order(block_id: str | None) -> float:
    """
    Порядковый номер абзаца по числовому суффиксу block_id; без суффикса идут в конец.
    """
    m = _TRAILING_DIGITS_RE.search(block_id or "")
    if not m:
        return float("inf")
    return float(int(m.group(1)))


def field_rank(field_name: str) -> int:
    return FIELD_PRIORITY.get(field_name, UNKNOWN_FIELD_PRIORITY)
