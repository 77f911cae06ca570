from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class RangeModel(BaseModel):
    start: float
    end: float


class HighlightRequest(BaseModel):
    """
    Запрос на разбиение текста по подсветке.

    Parameters
    ----------
    text : str
        Исходный текст
    ranges : list[RangeModel]
        Диапазоны подсветки; некорректные отбрасываются
    """

    text: str = ""
    ranges: list[RangeModel] = Field(default_factory=list)


class SegmentModel(BaseModel):
    text: str
    is_highlighted: bool


class HighlightResponse(BaseModel):
    segments: list[SegmentModel]


class SnippetModel(BaseModel):
    """
    Отрывок карточки.

    Parameters
    ----------
    tag : str
        Метка вида (Фрагмент, Имя вложения, Аннотация)
    text : str
        Текст отрывка
    segments : list[SegmentModel]
        Текст, разбитый по подсветке
    open : dict[str, Any]
        Что открыть по клику
    """

    tag: str
    text: str
    segments: list[SegmentModel]
    open: dict[str, Any]


class CardModel(BaseModel):
    archive_id: str
    title: str
    total_hits: int
    counts: dict[str, int]
    snippets: list[SnippetModel]


class SearchResponse(BaseModel):
    query: str
    offset: int
    next_offset: int
    has_more: bool
    cards: list[CardModel]


class AnnotationModel(BaseModel):
    annotation_id: str
    target_kind: str
    target_ref: str
    label: str
    content: str
    created_at: int
    locator: dict[str, Any]


class GridWindowResponse(BaseModel):
    """
    Окно ячеек для прокрутки и размера области просмотра.
    """

    rows: int
    cols: int
    row_start: int
    row_end: int
    col_start: int
    col_end: int
    first_column: str
    last_column: str
