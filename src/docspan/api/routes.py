from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, HTTPException, Query, Request

from docspan.api.models import (
    AnnotationModel,
    CardModel,
    GridWindowResponse,
    HighlightRequest,
    HighlightResponse,
    SearchResponse,
    SegmentModel,
    SnippetModel,
)
from docspan.backend.contracts import ArchiveListRequest, BackendError, DocumentBackend
from docspan.grid.geometry import column_name, compute_window_origin, compute_window_size, fetch_window
from docspan.locators.describe import describe_locator
from docspan.locators.index import AttachmentView, PrimaryDocView, filter_by_current_target
from docspan.locators.models import locator_to_wire
from docspan.search.aggregate import build_cards
from docspan.search.hits import SearchRequest, build_filters
from docspan.search.navigation import OpenAnnotation, OpenAttachment, OpenDocument, resolve_open
from docspan.text.intervals import Range, highlight_segments

router = APIRouter()
logger = logging.getLogger(__name__)


def get_backend(request: Request) -> DocumentBackend:
    backend = getattr(request.app.state, "backend", None)
    if backend is None:
        raise HTTPException(status_code=503, detail="Бэкенд документов не настроен")
    return backend


def _segments(text: str, ranges: list[Range]) -> list[SegmentModel]:
    return [SegmentModel(text=s.text, is_highlighted=s.is_highlighted) for s in highlight_segments(text, ranges)]


def _ranges(ranges: list[Range]) -> list[dict[str, int]]:
    return [{"start": r.start, "end": r.end} for r in ranges]


def open_payload(req) -> dict[str, Any]:
    """
    Сериализует запрос на открытие для клиента.
    """
    if isinstance(req, OpenDocument):
        return {
            "kind": "document",
            "archive_id": req.archive_id,
            "block_id": req.block_id,
            "highlights": _ranges(req.highlights),
            "field_name": req.field_name,
            "field_highlights": _ranges(req.field_highlights),
        }
    if isinstance(req, OpenAttachment):
        return {
            "kind": "attachment",
            "archive_id": req.archive_id,
            "file_id": req.file_id,
            "highlights": _ranges(req.highlights),
            "display_name": req.display_name,
        }
    if isinstance(req, OpenAnnotation):
        return {
            "kind": "annotation",
            "archive_id": req.archive_id,
            "annotation_id": req.annotation_id,
            "target_kind": req.locator.target_kind if req.locator is not None else None,
            "locator": locator_to_wire(req.locator) if req.locator is not None else None,
        }
    raise TypeError(f"Неизвестный запрос открытия: {type(req).__name__}")


@router.post("/highlight", response_model=HighlightResponse)
def highlight(req: HighlightRequest) -> HighlightResponse:
    """
    Разбивает текст на подсвеченные и обычные сегменты.
    """
    ranges = [Range(r.start, r.end) for r in req.ranges]
    return HighlightResponse(segments=_segments(req.text, ranges))


@router.get("/search", response_model=SearchResponse)
def search(
    request: Request,
    query: str = Query(..., min_length=1),
    offset: int = Query(0, ge=0),
    limit: int = Query(60, gt=0, le=500),
    date_from: str | None = None,
    date_to: str | None = None,
    file_types: list[str] | None = Query(None),
    with_titles: bool = False,
) -> SearchResponse:
    """
    Одна страница поиска, сгруппированная в карточки архивов.

    Parameters
    ----------
    query : str
        Поисковый запрос
    offset, limit : int
        Страница выдачи бэкенда
    date_from, date_to : str | None
        Интервал дат YYYY-MM-DD
    file_types : list[str] | None
        Включённые типы файлов
    with_titles : bool
        Подтянуть заголовки архивов через list_archives

    Returns
    -------
    SearchResponse
        Карточки и признак продолжения
    """
    backend = get_backend(request)
    try:
        filters = build_filters(date_from, date_to, file_types)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    req = SearchRequest(query=query.strip(), filters=filters, limit=limit, offset=offset)
    try:
        page = backend.search_paged(req)
    except BackendError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc

    titles: dict[str, str] = {}
    if with_titles:
        try:
            for row in backend.list_archives(ArchiveListRequest()):
                titles[row.archive_id] = (row.title or "").strip() or row.original_name
        except BackendError as exc:
            logger.warning("Заголовки архивов недоступны: %s", exc)

    cards = [
        CardModel(
            archive_id=card.archive_id,
            title=titles.get(card.archive_id) or card.archive_id,
            total_hits=card.total_hits,
            counts={
                "docx_block": card.docx_hits,
                "main_doc_field": card.field_hits,
                "annotation": card.annotation_hits,
                "attachment_name": card.attachment_hits,
            },
            snippets=[
                SnippetModel(
                    tag=c.tag,
                    text=c.text,
                    segments=_segments(c.text, c.ranges),
                    open=open_payload(resolve_open(c.hit)),
                )
                for c in card.snippets
            ],
        )
        for card in build_cards(page.items)
    ]
    logger.info("Search: query='%s' offset=%s items=%s cards=%s", query, offset, len(page.items), len(cards))
    return SearchResponse(
        query=req.query,
        offset=offset,
        next_offset=offset + len(page.items),
        has_more=page.has_more,
        cards=cards,
    )


@router.get("/archives/{archive_id}/annotations", response_model=list[AnnotationModel])
def archive_annotations(
    archive_id: str,
    request: Request,
    scope: str = Query("all", pattern="^(all|current)$"),
    block_id: str | None = None,
    file_id: str | None = None,
    file_type: str = "other",
) -> list[AnnotationModel]:
    """
    Аннотации архива с подписями целей; scope=current фильтрует по открытому объекту.
    """
    backend = get_backend(request)
    try:
        items = backend.list_annotations(archive_id)
    except BackendError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc

    current = AttachmentView(file_id=file_id, file_type=file_type) if file_id else PrimaryDocView(block_id=block_id)
    return [
        AnnotationModel(
            annotation_id=a.annotation_id,
            target_kind=a.target_kind,
            target_ref=a.target_ref,
            label=describe_locator(a.locator),
            content=a.content,
            created_at=a.created_at,
            locator=locator_to_wire(a.locator),
        )
        for a in filter_by_current_target(items, current, scope)  # type: ignore[arg-type]
    ]


@router.get("/grid/window", response_model=GridWindowResponse)
def grid_window(
    rows: int = Query(..., ge=0),
    cols: int = Query(..., ge=0),
    scroll_left: float = Query(0.0, ge=0),
    scroll_top: float = Query(0.0, ge=0),
    width: float = Query(0.0, ge=0),
    height: float = Query(0.0, ge=0),
) -> GridWindowResponse:
    """
    Прямоугольник ячеек, который нужно запросить для данной прокрутки.
    """
    size = compute_window_size(width, height)
    origin = compute_window_origin(scroll_left, scroll_top, rows, cols)
    window = fetch_window(origin, size, rows, cols)
    return GridWindowResponse(
        rows=size.rows,
        cols=size.cols,
        row_start=window.row_start,
        row_end=window.row_end,
        col_start=window.col_start,
        col_end=window.col_end,
        first_column=column_name(window.col_start),
        last_column=column_name(max(window.col_start, window.col_end - 1)),
    )
