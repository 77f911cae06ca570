from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union

from docspan.search.hits import AnnotationHit, AttachmentNameHit, DocxBlockHit, MainDocFieldHit
from docspan.text.intervals import Range


@dataclass(frozen=True)
class OpenDocument:
    """
    Открыть основной документ: на абзаце, на поле или просто целиком.
    """

    archive_id: str
    block_id: str | None = None
    highlights: list[Range] = field(default_factory=list)
    field_name: str | None = None
    field_highlights: list[Range] = field(default_factory=list)


@dataclass(frozen=True)
class OpenAttachment:
    archive_id: str
    file_id: str
    highlights: list[Range] = field(default_factory=list)
    display_name: str | None = None


@dataclass(frozen=True)
class OpenAnnotation:
    """
    Открыть аннотацию; locator уже разобран, если бэкенд прислал корректный.
    """

    archive_id: str
    annotation_id: str
    locator: object | None = None


OpenRequest = Union[OpenDocument, OpenAttachment, OpenAnnotation]


def resolve_open(hit) -> OpenRequest:
    """
    Переводит клик по отрывку в запрос на открытие.

    Поле с найденным «лучшим абзацем» открывается как этот абзац: абзац
    стабильнее и информативнее, чем сырое значение поля.

    Parameters
    ----------
    hit : SearchHit
        Исходное совпадение отрывка

    Returns
    -------
    OpenRequest
        Что и где открыть
    """
    if isinstance(hit, DocxBlockHit):
        return OpenDocument(
            archive_id=hit.archive_id, block_id=hit.block_id, highlights=list(hit.highlights)
        )
    if isinstance(hit, MainDocFieldHit):
        if hit.best_block_id:
            return OpenDocument(
                archive_id=hit.archive_id,
                block_id=hit.best_block_id,
                highlights=list(hit.best_block_highlights or hit.highlights),
            )
        return OpenDocument(
            archive_id=hit.archive_id,
            field_name=hit.field_name,
            field_highlights=list(hit.highlights),
        )
    if isinstance(hit, AttachmentNameHit):
        return OpenAttachment(
            archive_id=hit.archive_id,
            file_id=hit.file_id,
            highlights=list(hit.highlights),
            display_name=hit.display_name,
        )
    if isinstance(hit, AnnotationHit):
        return OpenAnnotation(
            archive_id=hit.archive_id,
            annotation_id=hit.annotation_id,
            locator=hit.resolved_locator(),
        )
    raise TypeError(f"Неизвестный вид совпадения: {type(hit).__name__}")


def open_container(archive_id: str) -> OpenDocument:
    """
    Клик по заголовку карточки: основной документ без фокуса.
    """
    return OpenDocument(archive_id=archive_id)
