"""
Переходы между аннотациями и видами документа.

focus_for_annotation: аннотация -> что открыть и что выделить.
draft_for_view: текущее состояние просмотра -> черновик новой аннотации.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Union

from docspan.backend.contracts import ArchiveDetail
from docspan.locators.models import (
    Annotation,
    AnnotationDraft,
    MediaLocator,
    PdfLocator,
    PrimaryDocLocator,
    SecondaryDocLocator,
    SpreadsheetLocator,
)
from docspan.text.intervals import Range
from docspan.text.selection import UnitSelection


@dataclass(frozen=True)
class DocumentFocus:
    block_id: str | None = None
    ranges: list[Range] = field(default_factory=list)


@dataclass(frozen=True)
class FieldFocus:
    field_name: str
    ranges: list[Range] = field(default_factory=list)


@dataclass(frozen=True)
class SecondaryDocFocus:
    file_id: str
    page: int | None = None
    para_idx: int | None = None
    image_index: int | None = None
    ranges: list[Range] = field(default_factory=list)


@dataclass(frozen=True)
class PdfFocus:
    file_id: str
    page: int | None = None


@dataclass(frozen=True)
class AttachmentNameFocus:
    file_id: str
    ranges: list[Range] = field(default_factory=list)


@dataclass(frozen=True)
class SheetFocus:
    file_id: str
    sheet_name: str
    row: int | None = None
    col: int | None = None


ViewFocus = Union[DocumentFocus, FieldFocus, SecondaryDocFocus, PdfFocus, AttachmentNameFocus, SheetFocus]


def _whole(text: str) -> list[Range]:
    return [Range(0, len(text))] if text else []


def focus_for_annotation(annotation: Annotation, detail: ArchiveDetail | None = None) -> ViewFocus:
    """
    Переводит аннотацию в фокус просмотра.

    Поле без диапазона выделяется целиком; имя вложения без диапазона тоже.
    Для этого нужен detail: без него выделение остаётся пустым.

    Parameters
    ----------
    annotation : Annotation
        Аннотация из списка
    detail : ArchiveDetail | None
        Загруженные данные архива (значения полей, имена вложений)

    Returns
    -------
    ViewFocus
        Фокус для открытия
    """
    loc = annotation.locator
    ref = annotation.target_ref
    if isinstance(loc, PrimaryDocLocator):
        if loc.field_name:
            r = loc.field_range
            if r is not None:
                return FieldFocus(field_name=loc.field_name, ranges=[r])
            text = detail.main_doc.field_text(loc.field_name) if detail and detail.main_doc else ""
            return FieldFocus(field_name=loc.field_name, ranges=_whole(text))
        r = loc.block_range
        return DocumentFocus(block_id=loc.block_id, ranges=[r] if r is not None else [])
    if isinstance(loc, SecondaryDocLocator):
        r = loc.para_range
        return SecondaryDocFocus(
            file_id=ref,
            page=loc.page,
            para_idx=loc.para_idx,
            image_index=loc.image_index,
            ranges=[r] if r is not None else [],
        )
    if isinstance(loc, PdfLocator):
        return PdfFocus(file_id=ref, page=loc.page)
    if isinstance(loc, SpreadsheetLocator):
        return SheetFocus(file_id=ref, sheet_name=loc.sheet_name, row=loc.row, col=loc.col)
    if isinstance(loc, MediaLocator):
        r = loc.name_range
        if r is not None:
            return AttachmentNameFocus(file_id=ref, ranges=[r])
        att = detail.attachment(ref) if detail else None
        return AttachmentNameFocus(file_id=ref, ranges=_whole(att.display_name if att else ""))
    raise TypeError(f"Неизвестный локатор: {type(loc).__name__}")


def draft_for_view(
    archive_id: str,
    *,
    selection: UnitSelection | None = None,
    selection_kind: Literal["block", "field"] = "block",
    attachment_id: str | None = None,
    attachment_type: str | None = None,
    pdf_page: int | None = None,
) -> AnnotationDraft | None:
    """
    Черновик аннотации по умолчанию для текущего вида.

    Выделение в основном документе важнее выбранного вложения. Вложение
    даёт черновик уровня файла (для PDF: текущей страницы).

    Parameters
    ----------
    archive_id : str
        Открытый архив
    selection : UnitSelection | None
        Выделение в абзаце или поле основного документа
    selection_kind : {"block", "field"}
        Что адресует selection.unit_id
    attachment_id, attachment_type : str | None
        Выбранное вложение и его тип
    pdf_page : int | None
        Текущая страница PDF

    Returns
    -------
    AnnotationDraft | None
        Черновик или None, если цели нет
    """
    if selection is not None:
        r = selection.range
        if selection_kind == "field":
            loc = PrimaryDocLocator(field_name=selection.unit_id, field_start=r.start, field_end=r.end)
        else:
            loc = PrimaryDocLocator(block_id=selection.unit_id, start=r.start, end=r.end)
        return AnnotationDraft(archive_id=archive_id, target_ref=archive_id, locator=loc)
    if not attachment_id:
        return None
    if attachment_type == "pdf":
        loc = PdfLocator(page=pdf_page if pdf_page and pdf_page >= 1 else None)
    elif attachment_type == "docx_other":
        loc = SecondaryDocLocator()
    else:
        loc = MediaLocator()
    return AnnotationDraft(archive_id=archive_id, target_ref=attachment_id, locator=loc)
