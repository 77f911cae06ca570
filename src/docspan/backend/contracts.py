from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any, Protocol

from pydantic import BaseModel, Field, ValidationError

from docspan.locators.models import Annotation, AnnotationDraft, parse_annotation
from docspan.search.hits import SearchPageResponse, SearchRequest

logger = logging.getLogger(__name__)

# Подстроки ошибок бэкенда, означающие, что архива больше нет
ARCHIVE_MISSING_MARKERS: tuple[str, ...] = (
    "Query returned no rows",
    "找不到档案",
    "读取 archives 失败",
)


class BackendError(RuntimeError):
    """
    Ошибка вызова бэкенда документов; str(exc) показывается пользователю.
    """

    def __init__(self, message: str, *, command: str | None = None) -> None:
        super().__init__(message)
        self.command = command


def is_archive_missing(message: str) -> bool:
    """
    Признак ошибки «архив удалён или переимпортирован под новым ID».
    """
    return any(marker in (message or "") for marker in ARCHIVE_MISSING_MARKERS)


class ArchiveInfo(BaseModel):
    archive_id: str
    original_name: str = ""
    stored_path: str = ""
    zip_date: int = 0
    imported_at: int = 0
    status: str = ""
    error: str | None = None


class MainDoc(BaseModel):
    """
    Структурные поля основного документа архива.
    """

    instruction_no: str = ""
    title: str = ""
    issued_at: str = ""
    content: str = ""
    field_block_map_json: str = ""

    def field_text(self, field_name: str) -> str:
        value = getattr(self, field_name, None)
        return value if isinstance(value, str) else ""


class AttachmentInfo(BaseModel):
    file_id: str
    display_name: str = ""
    file_type: str = "other"
    source_depth: int = 0
    container_virtual_path: str | None = None
    virtual_path: str = ""
    cached_path: str | None = None


class ArchiveDetail(BaseModel):
    archive: ArchiveInfo
    main_doc: MainDoc | None = None
    attachments: list[AttachmentInfo] = Field(default_factory=list)
    annotations: list[dict[str, Any]] = Field(default_factory=list)

    def attachment(self, file_id: str) -> AttachmentInfo | None:
        for a in self.attachments:
            if a.file_id == file_id:
                return a
        return None

    def parsed_annotations(self) -> list[Annotation]:
        return parse_annotations(self.annotations)


class DocxBlock(BaseModel):
    block_id: str
    text: str = ""


class DocxAttachmentPreview(BaseModel):
    file_id: str
    paragraphs: list[str] = Field(default_factory=list)
    image_paths: list[str] = Field(default_factory=list)


class SheetInfo(BaseModel):
    name: str
    rows: int = Field(default=0, ge=0)
    cols: int = Field(default=0, ge=0)


class SheetInfoResponse(BaseModel):
    file_id: str = ""
    sheets: list[SheetInfo] = Field(default_factory=list)
    default_sheet: str | None = None

    def sheet(self, name: str) -> SheetInfo | None:
        for s in self.sheets:
            if s.name == name:
                return s
        return None


class CellsRequest(BaseModel):
    file_id: str
    sheet_name: str
    row_start: int = Field(ge=0)
    row_end: int = Field(ge=0)
    col_start: int = Field(ge=0)
    col_end: int = Field(ge=0)


class CellsResponse(BaseModel):
    row_start: int = 0
    col_start: int = 0
    cells: list[list[str]] = Field(default_factory=list)


class ArchiveListRequest(BaseModel):
    date_from: int | None = None
    date_to: int | None = None
    limit: int = 2000
    offset: int = 0


class ArchiveListItem(BaseModel):
    archive_id: str
    original_name: str = ""
    zip_date: int = 0
    imported_at: int = 0
    status: str = ""
    instruction_no: str | None = None
    title: str | None = None


class PreviewPath(BaseModel):
    file_id: str
    path: str


def parse_annotations(raws: Iterable[Mapping[str, Any]]) -> list[Annotation]:
    """
    Разбирает список аннотаций бэкенда, пропуская некорректные записи.

    Parameters
    ----------
    raws : Iterable[Mapping[str, Any]]
        Сырые записи

    Returns
    -------
    list[Annotation]
        Валидные аннотации в исходном порядке
    """
    out: list[Annotation] = []
    for raw in raws:
        try:
            out.append(parse_annotation(raw))
        except (ValueError, ValidationError) as exc:
            logger.warning(
                "Пропущена некорректная аннотация %s: %s", raw.get("annotation_id"), exc
            )
    return out


class DocumentBackend(Protocol):
    """
    Контракт бэкенда документов. Любая ошибка превращается в BackendError с сообщением.
    """

    def get_archive_detail(self, archive_id: str) -> ArchiveDetail: ...

    def get_docx_blocks(self, archive_id: str) -> list[DocxBlock]: ...

    def get_docx_attachment_preview(self, file_id: str) -> DocxAttachmentPreview: ...

    def get_excel_sheet_info(self, file_id: str) -> SheetInfoResponse: ...

    def get_excel_sheet_cells(self, req: CellsRequest) -> CellsResponse: ...

    def list_annotations(self, archive_id: str) -> list[Annotation]: ...

    def create_annotation(self, draft: AnnotationDraft) -> None: ...

    def delete_annotation(self, annotation_id: str) -> None: ...

    def search_paged(self, req: SearchRequest) -> SearchPageResponse: ...

    def list_archives(self, req: ArchiveListRequest) -> list[ArchiveListItem]: ...

    def get_attachment_preview_path(self, file_id: str) -> PreviewPath: ...
