from __future__ import annotations

import logging
from collections.abc import Callable

from docspan.annotations.navigation import DocumentFocus, FieldFocus, ViewFocus, focus_for_annotation
from docspan.backend.contracts import (
    ArchiveDetail,
    BackendError,
    DocumentBackend,
    DocxBlock,
    is_archive_missing,
)
from docspan.locators.index import block_key, field_key, group_by_target_ref, index_by_locator_key
from docspan.locators.models import Annotation
from docspan.search.navigation import OpenDocument
from docspan.text.intervals import Range, Segment, highlight_segments, merge_ranges
from docspan.text.selection import SelectionBuffer

logger = logging.getLogger(__name__)

ARCHIVE_GONE_MESSAGE = "Архив больше не существует (удалён или переимпортирован под новым ID), возврат к поиску."
MAIN_DOC_FIELDS: tuple[str, ...] = ("instruction_no", "title", "issued_at", "content")


class ArchiveDetailView:
    """
    Карточка архива: основной документ по абзацам, поля, вложения и аннотации.

    Parameters
    ----------
    backend : DocumentBackend
        Бэкенд документов
    archive_id : str
        Открываемый архив
    on_gone : Callable[[], None] | None
        Вызывается, когда архива больше нет и нужно вернуться к поиску
    """

    def __init__(
        self,
        backend: DocumentBackend,
        archive_id: str,
        on_gone: Callable[[], None] | None = None,
    ) -> None:
        self.backend = backend
        self.archive_id = archive_id
        self.on_gone = on_gone
        self.detail: ArchiveDetail | None = None
        self.blocks: list[DocxBlock] = []
        self.annotations: list[Annotation] = []
        self.message: str | None = None
        self.gone = False
        self.open_request: OpenDocument | None = None
        self.focus: ViewFocus | None = None

    def switch_archive(self, archive_id: str) -> None:
        self.archive_id = archive_id
        self.detail = None
        self.blocks = []
        self.annotations = []
        self.message = None
        self.gone = False
        self.open_request = None
        self.focus = None

    def load(self) -> bool:
        """
        Загружает данные архива и абзацы основного документа.

        Ошибка «архива нет» не фатальна: ставится gone и вызывается on_gone.
        Ответы для архива, который успели сменить, отбрасываются.

        Returns
        -------
        bool
            True, если данные архива загружены
        """
        archive_id = self.archive_id
        self.message = None
        try:
            detail = self.backend.get_archive_detail(archive_id)
        except BackendError as exc:
            if archive_id != self.archive_id:
                return False
            text = str(exc)
            if is_archive_missing(text):
                logger.info("Архив %s больше не существует", archive_id)
                self.gone = True
                self.message = ARCHIVE_GONE_MESSAGE
                if self.on_gone is not None:
                    self.on_gone()
                return False
            logger.warning("Не удалось загрузить архив %s: %s", archive_id, text)
            self.message = text
            return False
        if archive_id != self.archive_id:
            return False
        self.detail = detail
        self.annotations = detail.parsed_annotations()
        try:
            blocks = self.backend.get_docx_blocks(archive_id)
        except BackendError as exc:
            logger.warning("Не удалось загрузить абзацы %s: %s", archive_id, exc)
            if archive_id == self.archive_id:
                self.message = str(exc)
            return True
        if archive_id == self.archive_id:
            self.blocks = list(blocks)
        return True

    def set_annotations(self, annotations: list[Annotation]) -> None:
        self.annotations = list(annotations)

    def open(self, request: OpenDocument) -> None:
        self.open_request = request
        self.focus = None

    def focus_annotation(self, annotation: Annotation) -> ViewFocus:
        self.focus = focus_for_annotation(annotation, self.detail)
        return self.focus

    def block_text(self, block_id: str) -> str:
        for b in self.blocks:
            if b.block_id == block_id:
                return b.text
        return ""

    def highlights_by_block(self) -> dict[str, list[Range]]:
        out: dict[str, list[Range]] = {}
        req = self.open_request
        if req is not None and req.block_id and req.highlights:
            out.setdefault(req.block_id, []).extend(req.highlights)
        if isinstance(self.focus, DocumentFocus) and self.focus.block_id and self.focus.ranges:
            out.setdefault(self.focus.block_id, []).extend(self.focus.ranges)
        return {k: merge_ranges(v) for k, v in out.items()}

    def highlights_by_field(self) -> dict[str, list[Range]]:
        out: dict[str, list[Range]] = {}
        req = self.open_request
        if req is not None and req.field_name and req.field_highlights:
            out.setdefault(req.field_name, []).extend(req.field_highlights)
        if isinstance(self.focus, FieldFocus) and self.focus.ranges:
            out.setdefault(self.focus.field_name, []).extend(self.focus.ranges)
        return {k: merge_ranges(v) for k, v in out.items()}

    def block_segments(self, block_id: str) -> list[Segment]:
        return highlight_segments(self.block_text(block_id), self.highlights_by_block().get(block_id, []))

    def field_segments(self, field_name: str) -> list[Segment]:
        main = self.detail.main_doc if self.detail is not None else None
        text = main.field_text(field_name) if main is not None else ""
        return highlight_segments(text, self.highlights_by_field().get(field_name, []))

    def block_buffer(self) -> SelectionBuffer:
        return SelectionBuffer((b.block_id, b.text) for b in self.blocks)

    def field_buffer(self) -> SelectionBuffer:
        main = self.detail.main_doc if self.detail is not None else None
        if main is None:
            return SelectionBuffer()
        return SelectionBuffer((name, main.field_text(name)) for name in MAIN_DOC_FIELDS)

    def block_markers(self) -> dict[str, list[str]]:
        return index_by_locator_key(self.annotations, "primary_doc", block_key)

    def field_markers(self) -> dict[str, list[str]]:
        return index_by_locator_key(self.annotations, "primary_doc", field_key)

    def attachment_counts(self) -> dict[str, int]:
        return {ref: len(items) for ref, items in group_by_target_ref(self.annotations).items()}
