from __future__ import annotations

import logging
from dataclasses import dataclass, field

from docspan.annotations.navigation import SecondaryDocFocus
from docspan.backend.contracts import BackendError, DocumentBackend, DocxAttachmentPreview
from docspan.locators.index import image_key, index_by_locator_key, page_key, paragraph_key
from docspan.locators.models import Annotation

logger = logging.getLogger(__name__)

PAGE_BREAK = "\f"


@dataclass(frozen=True)
class PageParagraph:
    para_idx: int
    text: str


@dataclass(frozen=True)
class TextPage:
    page: int
    paragraphs: list[PageParagraph] = field(default_factory=list)


def paginate_paragraphs(paragraphs: list[str]) -> list[TextPage]:
    """
    Псевдо-пагинация вложенного docx по символам разрыва страницы.

    Абзац может содержать \\f; каждая часть до разрыва остаётся на текущей
    странице, после разрыва начинается следующая. Пустые части пропускаются,
    страницы без абзацев отбрасываются, но нумерация их учитывает.

    Parameters
    ----------
    paragraphs : list[str]
        Абзацы документа

    Returns
    -------
    list[TextPage]
        Непустые страницы, нумерация с 1
    """
    out: list[TextPage] = []
    page = 1
    current: list[PageParagraph] = []
    for idx, para in enumerate(paragraphs):
        parts = (para or "").split(PAGE_BREAK)
        for j, part in enumerate(parts):
            if part.strip():
                current.append(PageParagraph(para_idx=idx, text=part))
            if j < len(parts) - 1:
                out.append(TextPage(page=page, paragraphs=current))
                page += 1
                current = []
    out.append(TextPage(page=page, paragraphs=current))
    return [p for p in out if p.paragraphs]


def focus_anchor(file_id: str, focus: SecondaryDocFocus | None) -> str | None:
    """
    Якорь, к которому прокручивается документ: страница, иначе абзац, иначе изображение.
    """
    if focus is None:
        return None
    if focus.page:
        return f"{file_id}-p-{focus.page}"
    if focus.para_idx is not None:
        return f"{file_id}-para-{focus.para_idx}"
    if focus.image_index is not None:
        return f"{file_id}-img-{focus.image_index}"
    return None


class SecondaryDocPreview:
    """
    Предпросмотр вложенного docx: страницы текста, изображения, отметки аннотаций.
    """

    def __init__(self, backend: DocumentBackend, file_id: str) -> None:
        self.backend = backend
        self.file_id = file_id
        self.preview: DocxAttachmentPreview | None = None
        self.pages: list[TextPage] = []
        self.message: str | None = None

    def load(self) -> bool:
        file_id = self.file_id
        try:
            preview = self.backend.get_docx_attachment_preview(file_id)
        except BackendError as exc:
            logger.warning("Не удалось загрузить вложение %s: %s", file_id, exc)
            if file_id == self.file_id:
                self.message = str(exc)
            return False
        if file_id != self.file_id:
            return False
        self.preview = preview
        self.pages = paginate_paragraphs(preview.paragraphs)
        self.message = None
        return True

    def switch_file(self, file_id: str) -> None:
        self.file_id = file_id
        self.preview = None
        self.pages = []
        self.message = None

    @property
    def image_paths(self) -> list[str]:
        return list(self.preview.image_paths) if self.preview is not None else []

    def markers(self, annotations: list[Annotation]) -> dict[str, dict]:
        """
        Отметки аннотаций по страницам, абзацам и изображениям этого файла.
        """
        own = [a for a in annotations if a.target_ref == self.file_id]
        return {
            "by_page": index_by_locator_key(own, "secondary_doc", page_key),
            "by_para": index_by_locator_key(own, "secondary_doc", paragraph_key),
            "by_image": index_by_locator_key(own, "secondary_doc", image_key),
        }
