"""
Модель локаторов: типизированные адреса точки или диапазона внутри документа.

Бэкенд хранит локатор как свободный JSON рядом с ``target_kind`` из набора
``docx | pdf | media | excel``. На границе десериализации он превращается в
одну из пяти явных форм, различаемых полем ``target_kind``.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, computed_field, model_validator

from docspan.text.intervals import Range

TargetKind = Literal["primary_doc", "secondary_doc", "pdf", "spreadsheet", "media"]
TARGET_KINDS: tuple[str, ...] = ("primary_doc", "secondary_doc", "pdf", "spreadsheet", "media")

WIRE_KIND_BY_TARGET = {
    "primary_doc": "docx",
    "secondary_doc": "docx",
    "pdf": "pdf",
    "spreadsheet": "excel",
    "media": "media",
}
SECONDARY_DOCX_MARKER = "attachment"


def _range_or_none(start: int | None, end: int | None) -> Range | None:
    if start is None or end is None:
        return None
    r = Range(start, end)
    return r if r.is_valid else None


class _LocatorBase(BaseModel):
    # Незнакомые поля сохраняются: формат локатора расширяется только добавлением
    model_config = ConfigDict(extra="allow", frozen=True)


class PrimaryDocLocator(_LocatorBase):
    """
    Адрес внутри основного документа архива: абзац или структурное поле.

    Parameters
    ----------
    block_id : str | None
        Идентификатор абзаца
    start, end : int | None
        Диапазон внутри абзаца; без него адресуется весь абзац
    field_name : str | None
        Имя структурного поля (instruction_no, title, ...)
    field_start, field_end : int | None
        Диапазон внутри поля
    """

    target_kind: Literal["primary_doc"] = "primary_doc"
    block_id: str | None = None
    start: int | None = Field(default=None, ge=0)
    end: int | None = Field(default=None, ge=0)
    field_name: str | None = None
    field_start: int | None = Field(default=None, ge=0)
    field_end: int | None = Field(default=None, ge=0)

    @model_validator(mode="after")
    def _single_shape(self) -> PrimaryDocLocator:
        if self.block_id and self.field_name:
            raise ValueError("Локатор основного документа указывает и абзац, и поле")
        return self

    @property
    def block_range(self) -> Range | None:
        if not self.block_id:
            return None
        return _range_or_none(self.start, self.end)

    @property
    def field_range(self) -> Range | None:
        if not self.field_name:
            return None
        start = self.field_start if self.field_start is not None else self.start
        end = self.field_end if self.field_end is not None else self.end
        return _range_or_none(start, end)


class SecondaryDocLocator(_LocatorBase):
    """
    Адрес внутри вложенного docx: страница, абзац (с диапазоном) или изображение.
    """

    target_kind: Literal["secondary_doc"] = "secondary_doc"
    page: int | None = Field(default=None, ge=1)
    para_idx: int | None = Field(default=None, ge=0)
    start: int | None = Field(default=None, ge=0)
    end: int | None = Field(default=None, ge=0)
    image_index: int | None = Field(default=None, ge=0)

    @model_validator(mode="after")
    def _single_shape(self) -> SecondaryDocLocator:
        present = [v for v in (self.page, self.para_idx, self.image_index) if v is not None]
        if len(present) > 1:
            raise ValueError("Локатор вложенного документа указывает несколько целей сразу")
        return self

    @property
    def para_range(self) -> Range | None:
        if self.para_idx is None:
            return None
        return _range_or_none(self.start, self.end)


class PdfLocator(_LocatorBase):
    target_kind: Literal["pdf"] = "pdf"
    page: int | None = Field(default=None, ge=1)


class SpreadsheetLocator(_LocatorBase):
    """
    Адрес в таблице: строка или ячейка листа; без строки адресуется весь файл.
    """

    target_kind: Literal["spreadsheet"] = "spreadsheet"
    sheet_name: str = ""
    row: int | None = Field(default=None, ge=0)
    col: int | None = Field(default=None, ge=0)

    @model_validator(mode="after")
    def _col_needs_row(self) -> SpreadsheetLocator:
        if self.col is not None and self.row is None:
            raise ValueError("Колонка в локаторе таблицы задана без строки")
        return self

    @property
    def is_cell(self) -> bool:
        return self.row is not None and self.col is not None

    @property
    def is_row(self) -> bool:
        return self.row is not None and self.col is None


class MediaLocator(_LocatorBase):
    target_kind: Literal["media"] = "media"
    name_start: int | None = Field(default=None, ge=0)
    name_end: int | None = Field(default=None, ge=0)

    @property
    def name_range(self) -> Range | None:
        return _range_or_none(self.name_start, self.name_end)


Locator = Annotated[
    Union[PrimaryDocLocator, SecondaryDocLocator, PdfLocator, SpreadsheetLocator, MediaLocator],
    Field(discriminator="target_kind"),
]
LOCATOR_ADAPTER: TypeAdapter = TypeAdapter(Locator)


def logical_kind(
    wire_kind: str,
    locator: Mapping[str, Any] | None,
    *,
    archive_id: str,
    target_ref: str,
) -> str:
    """
    Переводит ``target_kind`` бэкенда в один из пяти логических видов.

    Parameters
    ----------
    wire_kind : str
        Значение бэкенда (docx/pdf/media/excel) или уже логический вид
    locator : Mapping[str, Any] | None
        Сырой локатор
    archive_id : str
        Архив, к которому относится цель
    target_ref : str
        Идентификатор документа/вложения внутри архива

    Returns
    -------
    str
        Логический вид цели
    """
    if wire_kind in TARGET_KINDS:
        return wire_kind
    if wire_kind == "docx":
        marker = (locator or {}).get("docx_kind")
        if marker == SECONDARY_DOCX_MARKER or (target_ref and target_ref != archive_id):
            return "secondary_doc"
        return "primary_doc"
    if wire_kind == "excel":
        return "spreadsheet"
    if wire_kind in ("pdf", "media"):
        return wire_kind
    raise ValueError(f"Неизвестный вид цели аннотации: {wire_kind!r}")


def locator_from_wire(
    wire_kind: str,
    raw: Mapping[str, Any] | None,
    *,
    archive_id: str,
    target_ref: str,
):
    """
    Валидирует сырой локатор бэкенда и возвращает его типизированную форму.
    """
    kind = logical_kind(wire_kind, raw, archive_id=archive_id, target_ref=target_ref)
    data = {k: v for k, v in dict(raw or {}).items() if k != "docx_kind"}
    data["target_kind"] = kind
    return LOCATOR_ADAPTER.validate_python(data)


def locator_to_wire(locator) -> dict[str, Any]:
    data = locator.model_dump(exclude_none=True, exclude={"target_kind"})
    if locator.target_kind == "secondary_doc":
        data["docx_kind"] = SECONDARY_DOCX_MARKER
    if locator.target_kind == "pdf":
        # null на странице означает уровень файла
        data["page"] = locator.page
    return data


class Annotation(BaseModel):
    """
    Аннотация, сохранённая бэкендом. Локально не изменяется, только
    создаётся, перечитывается и удаляется по идентификатору.
    """

    model_config = ConfigDict(frozen=True)

    annotation_id: str
    archive_id: str
    target_ref: str
    locator: Locator
    content: str = Field(min_length=1)
    created_at: int = 0

    @computed_field  # type: ignore[prop-decorator]
    @property
    def target_kind(self) -> str:
        return self.locator.target_kind


class AnnotationDraft(BaseModel):
    """
    Черновик аннотации: цель выбрана, текст ещё вводится.
    """

    model_config = ConfigDict(frozen=True)

    archive_id: str
    target_ref: str
    locator: Locator
    content: str = ""

    @property
    def target_kind(self) -> str:
        return self.locator.target_kind

    def with_archive(self, archive_id: str) -> AnnotationDraft:
        return self.model_copy(update={"archive_id": archive_id})

    def with_content(self, content: str) -> AnnotationDraft:
        return self.model_copy(update={"content": content})

    def to_wire(self) -> dict[str, Any]:
        return {
            "archive_id": self.archive_id,
            "target_kind": WIRE_KIND_BY_TARGET[self.target_kind],
            "target_ref": self.target_ref,
            "locator": locator_to_wire(self.locator),
            "content": self.content,
        }


def parse_annotation(raw: Mapping[str, Any]) -> Annotation:
    """
    Валидирует запись аннотации из ответа бэкенда.

    Parameters
    ----------
    raw : Mapping[str, Any]
        Запись с полями annotation_id, archive_id, target_kind, target_ref,
        locator, content, created_at

    Returns
    -------
    Annotation
        Аннотация с типизированным локатором
    """
    archive_id = str(raw.get("archive_id") or "")
    target_ref = str(raw.get("target_ref") or "")
    locator = locator_from_wire(
        str(raw.get("target_kind") or ""),
        raw.get("locator"),
        archive_id=archive_id,
        target_ref=target_ref,
    )
    return Annotation(
        annotation_id=str(raw.get("annotation_id") or ""),
        archive_id=archive_id,
        target_ref=target_ref,
        locator=locator,
        content=str(raw.get("content") or ""),
        created_at=int(raw.get("created_at") or 0),
    )
