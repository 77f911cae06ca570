from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta, timezone
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from docspan.locators.models import locator_from_wire
from docspan.text.intervals import Range

logger = logging.getLogger(__name__)

# Даты архивов задаются в местном времени бэкенда
ARCHIVE_TZ = timezone(timedelta(hours=8))
FILE_TYPE_KEYS: tuple[str, ...] = (
    "docx_main",
    "annotation",
    "pdf",
    "excel",
    "image",
    "video",
    "docx_other",
    "other",
    "zip_child",
)


class _HitBase(BaseModel):
    model_config = ConfigDict(extra="allow", frozen=True)

    archive_id: str
    highlights: list[Range] = Field(default_factory=list)


class DocxBlockHit(_HitBase):
    """
    Совпадение в абзаце основного документа.
    """

    kind: Literal["docx_block"] = "docx_block"
    block_id: str
    block_text: str = ""

    @property
    def source_text(self) -> str:
        return self.block_text


class MainDocFieldHit(_HitBase):
    """
    Совпадение в структурном поле основного документа.

    Parameters
    ----------
    field_name : str
        Имя поля
    source_text : str
        Текст поля
    best_block_id : str | None
        Абзац, лучше всего повторяющий совпадение, если бэкенд его нашёл
    best_block_highlights : list[Range] | None
        Диапазоны совпадения внутри этого абзаца
    """

    kind: Literal["main_doc_field"] = "main_doc_field"
    field_name: str
    source_text: str = ""
    best_block_id: str | None = None
    best_block_highlights: list[Range] | None = None


class AttachmentNameHit(_HitBase):
    kind: Literal["attachment_name"] = "attachment_name"
    file_id: str
    display_name: str = ""

    @property
    def source_text(self) -> str:
        return self.display_name


class AnnotationHit(_HitBase):
    """
    Совпадение в тексте аннотации; локатор хранится в формате бэкенда.
    """

    kind: Literal["annotation"] = "annotation"
    annotation_id: str
    target_kind: str = ""
    target_ref: str = ""
    locator: dict[str, Any] | None = None
    content: str = ""

    @property
    def source_text(self) -> str:
        return self.content

    def resolved_locator(self):
        """
        Типизированный локатор аннотации или None, если бэкенд прислал мусор.
        """
        try:
            return locator_from_wire(
                self.target_kind,
                self.locator,
                archive_id=self.archive_id,
                target_ref=self.target_ref,
            )
        except (ValueError, ValidationError) as exc:
            logger.warning("Локатор аннотации %s не распознан: %s", self.annotation_id, exc)
            return None


SearchHit = Annotated[
    Union[DocxBlockHit, MainDocFieldHit, AttachmentNameHit, AnnotationHit],
    Field(discriminator="kind"),
]
SEARCH_HIT_ADAPTER: TypeAdapter = TypeAdapter(SearchHit)


class SearchFilters(BaseModel):
    """
    Фильтры поиска: интервал дат архива (epoch-секунды) и типы файлов.
    """

    date_from: int | None = None
    date_to: int | None = None
    file_types: list[str] | None = None


class SearchRequest(BaseModel):
    query: str
    filters: SearchFilters = Field(default_factory=SearchFilters)
    limit: int = Field(default=60, gt=0)
    offset: int = Field(default=0, ge=0)


class SearchPageResponse(BaseModel):
    items: list[SearchHit] = Field(default_factory=list)
    has_more: bool = False
    offset: int = 0
    limit: int = 0


def _parse_day(day: str) -> date:
    return datetime.strptime(day.strip(), "%Y-%m-%d").date()


def day_start_ts(day: str | None) -> int | None:
    """
    Начало дня YYYY-MM-DD (UTC+08:00) в epoch-секундах; пустая строка -> None.
    """
    if not day or not day.strip():
        return None
    return int(datetime.combine(_parse_day(day), time(0, 0, 0), tzinfo=ARCHIVE_TZ).timestamp())


def day_end_ts(day: str | None) -> int | None:
    """
    Последняя секунда дня YYYY-MM-DD (UTC+08:00) в epoch-секундах.
    """
    if not day or not day.strip():
        return None
    return int(datetime.combine(_parse_day(day), time(23, 59, 59), tzinfo=ARCHIVE_TZ).timestamp())


def build_filters(
    date_from: str | None = None,
    date_to: str | None = None,
    file_types: list[str] | None = None,
) -> SearchFilters:
    """
    Собирает фильтры из пользовательского ввода.

    Parameters
    ----------
    date_from, date_to : str | None
        Даты в формате YYYY-MM-DD
    file_types : list[str] | None
        Включённые типы файлов; None означает все

    Returns
    -------
    SearchFilters
        Фильтры для запроса к бэкенду
    """
    if file_types is None:
        types = list(FILE_TYPE_KEYS)
    else:
        unknown = [t for t in file_types if t not in FILE_TYPE_KEYS]
        if unknown:
            raise ValueError(f"Неизвестные типы файлов: {', '.join(unknown)}")
        types = [t for t in FILE_TYPE_KEYS if t in file_types]
    return SearchFilters(
        date_from=day_start_ts(date_from),
        date_to=day_end_ts(date_to),
        file_types=types,
    )
