from __future__ import annotations

from collections.abc import Callable, Hashable, Iterable
from dataclasses import dataclass
from typing import Literal, Union

from docspan.locators.models import Annotation

Scope = Literal["current", "all"]
KeyFn = Callable[[Annotation], Hashable | None]


@dataclass(frozen=True)
class PrimaryDocView:
    """
    Открыт основной документ; block_id задан, если в фокусе конкретный абзац.
    """

    block_id: str | None = None


@dataclass(frozen=True)
class AttachmentView:
    """
    Открыто вложение архива.

    Parameters
    ----------
    file_id : str
        Идентификатор вложения
    file_type : str
        Тип файла (pdf, excel, docx_other, image, ...)
    page : int | None
        Текущая страница, если вложение постраничное
    """

    file_id: str
    file_type: str
    page: int | None = None


CurrentTarget = Union[PrimaryDocView, AttachmentView]


def index_by_locator_key(
    annotations: Iterable[Annotation],
    target_kind: str,
    key_fn: KeyFn,
) -> dict[Hashable, list[str]]:
    """
    Группирует идентификаторы аннотаций по ключу локатора.

    Используется для отметок «у этого абзаца/страницы/ячейки N аннотаций».

    Parameters
    ----------
    annotations : Iterable[Annotation]
        Аннотации архива в порядке бэкенда
    target_kind : str
        Учитываются только аннотации этого вида
    key_fn : KeyFn
        Ключ для аннотации; None означает «не участвует»

    Returns
    -------
    dict[Hashable, list[str]]
        Ключ -> идентификаторы аннотаций в исходном порядке
    """
    index: dict[Hashable, list[str]] = {}
    for a in annotations:
        if a.target_kind != target_kind:
            continue
        key = key_fn(a)
        if key is None:
            continue
        index.setdefault(key, []).append(a.annotation_id)
    return index


def block_key(a: Annotation) -> str | None:
    return getattr(a.locator, "block_id", None) or None


def field_key(a: Annotation) -> str | None:
    return getattr(a.locator, "field_name", None) or None


def page_key(a: Annotation) -> int | None:
    return getattr(a.locator, "page", None)


def paragraph_key(a: Annotation) -> int | None:
    return getattr(a.locator, "para_idx", None)


def image_key(a: Annotation) -> int | None:
    return getattr(a.locator, "image_index", None)


def row_key(a: Annotation) -> int | None:
    row = getattr(a.locator, "row", None)
    if row is None or getattr(a.locator, "col", None) is not None:
        return None
    return row


def cell_key(a: Annotation) -> tuple[int, int] | None:
    row = getattr(a.locator, "row", None)
    col = getattr(a.locator, "col", None)
    if row is None or col is None:
        return None
    return (row, col)


def sheet_scoped(sheet_name: str, key_fn: KeyFn) -> KeyFn:
    """
    Ограничивает ключ таблицы одним листом.
    """

    def _key(a: Annotation) -> Hashable | None:
        if getattr(a.locator, "sheet_name", None) != sheet_name:
            return None
        return key_fn(a)

    return _key


def group_by_target_ref(annotations: Iterable[Annotation]) -> dict[str, list[Annotation]]:
    """
    Группирует аннотации вложений по идентификатору вложения.
    """
    out: dict[str, list[Annotation]] = {}
    for a in annotations:
        if a.target_kind == "primary_doc" or not a.target_ref:
            continue
        out.setdefault(a.target_ref, []).append(a)
    return out


def filter_by_current_target(
    annotations: Iterable[Annotation],
    current: CurrentTarget | None,
    scope: Scope = "current",
) -> list[Annotation]:
    """
    Аннотации, относящиеся к открытому объекту, на самом грубом совместимом уровне.

    Parameters
    ----------
    annotations : Iterable[Annotation]
        Аннотации архива
    current : CurrentTarget | None
        Открытый объект; None означает, что фильтровать не по чему
    scope : Scope
        "all" отключает фильтр

    Returns
    -------
    list[Annotation]
        Отфильтрованные аннотации в исходном порядке
    """
    items = list(annotations)
    if scope == "all" or current is None:
        return items
    if isinstance(current, PrimaryDocView):
        primary = [a for a in items if a.target_kind == "primary_doc"]
        if current.block_id:
            return [a for a in primary if getattr(a.locator, "block_id", None) == current.block_id]
        return primary
    # вложение: страница/строка не сужают выборку, важен только файл
    return [a for a in items if a.target_ref == current.file_id]
