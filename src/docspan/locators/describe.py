from __future__ import annotations

from docspan.locators.models import (
    AnnotationDraft,
    MediaLocator,
    PdfLocator,
    PrimaryDocLocator,
    SecondaryDocLocator,
    SpreadsheetLocator,
)

NO_DRAFT_HINT = "Цель не выбрана"
HINT_PREFIX = "Цель: "


def _fmt_range(r) -> str:
    return f"[{r.start},{r.end})"


def _describe_primary(loc: PrimaryDocLocator) -> str:
    field_range = loc.field_range
    if loc.field_name and field_range is not None:
        return f"Поле {loc.field_name} {_fmt_range(field_range)}"
    if loc.field_name:
        return f"Поле {loc.field_name}"
    block_range = loc.block_range
    if loc.block_id and block_range is not None:
        return f"Абзац {loc.block_id} {_fmt_range(block_range)}"
    if loc.block_id:
        return f"Абзац {loc.block_id}"
    return "Основной документ"


def _describe_secondary(loc: SecondaryDocLocator) -> str:
    if loc.page is not None:
        return f"Вложенный документ, стр. {loc.page}"
    if loc.image_index is not None:
        return f"Вложенный документ, изображение #{loc.image_index + 1}"
    if loc.para_idx is not None:
        para_range = loc.para_range
        if para_range is not None:
            return f"Вложенный документ, абзац #{loc.para_idx + 1} {_fmt_range(para_range)}"
        return f"Вложенный документ, абзац #{loc.para_idx + 1}"
    return "Вложенный документ (весь файл)"


def _describe_pdf(loc: PdfLocator) -> str:
    if loc.page is None:
        return "PDF (весь файл)"
    return f"PDF, стр. {loc.page}"


def _describe_spreadsheet(loc: SpreadsheetLocator) -> str:
    if loc.sheet_name and loc.is_cell:
        return f"Таблица {loc.sheet_name} R{loc.row + 1}C{loc.col + 1}"
    if loc.sheet_name and loc.row is not None:
        return f"Таблица {loc.sheet_name}, строка {loc.row + 1}"
    return "Таблица (весь файл)"


def _describe_media(loc: MediaLocator) -> str:
    name_range = loc.name_range
    if name_range is not None:
        return f"Фрагмент имени файла {_fmt_range(name_range)}"
    return "Вложение (весь файл)"


_DESCRIBERS = {
    "primary_doc": _describe_primary,
    "secondary_doc": _describe_secondary,
    "pdf": _describe_pdf,
    "spreadsheet": _describe_spreadsheet,
    "media": _describe_media,
}


def describe_locator(locator) -> str:
    """
    Человекочитаемое описание цели локатора.

    Функция тотальна: для любой комбинации полей возвращает непустую строку,
    откатываясь к самому грубому уровню (весь файл), если точнее нельзя.

    Parameters
    ----------
    locator : Locator
        Любая из пяти форм локатора

    Returns
    -------
    str
        Описание цели, например ``"Таблица Лист1 R3C2"``
    """
    describer = _DESCRIBERS.get(getattr(locator, "target_kind", ""))
    if describer is None:
        return "Неизвестная цель"
    return describer(locator)


def draft_hint(draft: AnnotationDraft | None) -> str:
    """
    Подсказка над полем ввода: к чему будет привязана новая аннотация.
    """
    if draft is None:
        return NO_DRAFT_HINT
    return HINT_PREFIX + describe_locator(draft.locator)
