from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from docspan.text.intervals import Range

CROSS_UNIT_MESSAGE = "Выделение для аннотации должно находиться в пределах одного абзаца"
EMPTY_SELECTION_MESSAGE = "Выделение пустое"
OUT_OF_BOUNDS_MESSAGE = "Выделение выходит за границы текста"


class InvalidSelection(ValueError):
    """
    Выделение нельзя превратить в диапазон аннотации.
    """


@dataclass(frozen=True)
class SelectionPoint:
    """
    Точка выделения: отображаемая единица и смещение внутри её текста.

    Parameters
    ----------
    unit_id : str
        Идентификатор единицы (block_id, имя поля, индекс абзаца)
    offset : int
        Смещение в символах от начала текста единицы
    """

    unit_id: str
    offset: int


@dataclass(frozen=True)
class UnitSelection:
    unit_id: str
    range: Range

    def text(self, buffer: SelectionBuffer) -> str:
        return self.range.slice(buffer.text_of(self.unit_id))


class SelectionBuffer:
    """
    Адресуемые тексты отображаемых единиц (абзацев, полей, имён файлов).

    Выделение пользователя переводится в диапазон арифметикой над этими
    текстами, без обращения к слою отрисовки.
    """

    def __init__(self, units: Iterable[tuple[str, str]] = ()) -> None:
        self._texts: dict[str, str] = {}
        for unit_id, text in units:
            self.put(unit_id, text)

    def put(self, unit_id: str, text: str) -> None:
        self._texts[str(unit_id)] = text or ""

    def __contains__(self, unit_id: object) -> bool:
        return str(unit_id) in self._texts

    def __len__(self) -> int:
        return len(self._texts)

    def text_of(self, unit_id: str) -> str:
        try:
            return self._texts[str(unit_id)]
        except KeyError as exc:
            raise InvalidSelection(f"Неизвестная единица текста: {unit_id}") from exc

    def resolve(self, anchor: SelectionPoint, focus: SelectionPoint) -> UnitSelection:
        """
        Переводит пару точек выделения в диапазон внутри одной единицы.

        Parameters
        ----------
        anchor : SelectionPoint
            Начало выделения (в порядке, в котором его сделал пользователь)
        focus : SelectionPoint
            Конец выделения

        Returns
        -------
        UnitSelection
            Единица и нормализованный диапазон [start, end)

        Raises
        ------
        InvalidSelection
            Выделение пересекает границу единицы, пустое или выходит за текст
        """
        if str(anchor.unit_id) != str(focus.unit_id):
            raise InvalidSelection(CROSS_UNIT_MESSAGE)
        text = self.text_of(anchor.unit_id)
        start, end = sorted((anchor.offset, focus.offset))
        if start < 0 or end > len(text):
            raise InvalidSelection(OUT_OF_BOUNDS_MESSAGE)
        if end <= start:
            raise InvalidSelection(EMPTY_SELECTION_MESSAGE)
        return UnitSelection(unit_id=str(anchor.unit_id), range=Range(start, end))

    def locate(self, unit_id: str, selected_text: str, *, occurrence: int = 0) -> UnitSelection:
        """
        Находит выделенный фрагмент по тексту, когда известна только строка.

        Parameters
        ----------
        unit_id : str
            Единица, в которой сделано выделение
        selected_text : str
            Выделенная строка
        occurrence : int, optional
            Номер вхождения, если строка встречается несколько раз

        Returns
        -------
        UnitSelection
            Найденный диапазон
        """
        if not selected_text:
            raise InvalidSelection(EMPTY_SELECTION_MESSAGE)
        text = self.text_of(unit_id)
        pos = -1
        for _ in range(occurrence + 1):
            pos = text.find(selected_text, pos + 1)
            if pos < 0:
                raise InvalidSelection(OUT_OF_BOUNDS_MESSAGE)
        return UnitSelection(unit_id=str(unit_id), range=Range(pos, pos + len(selected_text)))
