from __future__ import annotations

import logging

from docspan.backend.contracts import BackendError, DocumentBackend
from docspan.locators.describe import describe_locator, draft_hint
from docspan.locators.index import CurrentTarget, Scope, filter_by_current_target
from docspan.locators.models import Annotation, AnnotationDraft

logger = logging.getLogger(__name__)

EMPTY_CONTENT_MESSAGE = "Текст аннотации не может быть пустым"
NO_TARGET_MESSAGE = "Сначала выберите цель аннотации"


class AnnotationPanel:
    """
    Список аннотаций архива и форма создания.

    Список всегда перечитывается с бэкенда после создания/удаления:
    локально аннотации не добавляются и не удаляются.

    Parameters
    ----------
    backend : DocumentBackend
        Бэкенд документов
    archive_id : str
        Архив, аннотации которого показываются
    scope : Scope
        "current" показывает аннотации открытого объекта, "all" все
    """

    def __init__(self, backend: DocumentBackend, archive_id: str, scope: Scope = "current") -> None:
        self.backend = backend
        self.archive_id = archive_id
        self.scope: Scope = scope
        self.items: list[Annotation] = []
        self.message: str | None = None
        self.text: str = ""
        self.draft: AnnotationDraft | None = None
        self._generation = 0

    @property
    def generation(self) -> int:
        return self._generation

    def switch_archive(self, archive_id: str) -> None:
        """
        Переключает панель на другой архив; незавершённые ответы старого архива отбрасываются.
        """
        if archive_id == self.archive_id:
            return
        self._generation += 1
        self.archive_id = archive_id
        self.items = []
        self.message = None
        self.draft = None
        self.text = ""

    def set_draft(self, draft: AnnotationDraft | None) -> None:
        self.draft = draft.with_archive(self.archive_id) if draft is not None else None

    @property
    def hint(self) -> str:
        return draft_hint(self.draft)

    def begin_refresh(self) -> tuple[int, str]:
        return self._generation, self.archive_id

    def complete_refresh(self, ticket: tuple[int, str], items: list[Annotation]) -> bool:
        """
        Применяет список аннотаций, если архив не сменился с момента запроса.

        Returns
        -------
        bool
            True, если ответ применён
        """
        if ticket != (self._generation, self.archive_id):
            logger.debug("Отброшен устаревший список аннотаций архива %s", ticket[1])
            return False
        self.items = list(items)
        return True

    def refresh(self) -> bool:
        ticket = self.begin_refresh()
        try:
            items = self.backend.list_annotations(ticket[1])
        except BackendError as exc:
            logger.warning("Не удалось загрузить аннотации %s: %s", ticket[1], exc)
            if ticket == self.begin_refresh():
                self.message = str(exc)
            return False
        return self.complete_refresh(ticket, items)

    def create(self) -> bool:
        """
        Создаёт аннотацию из текущего черновика и текста.

        При ошибке текст и черновик сохраняются для повторной попытки.

        Returns
        -------
        bool
            True, если бэкенд подтвердил создание
        """
        if self.draft is None:
            self.message = NO_TARGET_MESSAGE
            return False
        content = self.text.strip()
        if not content:
            self.message = EMPTY_CONTENT_MESSAGE
            return False
        draft = self.draft.with_archive(self.archive_id).with_content(content)
        try:
            self.backend.create_annotation(draft)
        except BackendError as exc:
            logger.warning("Не удалось создать аннотацию: %s", exc)
            self.message = str(exc)
            return False
        self.text = ""
        self.message = None
        self.refresh()
        return True

    def delete(self, annotation_id: str) -> bool:
        try:
            self.backend.delete_annotation(annotation_id)
        except BackendError as exc:
            logger.warning("Не удалось удалить аннотацию %s: %s", annotation_id, exc)
            self.message = str(exc)
            return False
        self.message = None
        self.refresh()
        return True

    def visible(self, current: CurrentTarget | None) -> list[Annotation]:
        return filter_by_current_target(self.items, current, self.scope)

    def labels(self, current: CurrentTarget | None) -> list[tuple[str, str]]:
        """
        Пары (annotation_id, подпись цели) для отображения списка.
        """
        return [(a.annotation_id, describe_locator(a.locator)) for a in self.visible(current)]
