from __future__ import annotations

import logging

from docspan.backend.contracts import ArchiveListItem, ArchiveListRequest, BackendError, DocumentBackend
from docspan.search.aggregate import ContainerCard, build_cards
from docspan.search.hits import SearchFilters, SearchRequest

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 60
ARCHIVE_LIST_LIMIT = 2000


class SearchSession:
    """
    Поиск с догрузкой страниц: каждая следующая страница дописывается к уже загруженным.

    Parameters
    ----------
    backend : DocumentBackend
        Бэкенд документов
    page_size : int
        Размер страницы выдачи
    """

    def __init__(self, backend: DocumentBackend, page_size: int = DEFAULT_PAGE_SIZE) -> None:
        self.backend = backend
        self.page_size = page_size
        self.query: str = ""
        self.filters: SearchFilters = SearchFilters()
        self.items: list = []
        self.offset = 0
        self.has_more = False
        self.message: str | None = None
        self.archives: dict[str, ArchiveListItem] = {}

    def reset(self) -> None:
        self.items = []
        self.offset = 0
        self.has_more = False
        self.message = None

    def search(self, query: str, filters: SearchFilters | None = None) -> bool:
        """
        Новый запрос: накопленная выдача сбрасывается до обращения к бэкенду.
        """
        self.query = query
        if filters is not None:
            self.filters = filters
        return self.run(reset=True)

    def load_more(self) -> bool:
        if not self.has_more:
            return False
        return self.run(reset=False)

    def run(self, reset: bool = False) -> bool:
        """
        Загружает следующую страницу (или первую при reset).

        Parameters
        ----------
        reset : bool
            Сбросить накопленную выдачу перед запросом

        Returns
        -------
        bool
            True, если страница получена
        """
        if reset:
            self.reset()
        q = self.query.strip()
        if not q:
            self.reset()
            return False
        req = SearchRequest(query=q, filters=self.filters, limit=self.page_size, offset=self.offset)
        try:
            page = self.backend.search_paged(req)
        except BackendError as exc:
            logger.warning("Поиск не выполнен: query=%r offset=%s error=%s", q, self.offset, exc)
            self.message = str(exc)
            return False
        self.items.extend(page.items)
        self.offset += len(page.items)
        self.has_more = page.has_more
        self.message = None
        logger.info("Поиск: query=%r получено=%d всего=%d has_more=%s", q, len(page.items), len(self.items), page.has_more)
        return True

    def cards(self) -> list[ContainerCard]:
        return build_cards(self.items)

    def refresh_archives(self) -> bool:
        """
        Перечитывает метаданные архивов для заголовков карточек; ошибка не мешает поиску.
        """
        try:
            rows = self.backend.list_archives(ArchiveListRequest(limit=ARCHIVE_LIST_LIMIT))
        except BackendError as exc:
            logger.warning("Не удалось загрузить список архивов: %s", exc)
            return False
        self.archives = {row.archive_id: row for row in rows}
        return True

    def title_for(self, archive_id: str) -> str:
        row = self.archives.get(archive_id)
        if row is None:
            return archive_id
        return (row.title or "").strip() or row.original_name or archive_id
