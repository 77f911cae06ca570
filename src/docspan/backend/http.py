from __future__ import annotations

import logging
import random
import time
from typing import Any

import requests
from pydantic import ValidationError

from docspan.backend.contracts import (
    ArchiveDetail,
    ArchiveListItem,
    ArchiveListRequest,
    BackendError,
    CellsRequest,
    CellsResponse,
    DocxAttachmentPreview,
    DocxBlock,
    PreviewPath,
    SheetInfoResponse,
    parse_annotations,
)
from docspan.config import Settings
from docspan.locators.models import Annotation, AnnotationDraft
from docspan.search.hits import SearchPageResponse, SearchRequest

logger = logging.getLogger(__name__)

RETRY_STATUSES = {429, 500, 502, 503, 504}


class HttpBackend:
    """
    Клиент бэкенда документов поверх HTTP с ретраями.

    Каждая команда бэкенда: POST на ``{base_url}/invoke/{command}`` с JSON
    аргументами; ошибка приходит как не-200 ответ с полем ``error``.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout_s: float = 30.0,
        max_retries: int = 3,
        backoff_base: float = 0.5,
        session: requests.Session | None = None,
    ) -> None:
        if not base_url:
            raise ValueError("Не задан адрес бэкенда документов (DOCSPAN_BACKEND_URL)")
        self.base_url = base_url.rstrip("/")
        self.timeout_s = timeout_s
        self.max_retries = max(1, max_retries)
        self.backoff_base = backoff_base
        self._session = session or requests.Session()

    @classmethod
    def from_settings(cls, settings: Settings) -> HttpBackend:
        return cls(
            settings.backend_url,
            timeout_s=settings.backend_timeout_s,
            max_retries=settings.backend_max_retries,
        )

    def _post(self, url: str, json: dict, timeout: float):
        return self._session.post(url, json=json, timeout=timeout)

    def invoke(self, command: str, args: dict[str, Any] | None = None) -> Any:
        """
        Вызов команды бэкенда.

        Parameters
        ----------
        command : str
            Имя команды (get_archive_detail, search_paged, ...)
        args : dict[str, Any] | None
            Аргументы команды

        Returns
        -------
        Any
            Разобранный JSON ответа (None для пустого тела)

        Raises
        ------
        BackendError
            Сетевая ошибка, неретраибельный статус или исчерпаны попытки
        """
        url = f"{self.base_url}/invoke/{command}"
        payload = args or {}
        for attempt in range(1, self.max_retries + 1):
            try:
                resp = self._post(url, json=payload, timeout=self.timeout_s)
            except requests.RequestException as exc:
                logger.warning("Бэкенд недоступен: command=%s error=%s", command, exc)
                raise BackendError(f"Бэкенд недоступен: {exc}", command=command) from exc

            if resp.status_code == 200:
                if not getattr(resp, "content", b"x"):
                    return None
                try:
                    return resp.json()
                except ValueError as exc:
                    raise BackendError(f"Ответ {command} не является JSON", command=command) from exc
            if resp.status_code in RETRY_STATUSES and attempt < self.max_retries:
                wait = self.backoff_base * (2 ** (attempt - 1))
                wait = wait * (1 + random.random() * 0.1)
                logger.warning(
                    "Backend retry %s/%s command=%s status=%s wait=%.2fs",
                    attempt,
                    self.max_retries,
                    command,
                    resp.status_code,
                    wait,
                )
                time.sleep(wait)
                continue
            message = _error_message(resp)
            logger.warning("Ошибка бэкенда: command=%s status=%s %s", command, resp.status_code, message)
            raise BackendError(message, command=command)
        raise BackendError(f"Не удалось выполнить команду {command}", command=command)

    def _typed(self, model, command: str, args: dict[str, Any] | None = None):
        data = self.invoke(command, args)
        try:
            return model.model_validate(data)
        except ValidationError as exc:
            raise BackendError(f"Некорректный ответ {command}: {exc}", command=command) from exc

    def _typed_list(self, model, command: str, args: dict[str, Any] | None = None):
        data = self.invoke(command, args) or []
        try:
            return [model.model_validate(item) for item in data]
        except ValidationError as exc:
            raise BackendError(f"Некорректный ответ {command}: {exc}", command=command) from exc

    def get_archive_detail(self, archive_id: str) -> ArchiveDetail:
        return self._typed(ArchiveDetail, "get_archive_detail", {"archiveId": archive_id})

    def get_docx_blocks(self, archive_id: str) -> list[DocxBlock]:
        return self._typed_list(DocxBlock, "get_docx_blocks", {"archiveId": archive_id})

    def get_docx_attachment_preview(self, file_id: str) -> DocxAttachmentPreview:
        return self._typed(DocxAttachmentPreview, "get_docx_attachment_preview", {"fileId": file_id})

    def get_excel_sheet_info(self, file_id: str) -> SheetInfoResponse:
        return self._typed(SheetInfoResponse, "get_excel_sheet_info", {"fileId": file_id})

    def get_excel_sheet_cells(self, req: CellsRequest) -> CellsResponse:
        return self._typed(CellsResponse, "get_excel_sheet_cells", {"req": req.model_dump()})

    def list_annotations(self, archive_id: str) -> list[Annotation]:
        data = self.invoke("list_annotations", {"archiveId": archive_id}) or []
        return parse_annotations(data)

    def create_annotation(self, draft: AnnotationDraft) -> None:
        self.invoke("create_annotation", {"req": draft.to_wire()})

    def delete_annotation(self, annotation_id: str) -> None:
        self.invoke("delete_annotation", {"annotationId": annotation_id})

    def search_paged(self, req: SearchRequest) -> SearchPageResponse:
        return self._typed(SearchPageResponse, "search_paged", {"req": req.model_dump()})

    def list_archives(self, req: ArchiveListRequest) -> list[ArchiveListItem]:
        return self._typed_list(ArchiveListItem, "list_archives", {"req": req.model_dump()})

    def get_attachment_preview_path(self, file_id: str) -> PreviewPath:
        return self._typed(PreviewPath, "get_attachment_preview_path", {"fileId": file_id})


def _error_message(resp) -> str:
    try:
        data = resp.json()
    except ValueError:
        return getattr(resp, "text", "") or f"status={resp.status_code}"
    if isinstance(data, dict):
        err = data.get("error")
        if isinstance(err, dict):
            return str(err.get("message") or err)
        if err:
            return str(err)
    return f"status={resp.status_code}"
