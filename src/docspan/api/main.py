from __future__ import annotations

from fastapi import FastAPI

from docspan.api.routes import router
from docspan.backend.contracts import DocumentBackend
from docspan.backend.http import HttpBackend
from docspan.config import load_settings
from docspan.logging import setup_logging


def create_app(backend: DocumentBackend | None = None, test_mode: bool = False) -> FastAPI:
    """
    Фабрика FastAPI приложения.

    Parameters
    ----------
    backend : DocumentBackend | None, optional
        Бэкенд документов; по умолчанию HTTP-клиент из настроек окружения
    test_mode : bool, optional
        Не создавать HTTP-клиент, если бэкенд не передан

    Returns
    -------
    FastAPI
        Инициализированное приложение с маршрутами
    """
    setup_logging()
    app = FastAPI(title="docspan")
    app.include_router(router)
    if backend is None and not test_mode:
        backend = HttpBackend.from_settings(load_settings())
    app.state.backend = backend
    if test_mode:
        app.state.test_mode = True
    return app
