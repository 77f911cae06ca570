from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

DEFAULT_BACKEND_URL = "http://127.0.0.1:8765"
DEFAULT_TIMEOUT_S = 30.0
DEFAULT_MAX_RETRIES = 3
DEFAULT_SEARCH_PAGE_SIZE = 60


@dataclass(frozen=True)
class Settings:
    """
    Настройки docspan, собранные из переменных окружения.

    Parameters
    ----------
    backend_url : str
        Базовый URL бэкенда документов
    backend_timeout_s : float
        Таймаут одного запроса к бэкенду
    backend_max_retries : int
        Число попыток при 429/5xx
    search_page_size : int
        Размер страницы поиска
    """

    backend_url: str = DEFAULT_BACKEND_URL
    backend_timeout_s: float = DEFAULT_TIMEOUT_S
    backend_max_retries: int = DEFAULT_MAX_RETRIES
    search_page_size: int = DEFAULT_SEARCH_PAGE_SIZE


def _env_number(name: str, default: float, cast, *, minimum: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = cast(raw.strip())
    except ValueError as exc:
        raise ValueError(f"Некорректное значение {name}={raw!r}") from exc
    if value < minimum:
        raise ValueError(f"{name} должен быть >= {minimum}, получено {value}")
    return value


def load_settings(*, use_dotenv: bool = True) -> Settings:
    """
    Читает настройки из окружения (и из .env, если он есть).

    Parameters
    ----------
    use_dotenv : bool, optional
        Подгружать ли локальный .env перед чтением переменных

    Returns
    -------
    Settings
        Итоговые настройки
    """
    if use_dotenv:
        load_dotenv()
    url = (os.getenv("DOCSPAN_BACKEND_URL") or DEFAULT_BACKEND_URL).rstrip("/")
    return Settings(
        backend_url=url,
        backend_timeout_s=_env_number(
            "DOCSPAN_BACKEND_TIMEOUT_S", DEFAULT_TIMEOUT_S, float, minimum=0.1
        ),
        backend_max_retries=int(
            _env_number("DOCSPAN_BACKEND_MAX_RETRIES", DEFAULT_MAX_RETRIES, int, minimum=1)
        ),
        search_page_size=int(
            _env_number("DOCSPAN_SEARCH_PAGE_SIZE", DEFAULT_SEARCH_PAGE_SIZE, int, minimum=1)
        ),
    )
