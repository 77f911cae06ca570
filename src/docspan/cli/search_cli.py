from __future__ import annotations

import argparse
import logging
import sys

from docspan.backend.contracts import DocumentBackend
from docspan.backend.http import HttpBackend
from docspan.config import load_settings
from docspan.logging import setup_logging
from docspan.search.aggregate import ContainerCard
from docspan.search.hits import FILE_TYPE_KEYS, build_filters
from docspan.search.session import SearchSession
from docspan.text.intervals import highlight_segments

logger = logging.getLogger(__name__)

MARK_OPEN = "["
MARK_CLOSE = "]"


def mark_text(text: str, ranges) -> str:
    """
    Текст с подсветкой в квадратных скобках.
    """
    parts = []
    for seg in highlight_segments(text, ranges):
        parts.append(f"{MARK_OPEN}{seg.text}{MARK_CLOSE}" if seg.is_highlighted else seg.text)
    return "".join(parts).replace("\n", " ")


def format_card(rank: int, card: ContainerCard, title: str) -> str:
    """
    Карточка архива в несколько строк.

    Parameters
    ----------
    rank : int
        Порядковый номер карточки
    card : ContainerCard
        Карточка
    title : str
        Заголовок архива

    Returns
    -------
    str
        Текст для вывода
    """
    lines = [
        f"{rank:02d}. {title} archive_id={card.archive_id} hits={card.total_hits} "
        f"(абзацы={card.docx_hits}, поля={card.field_hits}, "
        f"аннотации={card.annotation_hits}, вложения={card.attachment_hits})"
    ]
    for c in card.snippets:
        lines.append(f"    [{c.tag}] {mark_text(c.text, c.ranges)}")
    return "\n".join(lines)


def run_search(args: argparse.Namespace, backend: DocumentBackend | None = None) -> int:
    """
    Запуск поиска по CLI аргументам.

    Parameters
    ----------
    args : argparse.Namespace
        Аргументы CLI
    backend : DocumentBackend | None
        Бэкенд; по умолчанию HTTP-клиент из настроек

    Returns
    -------
    int
        Код возврата процесса
    """
    setup_logging()
    settings = load_settings()
    if backend is None:
        url = args.backend_url or settings.backend_url
        backend = HttpBackend(url, timeout_s=settings.backend_timeout_s, max_retries=settings.backend_max_retries)

    try:
        filters = build_filters(args.date_from, args.date_to, args.file_type)
    except ValueError as e:
        print(f"Некорректный фильтр: {e}", file=sys.stderr)
        return 2
    session = SearchSession(backend, page_size=args.limit or settings.search_page_size)
    ok = session.search(args.query, filters)
    pages = 1
    while ok and session.has_more and pages < args.pages:
        ok = session.load_more()
        pages += 1
    if session.message:
        print(f"Ошибка поиска: {session.message}", file=sys.stderr)
        return 1
    if args.titles:
        session.refresh_archives()

    cards = session.cards()
    logger.info("Поиск завершён: query='%s', совпадений=%s, архивов=%s", args.query, len(session.items), len(cards))
    for rank, card in enumerate(cards, start=1):
        print(format_card(rank, card, session.title_for(card.archive_id)))
    if session.has_more:
        print(f"... есть ещё результаты (offset={session.offset})")
    return 0


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """
    Разбор аргументов CLI поиска.

    Returns
    -------
    argparse.Namespace
        Аргументы
    """
    parser = argparse.ArgumentParser(description="Поиск по архивам документов с группировкой по архивам.")
    parser.add_argument("--query", required=True, help="Поисковый запрос")
    parser.add_argument("--date-from", default=None, help="Дата архива с (YYYY-MM-DD)")
    parser.add_argument("--date-to", default=None, help="Дата архива по (YYYY-MM-DD)")
    parser.add_argument(
        "--file-type",
        action="append",
        choices=list(FILE_TYPE_KEYS),
        default=None,
        help="Тип файла (можно несколько раз); по умолчанию все",
    )
    parser.add_argument("--limit", type=int, default=None, help="Размер страницы выдачи")
    parser.add_argument("--pages", type=int, default=1, help="Сколько страниц загрузить")
    parser.add_argument("--titles", action="store_true", help="Показывать заголовки архивов")
    parser.add_argument("--backend-url", default=None, help="Адрес бэкенда документов")
    return parser.parse_args(argv)


def main() -> None:
    """
    CLI точка входа.
    """
    args = parse_args()
    sys.exit(run_search(args))


if __name__ == "__main__":
    main()
