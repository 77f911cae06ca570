from __future__ import annotations

import argparse
import logging

import uvicorn

from docspan.api.main import create_app
from docspan.logging import setup_logging

logger = logging.getLogger(__name__)


def main() -> None:
    """
    Точка входа для запуска FastAPI сервера поверх бэкенда документов.
    """
    parser = argparse.ArgumentParser(description="HTTP-фасад docspan")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    args = parser.parse_args()

    setup_logging()
    logger.info("Запуск FastAPI сервера на %s:%s", args.host, args.port)
    uvicorn.run(create_app(), host=args.host, port=args.port)


if __name__ == "__main__":
    main()
