"""Entrypoint: python -m direct_chat"""
from __future__ import annotations

import logging

import uvicorn

from direct_chat.api.middleware.correlation_id import CorrelationIdFilter
from direct_chat.config import settings


def main() -> None:
    handler = logging.StreamHandler()
    handler.addFilter(CorrelationIdFilter())
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s [%(correlation_id)s]: %(message)s",
        handlers=[handler],
    )
    uvicorn.run(
        "direct_chat.app:create_app",
        factory=True,
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
