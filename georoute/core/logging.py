"""Centralised logging configuration."""

from __future__ import annotations

import logging
import re
import sys
from contextvars import ContextVar
from typing import Iterable, Optional
from uuid import uuid4

REQUEST_ID_HEADERS: tuple[str, ...] = (
    "x-request-id",
    "x-trace-id",
)

_REQUEST_ID: ContextVar[str] = ContextVar("request_id", default="-")
_REQUEST_ID_PATTERN = re.compile(r"^[a-zA-Z0-9-]{8,64}$")


def ensure_request_id(headers: Optional[Iterable[tuple[str, str]]] = None) -> str:
    """Pick a request id from incoming headers or generate a fresh one."""

    if headers:
        for key, value in headers:
            if key.lower() in REQUEST_ID_HEADERS and value and _REQUEST_ID_PATTERN.match(value.strip()):
                return value.strip()
    return uuid4().hex


def set_request_id(request_id: str):  # noqa: ANN201 - ContextVar API
    return _REQUEST_ID.set(request_id)


def reset_request_id(token) -> None:  # noqa: ANN001 - ContextVar API
    if token is not None:
        _REQUEST_ID.reset(token)


def get_request_id() -> str:
    return _REQUEST_ID.get()


class RequestIdFilter(logging.Filter):
    """Injects the current request identifier into log records."""

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: D401 - inherited
        record.request_id = get_request_id()
        return True


def configure_logging(service_name: str, level: int | str = logging.INFO) -> logging.Logger:
    """Configure root logging with request correlation."""

    formatter = logging.Formatter(
        "%(asctime)s | %(levelname)s | %(name)s | request_id=%(request_id)s | %(message)s"
    )
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    handler.addFilter(RequestIdFilter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    return logging.getLogger(service_name)
