from __future__ import annotations

import logging
import logging.config
import secrets
from typing import Any

from flask import Flask, request


def configure_logging(app: Flask) -> None:
    level = str(app.config.get("LOG_LEVEL") or "INFO").upper()
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "plain": {"format": "%(asctime)s %(levelname)s %(name)s: %(message)s"},
            },
            "handlers": {
                "console": {"class": "logging.StreamHandler", "formatter": "plain"},
            },
            "loggers": {
                "lostlink": {"handlers": ["console"], "level": level, "propagate": True},
            },
        }
    )


class RequestLogger(logging.LoggerAdapter):
    """Appends the bound context to each message as key=value pairs."""

    def process(self, msg: Any, kwargs: Any):
        extra = self.extra or {}
        if extra:
            ctx = " ".join(f"{k}={v}" for k, v in extra.items())
            msg = f"{msg} [{ctx}]"
        return msg, kwargs

    def bind(self, **fields: Any) -> "RequestLogger":
        return RequestLogger(self.logger, {**(self.extra or {}), **fields})


def request_logger(operation: str) -> RequestLogger:
    """Logger for one HTTP request; pass it down to every component the request builds."""
    req_id = request.headers.get("X-Request-Id") or secrets.token_hex(6)
    return RequestLogger(logging.getLogger("lostlink.requests"), {"op": operation, "req": req_id})
