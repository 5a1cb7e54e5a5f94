"""Logging setup with key-value payloads."""

from __future__ import annotations

import logging

# Attributes every LogRecord carries; anything else came in through ``extra``.
_RESERVED = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None)).keys()
) | {"message", "asctime"}


class KeyValueFormatter(logging.Formatter):
    """Formatter that appends a record's ``extra`` payload as ``key=value`` pairs."""

    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)
        payload = {k: v for k, v in vars(record).items() if k not in _RESERVED}
        if not payload:
            return base
        pairs = " ".join(f"{k}={payload[k]!r}" for k in sorted(payload))
        return f"{base} | {pairs}"


def configure_logging(level: str | int = "INFO") -> None:
    """Install the key-value formatter on the ``cidgraph`` logger."""
    handler = logging.StreamHandler()
    handler.setFormatter(
        KeyValueFormatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
    )
    logger = logging.getLogger("cidgraph")
    logger.handlers.clear()
    logger.addHandler(handler)
    logger.setLevel(level.upper() if isinstance(level, str) else level)
    logger.propagate = False
