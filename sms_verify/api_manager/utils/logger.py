from __future__ import annotations

import logging
import os
from typing import Any, Dict, Mapping, Optional


REDACTED_KEYS = frozenset(["secret", "secret_access_key", "signature", "authorization", "api_key"])
PHONE_KEYS = frozenset(["to", "phone", "phone_number"])


def get_logger(name: str = "sms_verify") -> logging.Logger:
    """Return a component logger (``sms_verify.sns``, ``sms_verify.voip.*``, ...).

    Configured once per name; the level comes from ``LOG_LEVEL``.
    """

    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    logger.setLevel(getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO))
    handler = logging.StreamHandler()
    handler.setFormatter(
        logging.Formatter(fmt="%(asctime)s %(levelname)s %(name)s %(message)s", datefmt="%Y-%m-%dT%H:%M:%S")
    )
    logger.addHandler(handler)
    logger.propagate = False
    return logger


def scrub(extra: Mapping[str, Any]) -> Dict[str, Any]:
    """Drop secrets from log context and reduce phone numbers to their last four digits."""
    cleaned: Dict[str, Any] = {}
    for key, value in extra.items():
        lowered = key.lower()
        if lowered in REDACTED_KEYS:
            cleaned[key] = "<redacted>"
        elif lowered in PHONE_KEYS and isinstance(value, str) and not value.startswith("***"):
            cleaned[key] = f"***{value[-4:]}" if value else "<empty>"
        else:
            cleaned[key] = value
    return cleaned


def log_event(
    logger: logging.Logger,
    level: int,
    message: str,
    extra: Optional[Dict[str, Any]] = None,
) -> None:
    """Log ``message`` with optional context appended as ``| extra={...}``.

    Context goes through ``scrub`` first.
    """

    if extra is None:
        logger.log(level, message)
    else:
        logger.log(level, f"{message} | extra={scrub(extra)}")
