# src/wg_rotator/logging_setup.py
# Logs: handlers logging classiques, événements structurés via structlog.
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

import structlog


MASK = "***MASKED***"

# Les clés privées ne doivent jamais apparaître dans les logs
SENSITIVE_KEYS = ("private_key", "privatekey", "preshared_key", "presharedkey")


def mask_sensitive_data(logger, method_name, event_dict):
    for key in list(event_dict):
        if key.lower().replace("-", "_") in SENSITIVE_KEYS and event_dict[key]:
            event_dict[key] = MASK
    return event_dict


def setup_logging(log_level: str = "INFO", log_file: Optional[str] = None) -> None:
    """
    Console (stderr) et, si log_file est fourni, fichier avec rotation
    (5MB, 3 sauvegardes).
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    root_logger.addHandler(console_handler)

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=5 * 1024 * 1024,
            backupCount=3,
            encoding="utf-8",
        )
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(logging.Formatter(
            "%(asctime)s [%(levelname)-8s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        ))
        root_logger.addHandler(file_handler)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            mask_sensitive_data,
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )


def get_logger(name: str) -> structlog.BoundLogger:
    return structlog.get_logger(name)
