from __future__ import annotations

import logging

from PySide6.QtWidgets import QMessageBox

logger = logging.getLogger(__name__)

SAVE_FAILED_MESSAGE = "Не вдалося зберегти задачу."
STORE_FAILED_MESSAGE = "Не вдалося виконати операцію з базою даних."


def store_error_message(exc: Exception, fallback: str = SAVE_FAILED_MESSAGE) -> str:
    """Text of the driver error when there is one, otherwise ``fallback``."""
    orig = getattr(exc, "orig", None)
    message = str(orig or exc).strip()
    return message or fallback


def report_store_error(parent, action: str, exc: Exception, fallback: str = STORE_FAILED_MESSAGE) -> None:
    logger.error("%s failed", action, exc_info=exc)
    QMessageBox.critical(parent, "Помилка", store_error_message(exc, fallback))
