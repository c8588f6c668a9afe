"""
Logging centralizado
- log_event: línea de auditoría por evento de negocio (pagos, estados, auth)
- get_logger: logger por módulo que comparte el mismo archivo rotativo
"""
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

import config

_ROOT_LOGGER_NAME = "getaway"
_LOG_FILE = Path(config.LOG_FILE)


def _configure_root_logger() -> logging.Logger:
    logger = logging.getLogger(_ROOT_LOGGER_NAME)
    if logger.handlers:
        return logger

    logger.setLevel(logging.INFO)
    logger.propagate = False

    try:
        handler = RotatingFileHandler(_LOG_FILE, maxBytes=1_000_000, backupCount=3, encoding="utf-8")
    except OSError:
        handler = logging.StreamHandler()

    handler.setFormatter(logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s"))
    logger.addHandler(handler)
    return logger


_root_logger = _configure_root_logger()
_audit_logger = _root_logger.getChild("audit")


def get_logger(module_name: str) -> logging.Logger:
    """Logger hijo de 'getaway' para un módulo (usar con __name__)"""
    return _root_logger.getChild(module_name)


def log_event(area: str, usuario: str, accion: str, detalle: str = "") -> None:
    message = f"{area.upper()} | Usuario: {usuario} | Accion: {accion}"
    if detalle:
        message += f" | Detalle: {detalle}"
    _audit_logger.info(message)
