"""
Configuración de logging de la CLI.

- Consola: RichHandler sobre stdout (hora + nivel) en una terminal; fuera de ella
  (cron, redirección) una línea plana por registro con el mismo formato que el archivo.
- Archivo (LOG_FILE): líneas "[fecha] [NIVEL] mensaje", rotación por tamaño a <archivo>.1
  conservando una sola generación.
"""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

from ipmonitor.core.models import DEFAULT_LOG_MAX_SIZE


LOGGER_NAME = "ipmonitor"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
FILE_FORMAT = "[%(asctime)s] [%(levelname)s] %(message)s"


class AnnouncingRotatingFileHandler(RotatingFileHandler):
    """RotatingFileHandler que deja constancia de la rotación en el archivo nuevo."""

    def doRollover(self):
        super().doRollover()
        record = logging.LogRecord(
            LOGGER_NAME, logging.INFO, __file__, 0,
            "Log rotado (superó %d bytes)", (self.maxBytes,), None,
        )
        if self.stream is None:
            self.stream = self._open()
        self.stream.write(self.format(record) + self.terminator)
        self.flush()


def setup_logging(
    log_file: Optional[str] = None,
    max_bytes: int = DEFAULT_LOG_MAX_SIZE,
    console: Optional[Console] = None,
    level: int = logging.INFO,
) -> logging.Logger:
    """
    Configura el logger raíz de ipmonitor (idempotente)

    Args:
        log_file: Ruta del log en disco (LOG_FILE); None solo consola
        max_bytes: Tamaño a partir del cual se rota (LOG_MAX_SIZE)
        console: Console de Rich para salida (por defecto, stdout)
        level: Nivel mínimo

    Returns:
        Logger "ipmonitor"
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console = console or Console()
    if console.is_terminal:
        console_handler = RichHandler(
            console=console,
            show_path=False,
            markup=False,
            log_time_format=f"[{DATE_FORMAT}]",
        )
    else:
        # cron o redirección: una línea por registro, sin ajustar al ancho de la consola
        console_handler = logging.StreamHandler(console.file)
        console_handler.setFormatter(logging.Formatter(FILE_FORMAT, DATE_FORMAT))
    logger.addHandler(console_handler)

    if log_file:
        path = Path(log_file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = AnnouncingRotatingFileHandler(
            path,
            maxBytes=max(max_bytes, 0),
            backupCount=1,
            encoding="utf-8",
        )
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT, DATE_FORMAT))
        logger.addHandler(file_handler)

    return logger


def logging_options(values) -> tuple:
    """
    Extrae (LOG_FILE, LOG_MAX_SIZE) del documento sin exigir que sea válido

    Se usa antes de la validación para que los errores también queden en el log.
    """
    log_file = (values.get("LOG_FILE") or "").strip() or None
    raw_size = (values.get("LOG_MAX_SIZE") or "").strip()
    max_bytes = int(raw_size) if raw_size.isdigit() else DEFAULT_LOG_MAX_SIZE
    return log_file, max_bytes
