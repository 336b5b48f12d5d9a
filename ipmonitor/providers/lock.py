"""
Lock de invocación sobre el documento de configuración.

Se usa flock sobre un archivo hermano (<config>.lock) y no sobre el propio
documento: la escritura atómica reemplaza el inode del documento.
El archivo de lock no se borra al salir.
"""

import fcntl
import os
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from ipmonitor.core.errors import ConfigError, LockError


POLL_INTERVAL = 0.1


def _holder_of(handle) -> str:
    handle.seek(0)
    return handle.read().strip()


@contextmanager
def config_lock(lock_path: Path, timeout: float = 0.0) -> Iterator[None]:
    """
    Toma un lock exclusivo para la duración del bloque

    Args:
        lock_path: Archivo de lock
        timeout: Segundos de espera; 0 intenta una sola vez

    Raises:
        LockError: Si otro proceso mantiene el lock al vencer el timeout
        ConfigError: Si el archivo de lock no se puede crear o abrir
    """
    try:
        handle = open(lock_path, "a+", encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"No se pudo abrir el archivo de lock {lock_path}: {e}") from e
    try:
        deadline = time.monotonic() + max(timeout, 0.0)
        while True:
            try:
                fcntl.flock(handle.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
                break
            except BlockingIOError:
                if time.monotonic() >= deadline:
                    holder = _holder_of(handle)
                    detail = f" (PID {holder})" if holder else ""
                    raise LockError(f"Ya hay una verificación en curso{detail}: {lock_path}")
                time.sleep(POLL_INTERVAL)

        handle.seek(0)
        handle.truncate()
        handle.write(f"{os.getpid()}\n")
        handle.flush()
        try:
            yield
        finally:
            fcntl.flock(handle.fileno(), fcntl.LOCK_UN)
    finally:
        handle.close()
