"""
ConfigStore sobre un documento estilo .env (ip_monitor.conf).

Lectura y escritura se apoyan en el parser de python-dotenv: el documento se
interpreta como KEY="valor" y nunca se ejecuta. Las actualizaciones reescriben
solo la asignación afectada y vuelcan el documento completo de forma atómica
(archivo temporal en el mismo directorio + rename).
"""

import io
import os
import re
import shutil
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterator, Mapping, Optional

from dotenv import dotenv_values
from dotenv.parser import parse_stream

from ipmonitor.core.errors import ConfigError
from ipmonitor.providers.lock import config_lock


_ASSIGNMENT = r"(?P<head>\s*(?:export[ \t]+)?{key}[ \t]*=[ \t]*)(?P<quote>[\"']?)"


def _escape(value: str, quote: str) -> str:
    """Escapa el valor para el tipo de comillas usado en la línea."""
    escaped = value.replace("\\", "\\\\")
    return escaped.replace(quote, "\\" + quote)


def _rewrite_assignment(original: str, key: str, value: str) -> str:
    """
    Reescribe una asignación conservando prefijo, espacios previos y comillas

    Una asignación sin comillas pasa a usar comillas dobles.
    """
    match = re.match(_ASSIGNMENT.format(key=re.escape(key)), original)
    if not match:
        raise ConfigError(f"No se reconoce la asignación de {key}: {original.strip()!r}")

    quote = match.group("quote") or '"'
    if original.endswith("\r\n"):
        eol = "\r\n"
    elif original.endswith("\n") or original.endswith("\r"):
        eol = original[-1]
    else:
        eol = ""
    return f"{match.group('head')}{quote}{_escape(value, quote)}{quote}{eol}"


class DotenvConfigStore:
    """Documento de configuración en disco con lock de invocación"""

    def __init__(self, path: Path, lock_timeout: float = 0.0):
        """
        Args:
            path: Ruta a ip_monitor.conf
            lock_timeout: Segundos de espera por el lock (0 = no bloqueante)
        """
        self.path = Path(path)
        self.lock_path = self.path.with_name(self.path.name + ".lock")
        self.lock_timeout = lock_timeout

    def exists(self) -> bool:
        return self.path.is_file()

    def read(self) -> Dict[str, Optional[str]]:
        """
        Lee todos los campos del documento

        Returns:
            Dict campo -> valor (None para claves sin '=')

        Raises:
            ConfigError: Si el archivo no existe o no se puede leer
        """
        if not self.exists():
            raise ConfigError(f"Archivo de configuración no encontrado: {self.path}")
        try:
            # Sin interpolación: un '$' en SMTP_PASSWORD se conserva literal
            return dict(dotenv_values(self.path, interpolate=False, encoding="utf-8"))
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigError(f"No se pudo leer {self.path}: {e}") from e

    def get(self, name: str) -> Optional[str]:
        return self.read().get(name)

    def set_field(self, name: str, value: str) -> None:
        self.set_fields({name: value})

    def set_fields(self, values: Mapping[str, str]) -> None:
        """
        Actualiza uno o varios campos en una sola escritura

        Cada campo debe existir ya en el documento; el resto del contenido
        (comentarios, orden, otros campos) se conserva byte a byte.

        Raises:
            ConfigError: Si algún campo no existe en el documento
            OSError: Si el documento no se puede leer o escribir
        """
        if not self.exists():
            raise ConfigError(f"Archivo de configuración no encontrado: {self.path}")

        with open(self.path, "r", encoding="utf-8", newline="") as handle:
            content = handle.read()

        pending = set(values)
        chunks = []
        for binding in parse_stream(io.StringIO(content)):
            chunk = binding.original.string
            if not binding.error and binding.key in values:
                chunk = _rewrite_assignment(chunk, binding.key, values[binding.key])
                pending.discard(binding.key)
            chunks.append(chunk)

        if pending:
            missing = ", ".join(sorted(pending))
            raise ConfigError(f"Campo(s) no encontrado(s) en {self.path}: {missing}")

        self._write_atomic("".join(chunks))

    def _write_atomic(self, content: str) -> None:
        target = self.path.resolve()
        fd, tmp_name = tempfile.mkstemp(prefix=f".{target.name}.", suffix=".tmp", dir=target.parent)
        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "w", encoding="utf-8", newline="") as handle:
                handle.write(content)
                handle.flush()
                os.fsync(handle.fileno())
            # Conservar permisos del original (el documento contiene SMTP_PASSWORD)
            shutil.copymode(target, tmp_path)
            os.replace(tmp_path, target)
        except BaseException:
            tmp_path.unlink(missing_ok=True)
            raise

    @contextmanager
    def lock(self) -> Iterator[None]:
        with config_lock(self.lock_path, timeout=self.lock_timeout):
            yield
