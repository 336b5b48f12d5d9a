"""
Envío del aviso por SMTP usando msmtp

Por cada envío se genera una configuración temporal de msmtp a partir de las
credenciales (modo 600, contiene la contraseña) y se elimina al terminar,
tanto si el envío funciona como si falla. No se necesita ~/.msmtprc.
"""

import os
import shutil
import subprocess
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Tuple

from ipmonitor.core.models import OutgoingMessage, SmtpCredentials


MSMTP_ACCOUNT = "ip_monitor"
SEND_TIMEOUT = 60


def _quote(value: str) -> str:
    """Entrecomilla un argumento para el formato de configuración de msmtp."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def render_msmtprc(credentials: SmtpCredentials, from_address: str, log_file: Optional[str] = None) -> str:
    """
    Genera el contenido de la configuración temporal de msmtp

    Args:
        credentials: Credenciales SMTP del ciclo
        from_address: Remitente de sobre (EMAIL_FROM)
        log_file: MSMTP_LOG_FILE opcional

    Returns:
        Texto de configuración con una única cuenta por defecto
    """
    lines = [
        "# Configuración temporal de msmtp generada por ipmonitor - no editar",
        "defaults",
        "auth           on",
        f"tls            {credentials.tls}",
        f"tls_trust_file {_quote(credentials.trust_file)}",
    ]
    if log_file:
        lines.append(f"logfile        {_quote(log_file)}")
    lines += [
        "",
        f"account        {MSMTP_ACCOUNT}",
        f"host           {credentials.host}",
        f"port           {credentials.port}",
        f"from           {from_address}",
        f"user           {_quote(credentials.username)}",
        f"password       {_quote(credentials.secret.get_secret_value())}",
        "",
        f"account default : {MSMTP_ACCOUNT}",
    ]
    return "\n".join(lines) + "\n"


@contextmanager
def scoped_msmtprc(content: str, directory: Optional[Path] = None) -> Iterator[Path]:
    """
    Archivo de configuración con credenciales que vive solo dentro del bloque

    Se crea con permisos 600 y se borra en cualquier salida del bloque.
    """
    fd, name = tempfile.mkstemp(prefix="msmtprc.", dir=directory)
    path = Path(name)
    try:
        os.fchmod(fd, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(content)
        yield path
    finally:
        path.unlink(missing_ok=True)


class MsmtpMailSender:
    """Transporte SMTP delegado en el binario msmtp"""

    def __init__(
        self,
        binary: str = "msmtp",
        log_file: Optional[str] = None,
        timeout: int = SEND_TIMEOUT,
        tmp_dir: Optional[Path] = None,
    ):
        """
        Args:
            binary: Nombre o ruta del ejecutable msmtp
            log_file: MSMTP_LOG_FILE (log propio de msmtp)
            timeout: Segundos máximos para el envío
            tmp_dir: Directorio para la configuración temporal (por defecto, el del sistema)
        """
        self.binary = binary
        self.log_file = log_file
        self.timeout = timeout
        self.tmp_dir = tmp_dir

    def send(self, message: OutgoingMessage, credentials: SmtpCredentials) -> Tuple[bool, str]:
        """
        Entrega el mensaje

        Returns:
            Tuple (success, diagnostic)
        """
        executable = shutil.which(self.binary)
        if not executable:
            return False, "msmtp no está instalado. Instálalo con: sudo apt install msmtp msmtp-mta"

        rc_content = render_msmtprc(credentials, message.from_address, self.log_file)
        try:
            with scoped_msmtprc(rc_content, self.tmp_dir) as rc_path:
                del rc_content
                try:
                    result = subprocess.run(
                        [
                            executable,
                            f"--file={rc_path}",
                            f"--from={message.from_address}",
                            message.to_address,
                        ],
                        input=message.as_string(),
                        capture_output=True,
                        text=True,
                        timeout=self.timeout,
                        check=False,
                    )
                except subprocess.TimeoutExpired:
                    return False, f"msmtp no terminó en {self.timeout}s"
                except OSError as e:
                    return False, f"No se pudo ejecutar msmtp: {e}"
        except OSError as e:
            # Directorio temporal inexistente, sin espacio o sin permisos
            return False, f"No se pudo preparar la configuración de msmtp: {e}"

        if result.returncode == 0:
            return True, f"Aviso entregado a {message.to_address}"

        diagnostic = result.stderr.strip() or result.stdout.strip()
        return False, diagnostic or f"msmtp terminó con código {result.returncode}"
