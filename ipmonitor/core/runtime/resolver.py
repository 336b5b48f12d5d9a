"""
Resolución de la ruta del documento de configuración y de la identidad del host.

- resolve_config_path(): --config explícito → IPMONITOR_CONFIG → ./ip_monitor.conf
- host_label(): FQDN del host, o el hostname corto si no hay FQDN.

El core NO lee el documento; solo expone estas rutas.
"""

import os
import socket
from pathlib import Path
from typing import Optional


CONFIG_ENV_VAR = "IPMONITOR_CONFIG"
DEFAULT_CONFIG_NAME = "ip_monitor.conf"


def resolve_config_path(explicit: Optional[Path] = None) -> Path:
    """
    Ruta del archivo de configuración a usar en esta invocación

    Args:
        explicit: Valor de --config, si se pasó

    Returns:
        Path expandido (no se verifica que exista)
    """
    if explicit is not None:
        return Path(explicit).expanduser()

    from_env = os.environ.get(CONFIG_ENV_VAR, "").strip()
    if from_env:
        return Path(from_env).expanduser()

    return Path.cwd() / DEFAULT_CONFIG_NAME


def host_label() -> str:
    """Nombre con el que el host se identifica en el aviso."""
    fqdn = socket.getfqdn()
    if fqdn and fqdn not in ("localhost", "localhost.localdomain"):
        return fqdn
    return socket.gethostname()
