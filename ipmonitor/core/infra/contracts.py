"""
Contratos que deben implementar los colaboradores del ciclo.

El core solo define interfaces; la implementación vive en ipmonitor/providers/*.
"""

from ipaddress import IPv4Address
from typing import ContextManager, Dict, Mapping, Optional, Protocol, Tuple

from ipmonitor.core.models import OutgoingMessage, SmtpCredentials


class ConfigStore(Protocol):
    """Documento clave-valor persistido (ip_monitor.conf)."""

    def read(self) -> Dict[str, Optional[str]]:
        """Devuelve todos los campos del documento."""
        ...

    def get(self, name: str) -> Optional[str]:
        ...

    def set_field(self, name: str, value: str) -> None:
        """Actualiza un único campo; lanza ConfigError u OSError si no puede."""
        ...

    def set_fields(self, values: Mapping[str, str]) -> None:
        """Actualiza varios campos en una única escritura atómica."""
        ...

    def lock(self) -> ContextManager[None]:
        """Exclusión mutua entre invocaciones; lanza LockError si ya está tomado."""
        ...


class IPProvider(Protocol):
    """Quien obtiene la IP pública actual."""

    def fetch(self, endpoint: str, timeout: float) -> IPv4Address:
        """Lanza DetectionError si no obtiene una IPv4 válida dentro del timeout."""
        ...


class MailSender(Protocol):
    """Quien entrega el mensaje por SMTP."""

    def send(self, message: OutgoingMessage, credentials: SmtpCredentials) -> Tuple[bool, str]:
        """Devuelve (éxito, diagnóstico). Las credenciales no sobreviven a la llamada."""
        ...
