"""
Core: lógica de negocio pura.

ENFORCEMENT (arquitectura limpia):
- Este paquete NO debe importar: ipmonitor.cli ni ipmonitor.providers (implementaciones).
- Permitido: typing, ipaddress, datetime, pydantic, ipmonitor.core.*.
- El acceso a disco, red y SMTP llega inyectado a través de los contratos de core/infra.
"""

from ipmonitor.core.errors import (
    IPMonitorError,
    ConfigError,
    ValidationError,
    DetectionError,
    StateWriteError,
    NotificationError,
    LockError,
)

__all__ = [
    "IPMonitorError",
    "ConfigError",
    "ValidationError",
    "DetectionError",
    "StateWriteError",
    "NotificationError",
    "LockError",
]
