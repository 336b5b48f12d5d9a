"""
Errores de IP Monitor.

El core solo define excepciones; la CLI se encarga del formato de salida y del código de salida.
"""


class IPMonitorError(Exception):
    """Error base de IP Monitor."""
    pass


class ConfigError(IPMonitorError):
    """Error de configuración (archivo faltante, ilegible o campo inexistente)."""
    pass


class ValidationError(IPMonitorError):
    """Uno o más campos requeridos faltan o conservan valores de ejemplo."""

    def __init__(self, violations):
        self.violations = list(violations)
        super().__init__("; ".join(self.violations) or "Configuración inválida")


class DetectionError(IPMonitorError):
    """No se pudo obtener una IPv4 válida del servicio de detección."""
    pass


class StateWriteError(IPMonitorError):
    """No se pudo escribir el estado persistido (OLD_IP / CURRENT_IP)."""
    pass


class NotificationError(IPMonitorError):
    """El envío del correo falló (msmtp ausente, SMTP caído o rechazo)."""
    pass


class LockError(IPMonitorError):
    """Otro ciclo ya tiene el lock del archivo de configuración."""
    pass
