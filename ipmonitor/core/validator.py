"""
Validación de configuración y de direcciones (lógica pura).

Sin I/O; solo reglas sobre estructuras de datos.
"""

import re
from ipaddress import IPv4Address
from typing import List, Mapping, Optional

from ipmonitor.core.errors import ValidationError


_DOTTED_QUAD = re.compile(r"^\d{1,3}(?:\.\d{1,3}){3}$")

# Campo -> valor de ejemplo que la plantilla trae y que no debe llegar a producción
PLACEHOLDERS = {
    "EMAIL_TO": "your-email@example.com",
    "EMAIL_FROM": "your-sender@example.com",
}

REQUIRED_FIELDS = ("EMAIL_TO", "EMAIL_FROM", "IP_SERVICE")

REQUIRED_SMTP_FIELDS = (
    "SMTP_HOST",
    "SMTP_PORT",
    "SMTP_USER",
    "SMTP_PASSWORD",
    "SMTP_TLS",
    "SMTP_TLS_TRUST_FILE",
)


def parse_ipv4(text: Optional[str]) -> Optional[IPv4Address]:
    """
    Interpreta un texto como IPv4 en notación decimal con puntos

    Args:
        text: Texto a validar (se eliminan espacios alrededor)

    Returns:
        IPv4Address si es válida, None en cualquier otro caso
    """
    if text is None:
        return None
    candidate = text.strip()
    if not _DOTTED_QUAD.match(candidate):
        return None
    try:
        return IPv4Address(candidate)
    except ValueError:
        # Octetos > 255 o con ceros a la izquierda
        return None


def validate_config(values: Mapping[str, Optional[str]]) -> List[str]:
    """
    Valida que los campos operativos estén presentes y no sean valores de ejemplo.

    Recorre todos los campos en una sola pasada (no se detiene en el primero).

    Args:
        values: Documento de configuración ya parseado (campo -> valor)

    Returns:
        Lista de mensajes de error; si está vacía, la configuración es válida
    """
    errors: List[str] = []

    for name in REQUIRED_FIELDS:
        value = (values.get(name) or "").strip()
        if not value or value == PLACEHOLDERS.get(name):
            errors.append(f"{name} no está configurado")

    for name in REQUIRED_SMTP_FIELDS:
        if not (values.get(name) or "").strip():
            errors.append(f"Variable SMTP {name} no está definida")

    port = (values.get("SMTP_PORT") or "").strip()
    if port and not (port.isdigit() and 0 < int(port) < 65536):
        errors.append(f"SMTP_PORT debe ser un puerto numérico válido (actual: '{port}')")

    timeout = (values.get("CURL_TIMEOUT") or "").strip()
    if timeout and not _is_positive_number(timeout):
        errors.append(f"CURL_TIMEOUT debe ser un número de segundos positivo (actual: '{timeout}')")

    max_size = (values.get("LOG_MAX_SIZE") or "").strip()
    if max_size and not max_size.isdigit():
        errors.append(f"LOG_MAX_SIZE debe ser un número de bytes (actual: '{max_size}')")

    return errors


def ensure_valid(values: Mapping[str, Optional[str]]) -> None:
    """
    Variante de validate_config que falla si hay violaciones

    Raises:
        ValidationError: Con la lista completa en .violations
    """
    violations = validate_config(values)
    if violations:
        raise ValidationError(violations)


def _is_positive_number(text: str) -> bool:
    try:
        return float(text) > 0
    except ValueError:
        return False
