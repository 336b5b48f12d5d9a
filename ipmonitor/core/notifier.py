"""
Composición del aviso de cambio de IP (lógica pura).

El asunto admite variables $old_ip, $new_ip y $host; cualquier otro texto,
incluidos '$' sueltos, se conserva tal cual.
"""

from datetime import datetime
from string import Template

from ipmonitor.core.models import MessageContent, MonitorConfig, Notification, OutgoingMessage


TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S %Z"

_TITLE = "Cambio de dirección IP pública detectado"


def compose(previous_ip, new_ip, host_label: str, observed_at: datetime, subject_template: str) -> MessageContent:
    """
    Genera asunto y cuerpo del aviso

    Args:
        previous_ip: IP confirmada antes del cambio
        new_ip: IP detectada en este ciclo
        host_label: Nombre del host que reporta
        observed_at: Momento de la detección
        subject_template: EMAIL_SUBJECT de la configuración

    Returns:
        MessageContent determinado únicamente por los argumentos
    """
    subject = Template(subject_template).safe_substitute(
        old_ip=str(previous_ip),
        new_ip=str(new_ip),
        host=host_label,
    )

    lines = [
        _TITLE,
        "=" * len(_TITLE),
        "",
        f"Host:          {host_label}",
        f"Detectado:     {observed_at.strftime(TIMESTAMP_FORMAT).strip()}",
        "",
        f"IP anterior:   {previous_ip}",
        f"IP nueva:      {new_ip}",
        "",
        "Este es un aviso automático de IP Monitor.",
    ]
    return MessageContent(subject=subject, body="\n".join(lines) + "\n")


def compose_notification(notification: Notification, subject_template: str) -> MessageContent:
    return compose(
        notification.previous_ip,
        notification.new_ip,
        notification.host_label,
        notification.observed_at,
        subject_template,
    )


def build_message(content: MessageContent, config: MonitorConfig) -> OutgoingMessage:
    """Añade remitente y destinatario configurados al contenido."""
    return OutgoingMessage(
        from_name=config.email_from_name,
        from_address=config.email_from,
        to_address=config.email_to,
        content=content,
    )
