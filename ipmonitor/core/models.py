"""
Modelos de datos de IP Monitor (agnósticos de CLI y filesystem).

- MonitorConfig: vista tipada del documento ip_monitor.conf (alias = nombre del campo).
- MonitorState: par persistido OLD_IP / CURRENT_IP.
- Observation / Notification / SmtpCredentials: transitorios de un ciclo.
"""

from datetime import datetime
from email.message import EmailMessage
from email.utils import formataddr
from enum import Enum
from ipaddress import IPv4Address
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, Field, SecretStr

from ipmonitor.core.errors import ConfigError


DEFAULT_FROM_NAME = "IP Monitor"
DEFAULT_SUBJECT = "Cambio de IP pública detectado"
DEFAULT_TIMEOUT = 10.0
DEFAULT_LOG_MAX_SIZE = 1048576

# Campos gestionados exclusivamente por el ciclo
OLD_IP_FIELD = "OLD_IP"
CURRENT_IP_FIELD = "CURRENT_IP"


class Transition(str, Enum):
    FIRST_RUN = "first_run"
    UNCHANGED = "unchanged"
    CHANGED = "changed"


class CycleResult(str, Enum):
    """Resultado definitivo de un ciclo; la CLI lo traduce a código de salida."""
    INITIALIZED = "initialized"
    NO_CHANGE = "no_change"
    CHANGED_NOTIFIED = "changed_notified"
    CHANGED_NOTIFICATION_FAILED = "changed_notification_failed"
    DETECTION_FAILED = "detection_failed"

    @property
    def is_success(self) -> bool:
        return self in (
            CycleResult.INITIALIZED,
            CycleResult.NO_CHANGE,
            CycleResult.CHANGED_NOTIFIED,
        )


class MonitorState(BaseModel):
    """Estado persistido: IP anterior y actual confirmadas."""
    old_ip: Optional[IPv4Address] = None
    current_ip: Optional[IPv4Address] = None

    class Config:
        frozen = True

    @classmethod
    def from_values(cls, values: Mapping[str, Optional[str]]) -> "MonitorState":
        """
        Construye el estado a partir del documento de configuración

        Un campo vacío o ausente equivale a "sin valor". Un valor no vacío que no
        sea IPv4 se reporta como ConfigError: el documento fue editado a mano.
        """
        parsed: Dict[str, Optional[IPv4Address]] = {}
        for attr, field_name in (("old_ip", OLD_IP_FIELD), ("current_ip", CURRENT_IP_FIELD)):
            raw = (values.get(field_name) or "").strip()
            if not raw:
                parsed[attr] = None
                continue
            try:
                parsed[attr] = IPv4Address(raw)
            except ValueError:
                raise ConfigError(f"{field_name} contiene un valor que no es IPv4: '{raw}'")
        return cls(**parsed)


class Observation(BaseModel):
    detected_ip: IPv4Address
    observed_at: datetime


class Notification(BaseModel):
    """Aviso de cambio; solo existe cuando la transición es CHANGED."""
    previous_ip: IPv4Address
    new_ip: IPv4Address
    host_label: str
    observed_at: datetime


class MessageContent(BaseModel):
    subject: str
    body: str


class OutgoingMessage(BaseModel):
    """Mensaje completo (cabeceras + cuerpo) listo para el MailSender."""
    from_name: str
    from_address: str
    to_address: str
    content: MessageContent

    def as_email(self) -> EmailMessage:
        message = EmailMessage()
        message["From"] = formataddr((self.from_name, self.from_address))
        message["To"] = self.to_address
        message["Subject"] = self.content.subject
        message.set_content(self.content.body)
        return message

    def as_string(self) -> str:
        return self.as_email().as_string()


class SmtpCredentials(BaseModel):
    """
    Credenciales de transporte SMTP.

    Solo viven dentro de una llamada a MailSender.send; el secreto es SecretStr
    para que nunca aparezca en repr() ni en logs.
    """
    host: str
    port: int
    username: str
    secret: SecretStr
    tls: str
    trust_file: str

    class Config:
        frozen = True


class MonitorConfig(BaseModel):
    """Campos reconocidos de ip_monitor.conf (sin OLD_IP/CURRENT_IP, que son estado)."""
    email_to: str = Field(..., alias="EMAIL_TO")
    email_from: str = Field(..., alias="EMAIL_FROM")
    email_from_name: str = Field(DEFAULT_FROM_NAME, alias="EMAIL_FROM_NAME")
    email_subject: str = Field(DEFAULT_SUBJECT, alias="EMAIL_SUBJECT")
    ip_service: str = Field(..., alias="IP_SERVICE", description="URL que devuelve la IPv4 en texto plano")
    smtp_host: str = Field(..., alias="SMTP_HOST")
    smtp_port: int = Field(..., alias="SMTP_PORT")
    smtp_user: str = Field(..., alias="SMTP_USER")
    smtp_password: SecretStr = Field(..., alias="SMTP_PASSWORD")
    smtp_tls: str = Field(..., alias="SMTP_TLS", description="on | off")
    smtp_tls_trust_file: str = Field(..., alias="SMTP_TLS_TRUST_FILE")
    log_file: Optional[str] = Field(None, alias="LOG_FILE")
    log_max_size: int = Field(DEFAULT_LOG_MAX_SIZE, alias="LOG_MAX_SIZE")
    curl_timeout: float = Field(DEFAULT_TIMEOUT, alias="CURL_TIMEOUT", gt=0)
    msmtp_log_file: Optional[str] = Field(None, alias="MSMTP_LOG_FILE")

    class Config:
        populate_by_name = True

    @classmethod
    def from_values(cls, values: Mapping[str, Optional[str]]) -> "MonitorConfig":
        """Campos vacíos se tratan como ausentes para que apliquen los defaults."""
        present: Dict[str, Any] = {}
        for key, value in values.items():
            if value is None or not value.strip():
                continue
            # El secreto se conserva tal cual, incluidos espacios
            present[key] = value if key == "SMTP_PASSWORD" else value.strip()
        return cls.model_validate(present)

    def smtp_credentials(self) -> SmtpCredentials:
        return SmtpCredentials(
            host=self.smtp_host,
            port=self.smtp_port,
            username=self.smtp_user,
            secret=self.smtp_password,
            tls=self.smtp_tls,
            trust_file=self.smtp_tls_trust_file,
        )
