"""
Providers: implementaciones concretas de los contratos de core/infra.

- DotenvConfigStore: ip_monitor.conf (python-dotenv) + lock de invocación
- HttpIPProvider: detección de IP pública (requests)
- MsmtpMailSender: envío SMTP con configuración temporal de msmtp
"""

from ipmonitor.providers.config_store import DotenvConfigStore
from ipmonitor.providers.ip_provider import HttpIPProvider
from ipmonitor.providers.mail_sender import MsmtpMailSender

__all__ = ["DotenvConfigStore", "HttpIPProvider", "MsmtpMailSender"]
