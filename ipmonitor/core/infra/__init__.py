"""
Contratos de los colaboradores externos del ciclo.

ConfigStore, IPProvider y MailSender se implementan en ipmonitor.providers;
el core no depende de ninguna implementación concreta.
"""

from ipmonitor.core.infra.contracts import ConfigStore, IPProvider, MailSender

__all__ = ["ConfigStore", "IPProvider", "MailSender"]
