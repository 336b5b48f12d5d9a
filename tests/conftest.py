"""Fixtures compartidas: documento de configuración en disco y colaboradores falsos."""

import logging
from datetime import datetime, timezone
from ipaddress import IPv4Address

import pytest

from ipmonitor.cli.log import LOGGER_NAME
from ipmonitor.core.models import MonitorConfig
from ipmonitor.providers.config_store import DotenvConfigStore


BASE_CONFIG = """\
# ============================================================
# ip_monitor.conf (tests)
# ============================================================
OLD_IP="{old_ip}"
CURRENT_IP="{current_ip}"

# --- Aviso ---
EMAIL_TO="ops@example.org"
EMAIL_FROM="monitor@example.org"
EMAIL_FROM_NAME="Monitor & Alertas"
EMAIL_SUBJECT="IP cambiada en $host"
IP_SERVICE="https://ip.example.org/plain?format=text&v=4"

# --- SMTP ---
SMTP_HOST="smtp.example.org"
SMTP_PORT="587"
SMTP_USER="monitor@example.org"
SMTP_PASSWORD="s3cr3t/&$pass"
SMTP_TLS="on"
SMTP_TLS_TRUST_FILE="/etc/ssl/certs/ca-certificates.crt"
MSMTP_LOG_FILE=""

LOG_FILE=""
LOG_MAX_SIZE="1048576"
CURL_TIMEOUT="5"
"""

FIXED_NOW = datetime(2026, 10, 18, 12, 30, 0, tzinfo=timezone.utc)


def render_config(current_ip: str = "", old_ip: str = "") -> str:
    return BASE_CONFIG.replace("{old_ip}", old_ip).replace("{current_ip}", current_ip)


class FakeIPProvider:
    def __init__(self, ip=None, error=None):
        self.ip = ip
        self.error = error
        self.calls = []

    def fetch(self, endpoint, timeout):
        self.calls.append((endpoint, timeout))
        if self.error is not None:
            raise self.error
        return IPv4Address(self.ip)


class FakeMailSender:
    def __init__(self, ok=True, diagnostic="enviado"):
        self.ok = ok
        self.diagnostic = diagnostic
        self.messages = []

    def send(self, message, credentials):
        self.messages.append(message)
        return self.ok, self.diagnostic


@pytest.fixture
def write_config(tmp_path):
    def _write(current_ip: str = "", old_ip: str = "", content: str = None):
        path = tmp_path / "ip_monitor.conf"
        path.write_text(content if content is not None else render_config(current_ip, old_ip), encoding="utf-8")
        path.chmod(0o600)
        return path
    return _write


@pytest.fixture
def config_path(write_config):
    return write_config()


@pytest.fixture
def store(config_path):
    return DotenvConfigStore(config_path)


@pytest.fixture
def settings(store):
    return MonitorConfig.from_values(store.read())


@pytest.fixture(autouse=True)
def reset_ipmonitor_logger():
    yield
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
