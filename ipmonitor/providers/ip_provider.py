"""
Detección de la IP pública vía HTTP

El servicio configurado (IP_SERVICE) debe responder la IPv4 en texto plano,
p. ej. https://api.ipify.org o https://ipv4.icanhazip.com
"""

from ipaddress import IPv4Address
from typing import Optional

import requests

from ipmonitor import __version__
from ipmonitor.core.errors import DetectionError
from ipmonitor.core.models import DEFAULT_TIMEOUT
from ipmonitor.core.validator import parse_ipv4


USER_AGENT = f"ipmonitor/{__version__}"

# Longitud máxima de la respuesta que se copia al mensaje de error
_PREVIEW_CHARS = 64


class HttpIPProvider:
    """Cliente HTTP mínimo para el servicio de IP pública"""

    def __init__(self, session: Optional[requests.Session] = None):
        if session is None:
            session = requests.Session()
            session.headers["User-Agent"] = USER_AGENT
        self.session = session

    def fetch(self, endpoint: str, timeout: float = DEFAULT_TIMEOUT) -> IPv4Address:
        """
        Consulta el servicio y valida la respuesta

        Args:
            endpoint: URL del servicio de IP
            timeout: Timeout total en segundos

        Returns:
            IPv4Address detectada

        Raises:
            DetectionError: Timeout, error de red, HTTP no exitoso o respuesta no IPv4
        """
        try:
            response = self.session.get(endpoint, timeout=timeout)
            response.raise_for_status()
        except requests.exceptions.Timeout:
            raise DetectionError(f"Timeout ({timeout:g}s) consultando {endpoint}")
        except requests.exceptions.HTTPError as e:
            raise DetectionError(f"{endpoint} respondió HTTP {e.response.status_code}")
        except requests.exceptions.RequestException as e:
            raise DetectionError(f"No se pudo contactar {endpoint}: {e}")

        raw = response.text.strip()
        ip = parse_ipv4(raw)
        if ip is None:
            preview = raw[:_PREVIEW_CHARS]
            raise DetectionError(f"{endpoint} no devolvió una IPv4 válida (recibido: '{preview}')")
        return ip
