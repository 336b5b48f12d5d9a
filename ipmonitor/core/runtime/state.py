"""
State Manager: un ciclo completo de detección → comparación → actualización → aviso.

Reglas del ciclo:
- El estado persistido (OLD_IP / CURRENT_IP) se actualiza ANTES de intentar el aviso.
- Un fallo de envío nunca deshace la actualización; se reporta como fallo del ciclo.
- Sin reintentos: la cadencia la pone el planificador externo (cron).
- Todo el ciclo corre bajo el lock del ConfigStore.
"""

import logging
from datetime import datetime
from ipaddress import IPv4Address
from typing import Callable, Dict, Optional

from ipmonitor.core.errors import ConfigError, DetectionError, NotificationError, StateWriteError
from ipmonitor.core.infra.contracts import ConfigStore, IPProvider, MailSender
from ipmonitor.core.models import (
    CURRENT_IP_FIELD,
    OLD_IP_FIELD,
    CycleResult,
    MonitorConfig,
    MonitorState,
    Notification,
    Observation,
    Transition,
)
from ipmonitor.core.notifier import build_message, compose_notification
from ipmonitor.core.runtime.resolver import host_label as resolve_host_label


logger = logging.getLogger(__name__)


def classify_transition(current_ip: Optional[IPv4Address], detected_ip: IPv4Address) -> Transition:
    """Clasifica el ciclo según la IP confirmada y la detectada."""
    if current_ip is None:
        return Transition.FIRST_RUN
    if current_ip == detected_ip:
        return Transition.UNCHANGED
    return Transition.CHANGED


def _local_now() -> datetime:
    return datetime.now().astimezone()


class StateManager:
    """Orquesta un ciclo de monitoreo sobre colaboradores inyectados"""

    def __init__(
        self,
        store: ConfigStore,
        ip_provider: IPProvider,
        mail_sender: MailSender,
        host_label: Optional[str] = None,
        clock: Callable[[], datetime] = _local_now,
    ):
        """
        Args:
            store: Documento de configuración (fuente y destino del estado)
            ip_provider: Detector de la IP pública
            mail_sender: Transporte del aviso
            host_label: Nombre del host para el aviso (por defecto, FQDN)
            clock: Fuente de la hora de observación
        """
        self.store = store
        self.ip_provider = ip_provider
        self.mail_sender = mail_sender
        self.host_label = host_label
        self.clock = clock

    def run_cycle(self, config: MonitorConfig) -> CycleResult:
        """
        Ejecuta exactamente un ciclo

        Args:
            config: Configuración ya validada

        Returns:
            CycleResult del ciclo

        Raises:
            LockError: Otro ciclo tiene el lock (sin efectos secundarios)
            ConfigError: El estado persistido no se puede leer
            StateWriteError: El estado no se pudo escribir
        """
        with self.store.lock():
            return self._run_locked(config)

    def _run_locked(self, config: MonitorConfig) -> CycleResult:
        state = MonitorState.from_values(self.store.read())

        try:
            detected_ip = self.ip_provider.fetch(config.ip_service, config.curl_timeout)
        except DetectionError as e:
            logger.error("No se pudo detectar la IP pública: %s", e)
            logger.error("Ciclo abortado; el estado persistido no se modificó")
            return CycleResult.DETECTION_FAILED

        observation = Observation(detected_ip=detected_ip, observed_at=self.clock())
        logger.info("IP pública detectada: %s", observation.detected_ip)

        transition = classify_transition(state.current_ip, observation.detected_ip)

        if transition is Transition.FIRST_RUN:
            logger.info("No hay IP almacenada (primera ejecución). Guardando IP detectada como CURRENT_IP.")
            self._persist({CURRENT_IP_FIELD: str(observation.detected_ip)})
            logger.info("CURRENT_IP = %s. No se envía aviso.", observation.detected_ip)
            return CycleResult.INITIALIZED

        if transition is Transition.UNCHANGED:
            logger.info("IP sin cambios: %s", state.current_ip)
            return CycleResult.NO_CHANGE

        logger.info("¡Cambio de IP detectado!")
        logger.info("  Anterior (CURRENT_IP almacenada): %s", state.current_ip)
        logger.info("  Nueva (detectada):                %s", observation.detected_ip)

        # OLD_IP y CURRENT_IP viajan en la misma escritura atómica
        self._persist({
            OLD_IP_FIELD: str(state.current_ip),
            CURRENT_IP_FIELD: str(observation.detected_ip),
        })
        logger.info("OLD_IP = %s, CURRENT_IP = %s", state.current_ip, observation.detected_ip)

        notification = Notification(
            previous_ip=state.current_ip,
            new_ip=observation.detected_ip,
            host_label=self.host_label or resolve_host_label(),
            observed_at=observation.observed_at,
        )
        return self._notify(config, notification)

    def _persist(self, values: Dict[str, str]) -> None:
        try:
            self.store.set_fields(values)
        except (ConfigError, OSError) as e:
            raise StateWriteError(f"No se pudo actualizar {', '.join(values)}: {e}") from e

    def _notify(self, config: MonitorConfig, notification: Notification) -> CycleResult:
        content = compose_notification(notification, config.email_subject)
        message = build_message(content, config)

        logger.info("Enviando aviso por correo a %s...", config.email_to)
        try:
            sent, diagnostic = self.mail_sender.send(message, config.smtp_credentials())
        except NotificationError as e:
            sent, diagnostic = False, str(e)

        if sent:
            logger.info("Aviso enviado a %s", config.email_to)
            logger.info("Cambio de IP gestionado correctamente.")
            return CycleResult.CHANGED_NOTIFIED

        logger.error("Falló el envío del aviso: %s", diagnostic)
        logger.error("El aviso no se entregó, pero el archivo de configuración ya fue actualizado.")
        return CycleResult.CHANGED_NOTIFICATION_FAILED
