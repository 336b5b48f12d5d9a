"""
Runtime: resolución de rutas y ejecución del ciclo de monitoreo.
"""

from ipmonitor.core.runtime.resolver import resolve_config_path, host_label
from ipmonitor.core.runtime.state import StateManager, classify_transition

__all__ = ["resolve_config_path", "host_label", "StateManager", "classify_transition"]
