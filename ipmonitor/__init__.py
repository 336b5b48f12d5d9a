"""
IP Monitor - Detección de cambios de IP pública con aviso por correo.

Pensado para ejecutarse desde cron: cada invocación es un ciclo completo
(detectar, comparar, actualizar, notificar) y termina.
"""

__version__ = "1.0.0"
