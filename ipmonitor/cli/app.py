"""
Aplicación CLI de IP Monitor.

Solo compone colaboradores y traduce resultados a códigos de salida;
la lógica del ciclo vive en core y el acceso a disco/red/SMTP en providers.

Cron recomendado (cada 5 minutos):
    */5 * * * * /usr/local/bin/ipmonitor run --config /etc/ipmonitor/ip_monitor.conf
"""

import signal
from pathlib import Path
from typing import Dict, Optional

import typer
from pydantic import ValidationError as PydanticValidationError
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ipmonitor import __version__
from ipmonitor.cli.log import logging_options, setup_logging
from ipmonitor.core.errors import ConfigError, LockError, StateWriteError, ValidationError
from ipmonitor.core.models import CURRENT_IP_FIELD, OLD_IP_FIELD, MonitorConfig
from ipmonitor.core.runtime.resolver import resolve_config_path
from ipmonitor.core.runtime.state import StateManager
from ipmonitor.core.validator import ensure_valid, validate_config
from ipmonitor.providers.config_store import DotenvConfigStore
from ipmonitor.providers.ip_provider import HttpIPProvider
from ipmonitor.providers.mail_sender import MsmtpMailSender


EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_LOCKED = 3

app = typer.Typer(
    name="ipmonitor",
    help="IP Monitor - Aviso por correo cuando cambia la IP pública del host",
    add_completion=False,
    no_args_is_help=True,
)

console = Console()


def _config_option() -> Optional[Path]:
    return typer.Option(
        None,
        "--config",
        "-c",
        help="Ruta a ip_monitor.conf (por defecto: $IPMONITOR_CONFIG o ./ip_monitor.conf)",
    )


def _terminate(signum, frame):
    # SIGTERM como SystemExit para que los bloques finally (lock, msmtprc temporal) se ejecuten
    raise SystemExit(128 + signum)


def _read_values(store: DotenvConfigStore, logger) -> Dict[str, Optional[str]]:
    try:
        return store.read()
    except ConfigError as e:
        logger.error(str(e))
        raise typer.Exit(EXIT_FAILURE)


@app.command()
def run(config: Optional[Path] = _config_option()):
    """
    Ejecuta un ciclo de verificación (uso desde cron)

    Detecta la IP pública, la compara con CURRENT_IP y, si cambió,
    actualiza OLD_IP/CURRENT_IP y envía el aviso por correo.
    """
    signal.signal(signal.SIGTERM, _terminate)

    config_path = resolve_config_path(config)
    logger = setup_logging()
    store = DotenvConfigStore(config_path)
    values = _read_values(store, logger)

    log_file, max_bytes = logging_options(values)
    try:
        logger = setup_logging(log_file, max_bytes)
    except OSError as e:
        # Un LOG_FILE inaccesible no detiene la verificación
        logger = setup_logging()
        logger.error("No se pudo abrir LOG_FILE %s: %s. Se registra solo en consola.", log_file, e)

    logger.info("Iniciando verificación de IP")
    logger.info("Archivo de configuración: %s", config_path)

    try:
        ensure_valid(values)
    except ValidationError as e:
        for violation in e.violations:
            logger.error("%s en %s", violation, config_path)
        logger.error("Actualiza %s antes de ejecutar la verificación.", config_path)
        raise typer.Exit(EXIT_FAILURE)

    try:
        settings = MonitorConfig.from_values(values)
    except PydanticValidationError as e:
        for error in e.errors():
            field = ".".join(str(part) for part in error["loc"])
            logger.error("%s: %s", field, error["msg"])
        raise typer.Exit(EXIT_FAILURE)

    manager = StateManager(
        store,
        HttpIPProvider(),
        MsmtpMailSender(log_file=settings.msmtp_log_file),
    )

    try:
        result = manager.run_cycle(settings)
    except LockError as e:
        logger.error("%s", e)
        raise typer.Exit(EXIT_LOCKED)
    except (ConfigError, StateWriteError) as e:
        logger.error("%s", e)
        raise typer.Exit(EXIT_FAILURE)

    if result.is_success:
        logger.info("Ciclo terminado: %s", result.value)
        raise typer.Exit(EXIT_OK)

    logger.error("Ciclo terminado con fallo: %s", result.value)
    raise typer.Exit(EXIT_FAILURE)


@app.command()
def validate(config: Optional[Path] = _config_option()):
    """
    Valida ip_monitor.conf sin ejecutar el ciclo

    Reporta todos los campos faltantes o con valores de ejemplo.
    """
    config_path = resolve_config_path(config)
    store = DotenvConfigStore(config_path)
    try:
        values = store.read()
    except ConfigError as e:
        console.print(f"[red]❌ {e}[/red]")
        raise typer.Exit(EXIT_FAILURE)

    violations = validate_config(values)
    if not violations:
        console.print(f"[green]✅ Configuración válida: {config_path}[/green]")
        return

    table = Table(title=f"Problemas en {config_path}", show_header=True, header_style="bold cyan")
    table.add_column("#", style="dim", width=4)
    table.add_column("Problema", style="yellow")
    for index, violation in enumerate(violations, start=1):
        table.add_row(str(index), violation)
    console.print(table)
    console.print(f"\n[red]❌ {len(violations)} problema(s) encontrado(s)[/red]")
    raise typer.Exit(EXIT_FAILURE)


@app.command()
def status(config: Optional[Path] = _config_option()):
    """
    Muestra el estado almacenado (OLD_IP / CURRENT_IP)

    Solo lectura; no consulta el servicio de IP.
    """
    config_path = resolve_config_path(config)
    store = DotenvConfigStore(config_path)
    try:
        values = store.read()
    except ConfigError as e:
        console.print(f"[red]❌ {e}[/red]")
        raise typer.Exit(EXIT_FAILURE)

    table = Table(title="Estado de IP Monitor", show_header=True, header_style="bold cyan")
    table.add_column("Campo", style="cyan", width=14)
    table.add_column("Valor", style="green")
    for name in (CURRENT_IP_FIELD, OLD_IP_FIELD, "IP_SERVICE", "EMAIL_TO"):
        value = (values.get(name) or "").strip()
        table.add_row(name, value or "[dim]-[/dim]")
    console.print(table)
    console.print(f"\n[dim]Archivo: {config_path}[/dim]")


@app.command()
def version():
    """Muestra la versión de IP Monitor"""
    console.print(Panel.fit(
        "[bold cyan]IP Monitor[/bold cyan]\n"
        "[dim]Aviso de cambio de IP pública por correo[/dim]\n\n"
        f"[bold]Versión:[/bold] {__version__}",
        border_style="cyan"
    ))


def main():
    app(prog_name="ipmonitor")


if __name__ == "__main__":
    main()
