"""
Command-line interface for the CodeProject.AI provisioner
"""

import logging
import signal
import sys
from contextlib import contextmanager
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from cpai_provisioner import __version__
from cpai_provisioner.core.config import ProvisionerSettings, load_settings
from cpai_provisioner.core.exceptions import ProvisionerError, ProvisioningCancelled

console = Console()

EXIT_CANCELLED = 130


def configure_logging(verbose: bool = False, log_file: Path | None = None) -> None:
    """Send log records to the console (coloured) and optionally a file."""
    handlers: list[logging.Handler] = [
        RichHandler(console=console, markup=False, show_path=False, show_time=False)
    ]
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(
            logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        )
        handlers.append(file_handler)

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=handlers,
        force=True,
    )
    # Per-request httpx logging drowns out the step output
    logging.getLogger("httpx").setLevel(logging.WARNING)


def settings_options(func):
    """Options shared by every command that needs settings."""
    options = [
        click.option("--port", type=int, default=None, help="Host port (default: 32168)"),
        click.option("--container-name", default=None, help="Container name (default: codeproject-ai)"),
        click.option("--image", default=None, help="Image to run (default: codeproject/ai-server:latest)"),
        click.option("--data-dir", type=click.Path(path_type=Path), default=None, help="Host data directory"),
        click.option("--modules-dir", type=click.Path(path_type=Path), default=None, help="Host modules directory"),
        click.option("--scripts-dir", type=click.Path(path_type=Path), default=None, help="Management scripts directory"),
        click.option("--verbose", "-v", is_flag=True, help="Show debug output"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _load(**overrides) -> ProvisionerSettings:
    try:
        return load_settings(**overrides)
    except ProvisionerError as e:
        _fail(e)


def _fail(error: ProvisionerError) -> None:
    console.print(f"\n[bold red][ERROR][/bold red] {error.message}")
    if error.recovery_hint:
        console.print(f"[yellow]Recovery:[/yellow] {error.recovery_hint}\n")
    sys.exit(1)


@contextmanager
def _cancel_on_interrupt(waiter):
    """Turn Ctrl+C into a waiter cancellation for the duration of the block."""
    previous = signal.getsignal(signal.SIGINT)

    def _handler(signum, frame):
        waiter.cancel()

    signal.signal(signal.SIGINT, _handler)
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, previous)


@click.group()
@click.version_option(version=__version__)
def main() -> None:
    """CodeProject.AI Provisioner - CodeProject.AI Server in Docker, one command"""
    pass


@main.command()
@settings_options
@click.option("--timezone", default=None, help="TZ value passed to the container")
@click.option("--skip-firewall", is_flag=True, help="Do not create the inbound firewall rule")
@click.option("--wait-modules", is_flag=True, help="Poll the installed-module list instead of sleeping a fixed time per module")
@click.option("--log-file", type=click.Path(path_type=Path), default=None, help="Also write the log to this file")
def install(
    port: int | None,
    container_name: str | None,
    image: str | None,
    data_dir: Path | None,
    modules_dir: Path | None,
    scripts_dir: Path | None,
    verbose: bool,
    timezone: str | None,
    skip_firewall: bool,
    wait_modules: bool,
    log_file: Path | None,
) -> None:
    """Install CodeProject.AI Server and its modules in Docker"""
    from cpai_provisioner.provisioning.orchestrator import Provisioner
    from cpai_provisioner.provisioning.summary import get_lan_address, render_summary
    from cpai_provisioner.provisioning.waits import Waiter

    configure_logging(verbose, log_file)
    settings = _load(
        port=port,
        container_name=container_name,
        image=image,
        data_dir=data_dir,
        modules_dir=modules_dir,
        scripts_dir=scripts_dir,
        timezone=timezone,
        firewall_enabled=False if skip_firewall else None,
        wait_for_module_completion=True if wait_modules else None,
    )

    console.print(
        Panel.fit(
            "[bold cyan]CodeProject.AI Server Provisioner[/bold cyan]\n"
            f"Container [green]{settings.container_name}[/green] on port [green]{settings.port}[/green]",
            border_style="cyan",
        )
    )

    waiter = Waiter()
    provisioner = Provisioner(settings, waiter=waiter)
    try:
        with _cancel_on_interrupt(waiter):
            report = provisioner.run()
    except ProvisioningCancelled as e:
        console.print(f"\n[yellow]{e.message}[/yellow]")
        sys.exit(EXIT_CANCELLED)
    except ProvisionerError as e:
        _fail(e)

    render_summary(console, settings, report, lan_address=get_lan_address())


@main.command()
@settings_options
def status(
    port: int | None,
    container_name: str | None,
    image: str | None,
    data_dir: Path | None,
    modules_dir: Path | None,
    scripts_dir: Path | None,
    verbose: bool,
) -> None:
    """Show Docker, container and API status"""
    from cpai_provisioner.docker.client import DockerClient
    from cpai_provisioner.server.client import ServerClient

    configure_logging(verbose)
    settings = _load(
        port=port,
        container_name=container_name,
        image=image,
        data_dir=data_dir,
        modules_dir=modules_dir,
        scripts_dir=scripts_dir,
    )

    docker = DockerClient()
    docker_status = docker.get_status()
    container = (
        docker.get_container_status(settings.container_name) if docker_status.running else None
    )
    with ServerClient(settings.base_url) as server:
        api_ready = server.is_ready(timeout=settings.readiness_timeout_seconds)

    table = Table(title="CodeProject.AI Server Status", show_header=True, header_style="bold cyan")
    table.add_column("Check", style="white")
    table.add_column("Value", style="dim")
    table.add_column("Status", style="white")

    table.add_row("Docker", docker_status.version or "not found", "✅" if docker_status.installed else "❌")
    table.add_row("Docker daemon", "running" if docker_status.running else "not responding", "✅" if docker_status.running else "❌")
    if container is not None:
        table.add_row(
            f"Container {settings.container_name}",
            container.error or container.status,
            "✅" if container.status == "running" else "⚠️",
        )
    table.add_row("API", f"{settings.base_url}/v1/status", "✅" if api_ready else "⚠️")

    console.print(table)
    console.print()


@main.command()
@settings_options
def repair(
    port: int | None,
    container_name: str | None,
    image: str | None,
    data_dir: Path | None,
    modules_dir: Path | None,
    scripts_dir: Path | None,
    verbose: bool,
) -> None:
    """Repair module dependencies inside the container and restart it"""
    from cpai_provisioner.provisioning.orchestrator import Provisioner
    from cpai_provisioner.provisioning.waits import Waiter

    configure_logging(verbose)
    settings = _load(
        port=port,
        container_name=container_name,
        image=image,
        data_dir=data_dir,
        modules_dir=modules_dir,
        scripts_dir=scripts_dir,
    )

    waiter = Waiter()
    try:
        with _cancel_on_interrupt(waiter):
            report = Provisioner(settings, waiter=waiter).repair_and_restart()
    except ProvisioningCancelled as e:
        console.print(f"\n[yellow]{e.message}[/yellow]")
        sys.exit(EXIT_CANCELLED)
    except ProvisionerError as e:
        _fail(e)

    table = Table(title="Dependency Repair", show_header=True, header_style="bold cyan")
    table.add_column("Step", style="white")
    table.add_column("Result", style="white")
    for step in report.repair.steps:
        table.add_row(step.command.description, step.outcome)
    console.print(table)

    if report.warnings:
        for warning in report.warnings:
            console.print(f"[yellow]⚠️  {warning}[/yellow]")
    else:
        console.print("\n[bold green]✅ Repair complete and container restarted[/bold green]\n")


@main.command()
@settings_options
def scripts(
    port: int | None,
    container_name: str | None,
    image: str | None,
    data_dir: Path | None,
    modules_dir: Path | None,
    scripts_dir: Path | None,
    verbose: bool,
) -> None:
    """Regenerate the management scripts only"""
    from cpai_provisioner.provisioning.scripts import write_management_scripts

    configure_logging(verbose)
    settings = _load(
        port=port,
        container_name=container_name,
        image=image,
        data_dir=data_dir,
        modules_dir=modules_dir,
        scripts_dir=scripts_dir,
    )

    try:
        written = write_management_scripts(settings)
    except OSError as e:
        console.print(f"[bold red][ERROR][/bold red] Could not write scripts: {e}")
        sys.exit(1)

    console.print("\n[bold]Management scripts:[/bold]")
    for path in written:
        console.print(f"  ✅ [cyan]{path}[/cyan]")
    console.print()


if __name__ == "__main__":
    main()
