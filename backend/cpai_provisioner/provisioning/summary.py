"""
Final human-readable summary of a provisioning run
"""

import logging
import socket

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from cpai_provisioner.core.config import ProvisionerSettings
from cpai_provisioner.provisioning.models import ProvisioningReport

logger = logging.getLogger(__name__)

_MODULE_LABELS = {
    "confirmed": "[green]installed[/green]",
    "requested": "[yellow]requested (installing in background)[/yellow]",
    "failed": "[red]install failed[/red]",
}


def get_lan_address() -> str | None:
    """
    Best guess at the host's LAN address

    Opens a UDP socket towards a public address (no packet is sent) and
    reads the local end.
    """
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
            sock.connect(("8.8.8.8", 80))
            return sock.getsockname()[0]
    except OSError as e:
        logger.debug(f"LAN address lookup failed: {e}")
        return None


def render_summary(
    console: Console,
    settings: ProvisionerSettings,
    report: ProvisioningReport,
    lan_address: str | None = None,
) -> None:
    """Print the end-of-run report."""
    status_line = (
        "[bold green]CodeProject.AI Server is installed[/bold green]"
        if report.api_ready
        else "[bold yellow]CodeProject.AI Server is installed but the API has not answered yet[/bold yellow]"
    )
    console.print()
    console.print(Panel.fit(status_line, border_style="green" if report.api_ready else "yellow"))

    urls = Table(title="Access", show_header=False, box=None)
    urls.add_column("Name", style="cyan")
    urls.add_column("URL", style="green")
    urls.add_row("Dashboard", f"{settings.base_url}/")
    urls.add_row("API status", f"{settings.base_url}/v1/status")
    if lan_address:
        urls.add_row("Network", f"http://{lan_address}:{settings.port}/")
    console.print(urls)
    console.print()

    modules = Table(title="Modules", show_header=True, header_style="bold cyan")
    modules.add_column("Module", style="white")
    modules.add_column("Status")
    for result in report.modules:
        modules.add_row(result.module.display_name, _MODULE_LABELS[result.outcome])
    if report.repair is not None:
        repair_label = "[green]ok[/green]" if report.repair.ok else "[red]incomplete[/red]"
        modules.add_row("Dependency repair", f"{repair_label} ({report.repair.summary()})")
    console.print(modules)
    console.print()

    if report.scripts:
        console.print("[bold]Management scripts:[/bold]")
        for path in report.scripts:
            console.print(f"  • [cyan]{path}[/cyan]")
        console.print()

    if report.warnings:
        console.print("[bold yellow]Warnings:[/bold yellow]")
        for warning in report.warnings:
            console.print(f"  • {warning}")
        console.print()

    minutes, seconds = divmod(int(report.total_waited), 60)
    console.print(f"[dim]Container: {report.container_name} | waited {minutes}m {seconds}s[/dim]\n")
