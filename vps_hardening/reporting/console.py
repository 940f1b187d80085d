"""
Terminal rendering for audit reports and hardener progress.
"""

import json
from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..core.models import POSTURE_CHOICES, POSTURES, AuditReport, AuditSection, FindingStatus

STATUS_SYMBOLS = {
    FindingStatus.PASS: ("✓", "green"),
    FindingStatus.WARN: ("⚠", "yellow"),
    FindingStatus.FAIL: ("✗", "red"),
}


class StatusPrinter:
    """Coloured one-line status messages."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def header(self, title: str) -> None:
        self.console.print(f"\n[bold blue]=== {title} ===[/bold blue]\n")

    def success(self, message: str) -> None:
        self.console.print(f"[green]✓ {message}[/green]")

    def error(self, message: str) -> None:
        self.console.print(f"[red]✗ {message}[/red]")

    def warning(self, message: str) -> None:
        self.console.print(f"[yellow]⚠ {message}[/yellow]")

    def info(self, message: str) -> None:
        self.console.print(f"[blue]ℹ[/blue] {message}")


def render_banner(console: Console, title: str) -> None:
    console.print(Panel(f"[bold]{title}[/bold]", border_style="blue", expand=False))


def render_section(console: Console, section: AuditSection) -> None:
    """Print one audit section: findings, hints, verbatim output, notes."""
    console.print(f"\n[bold blue]=== {section.title} ===[/bold blue]\n")

    for finding in section.findings:
        symbol, color = STATUS_SYMBOLS[finding.status]
        console.print(f"[{color}]{symbol}[/{color}] {finding.detail}")
        if finding.hint:
            console.print(f"[blue]ℹ[/blue] {finding.hint}")

    if section.raw_output:
        console.print("\nCurrent rules:")
        for line in section.raw_output.splitlines():
            console.print(f"  {line}", markup=False, highlight=False)

    for note in section.notes:
        console.print(f"[blue]ℹ[/blue] {note}")


def render_audit_report(console: Console, report: AuditReport) -> None:
    """Print the full audit in text form, ending with the legend."""
    render_banner(console, "VPS Security Hardening Audit")

    if report.system_info:
        info = report.system_info
        console.print("\n[bold blue]=== System Information ===[/bold blue]\n")
        console.print(f"[blue]ℹ[/blue] OS: {info.os_version}")
        console.print(f"[blue]ℹ[/blue] Kernel: {info.kernel_version}")
        console.print(f"[blue]ℹ[/blue] Hostname: {info.hostname}")
        if info.uptime:
            console.print(f"[blue]ℹ[/blue] Uptime: {info.uptime}")

    for section in report.sections:
        render_section(console, section)

    console.print("\n[bold blue]=== Audit Summary ===[/bold blue]\n")
    legend = Table(title="Hardening Status", show_header=False, box=None)
    legend.add_column("Symbol")
    legend.add_column("Meaning")
    legend.add_row("[green]✓[/green]", "Hardened (recommended setting applied)")
    legend.add_row("[yellow]⚠[/yellow]", "Warning (setting could be more secure)")
    legend.add_row("[red]✗[/red]", "Not hardened (security setting not applied)")
    console.print(legend)

    console.print("\nTo apply hardening automatically, run: sudo vps-harden\n")
    if report.completed_at:
        console.print(f"[blue]ℹ[/blue] Audit completed: {report.completed_at.strftime('%Y-%m-%d %H:%M:%S')}")


def audit_report_json(report: AuditReport) -> str:
    return json.dumps(report.model_dump(mode="json"), indent=2)


def render_posture_menu(console: Console) -> None:
    """List the selectable risk postures with their highlights."""
    console.print("Select security level for your VPS:\n")
    for choice, posture in POSTURE_CHOICES.items():
        profile = POSTURES[posture]
        recommended = " (Recommended)" if choice == "1" else ""
        console.print(f"  {choice}) [bold]{profile.name}[/bold]{recommended} - {profile.summary}")
        for highlight in profile.highlights:
            console.print(f"     - {highlight}")
        console.print("")
