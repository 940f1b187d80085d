"""
Command Line Interface for the VPS hardening toolkit.

``vps-audit`` and ``vps-harden`` take no arguments; settings come from the
``VPS_HARDENING_CONFIG`` file when present. The ``vps-hardening`` group
exposes the same commands with ``--config``, ``--verbose`` and a JSON audit
format.
"""

import logging
import sys
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler

from . import __version__
from .core.auditor import Auditor
from .core.config import Settings, load_settings
from .core.errors import ConfigurationError, HardeningError
from .core.hardener import Hardener, select_posture
from .platforms.base import BasePlatform
from .platforms.linux import LinuxPlatform
from .reporting.console import (
    StatusPrinter, audit_report_json, render_audit_report, render_banner, render_posture_menu
)
from .utils.prompts import ConfirmationProvider, ConsoleConfirmation

console = Console()


def make_platform(settings: Settings) -> BasePlatform:
    """Host access used by the commands."""
    return LinuxPlatform(timeout=settings.command_timeout)


def configure_logging(verbose: bool) -> None:
    """Diagnostics go to stderr; the action log is separate."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def get_settings(config_path: Optional[str] = None) -> Settings:
    try:
        return load_settings(config_path)
    except ConfigurationError as e:
        console.print(f"[red]Error: {e.message}[/red]")
        sys.exit(1)


def run_audit(settings: Settings, output_format: str = "text") -> int:
    """
    Run the read-only audit and print it.

    Returns:
        int: Exit code, 0 whenever the scan completes
    """
    report = Auditor(make_platform(settings), settings).run()

    if output_format == "json":
        click.echo(audit_report_json(report))
    else:
        render_audit_report(console, report)

    return 0


def run_harden(settings: Settings,
               confirmations: Optional[ConfirmationProvider] = None) -> int:
    """
    Run the interactive hardener.

    Returns:
        int: 1 on missing privileges, invalid posture or command failure, else 0
    """
    printer = StatusPrinter(console)
    hardener = Hardener(
        make_platform(settings),
        settings,
        confirmations or ConsoleConfirmation(),
        console=console,
    )

    try:
        hardener.require_privileges()

        render_banner(console, "VPS Security Hardening")
        printer.header("Step 0: Choose Risk Posture")
        render_posture_menu(console)

        selection = click.prompt("Choose 1, 2, or 3", default="", show_default=False)
        profile = select_posture(selection)
        printer.success(f"Selected risk posture: {profile.name}")

        hardener.run(profile)

    except (HardeningError, OSError) as e:
        _report_failure(printer, hardener, e)
        return 1

    return 0


def _report_failure(printer: StatusPrinter, hardener: Hardener, error: Exception) -> None:
    """Explain a fatal error with the manual recovery options."""
    message = error.message if isinstance(error, HardeningError) else str(error)
    printer.error(message)

    remediation = getattr(error, "remediation", None)
    if remediation:
        console.print(remediation)

    if hardener.ssh_backup:
        printer.info(
            f"To restore SSH: cp {hardener.ssh_backup} {hardener.sshd.config_path} "
            "&& systemctl reload ssh"
        )
    if hardener.action_log.path.exists():
        printer.info(f"Completed actions are listed in: {hardener.action_log.path}")


@click.command(name="vps-audit")
@click.version_option(version=__version__)
def audit_command():
    """Audit SSH, firewall, fail2ban, updates and Docker posture (read-only)."""
    configure_logging(False)
    sys.exit(run_audit(get_settings()))


@click.command(name="vps-harden")
@click.version_option(version=__version__)
def harden_command():
    """Interactively apply baseline hardening (requires root)."""
    configure_logging(False)
    sys.exit(run_harden(get_settings()))


@click.group()
@click.version_option(version=__version__)
@click.option('--config', '-c', help="Path to configuration file")
@click.option('--verbose', '-v', is_flag=True, help="Enable verbose output")
@click.pass_context
def cli(ctx, config: Optional[str], verbose: bool):
    """
    VPS Security Hardening Toolkit

    Audit and interactively harden SSH, UFW, fail2ban, unattended upgrades
    and Docker on a single Debian/Ubuntu VPS.
    """
    configure_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj['settings'] = get_settings(config)


@cli.command()
@click.option('--format', 'output_format', type=click.Choice(['text', 'json']),
              default='text', help="Output format")
@click.pass_context
def audit(ctx, output_format: str):
    """
    Audit current security posture.

    Performs a read-only assessment without making changes.
    """
    sys.exit(run_audit(ctx.obj['settings'], output_format))


@cli.command()
@click.pass_context
def harden(ctx):
    """
    Apply hardening steps interactively.

    Each step asks for confirmation; completed steps are recorded in the
    action log.
    """
    sys.exit(run_harden(ctx.obj['settings']))


def main():
    """Main CLI entry point."""
    cli()


if __name__ == "__main__":
    main()
