"""
Console output for generation runs.

Provides a Rich summary of the generated symbols.
"""

from typing import List, Optional

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .dependency import ResolvedSet, VersionMode

_MODE_STYLES = {
    VersionMode.MODULE: "green",
    VersionMode.GROUP: "cyan",
    VersionMode.GROUP_MODULE: "yellow",
}


class GenerationReporter:
    """Formats and displays the result of a generation run."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def print_resolved_set(
        self, resolved: ResolvedSet, report_path: str, written: Optional[List[str]] = None
    ) -> None:
        """
        Print the symbols assigned for one report.

        Args:
            resolved: Output of the naming pipeline
            report_path: Report the symbols were generated from
            written: Files written during the run
        """
        self.console.print()
        self.console.print(
            Panel(
                f"📦 Dependencies from {report_path}",
                title="[bold blue]buildSrcVersions[/bold blue]",
                border_style="blue",
            )
        )

        if resolved.warnings:
            self._print_warnings(list(resolved.warnings))

        if len(resolved):
            self._print_summary(resolved)
            self._print_symbols(resolved)
        else:
            self.console.print("ℹ️  No dependencies found in the report.", style="yellow")

        for path in written or []:
            self.console.print(f"✅ Wrote {path}", style="green")

    def _print_summary(self, resolved: ResolvedSet) -> None:
        table = Table(title="📊 Summary", box=box.ROUNDED, title_style="bold cyan")
        table.add_column("Mode", style="bold")
        table.add_column("Dependencies", justify="center")

        for mode in VersionMode:
            count = sum(1 for d in resolved if d.mode is mode)
            if count:
                style = _MODE_STYLES[mode]
                table.add_row(f"[{style}]{mode.value}[/{style}]", str(count))

        updates = sum(
            1 for d in resolved if d.newer_version() and d.newer_version() != d.version
        )
        table.add_row("Updates available", f"[bold]{updates}[/bold]")
        table.add_row("Version symbols", str(len(resolved.version_symbols())))

        self.console.print(table)
        self.console.print()

    def _print_symbols(self, resolved: ResolvedSet) -> None:
        table = Table(box=box.SIMPLE_HEAD)
        table.add_column("Libs", style="bold")
        table.add_column("Versions")
        table.add_column("Coordinate", style="dim")
        table.add_column("Version", justify="right")
        table.add_column("Available", justify="right")

        for record in resolved:
            style = _MODE_STYLES[record.mode]
            newer = record.newer_version()
            table.add_row(
                record.coordinate_symbol_name,
                f"[{style}]{record.symbol_name}[/{style}]",
                record.coordinate,
                record.version,
                f"[yellow]{newer}[/yellow]" if newer and newer != record.version else "",
            )

        self.console.print(table)

    def _print_warnings(self, warnings: List[str]) -> None:
        for warning in warnings:
            self.console.print(f"⚠️  {warning}", style="yellow")
