"""
CLI Reporter Module
===================

Terminal output for aggregation results using the Rich library.

Report format
-------------
One line per entity, largest first::

    Storage Used: 100 GB, Volume ID: vol-0abc, Region: us-east-1, Attached Instance: web-1
    Storage Used: 50 GB, Snapshot ID: snap-0def, Region: us-east-1, Attached Instance: backup, Link: https://...

followed by ``Total Storage Used: 0.16 TB`` and, when some units failed,
a warning block listing the affected regions.

Example
-------
>>> from storage_usage.reporters import CLIReporter
>>>
>>> reporter = CLIReporter()
>>> reporter.report(rows, state)
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence

from rich.console import Console
from rich.markup import escape

from storage_usage.core.aggregator import AggregateState
from storage_usage.core.models import ReportRow

# Module logger
logger = logging.getLogger(__name__)


class CLIReporter:
    """
    Reporter for displaying results in the terminal.

    Parameters
    ----------
    console : Console, optional
        Rich Console instance. If not provided, creates a new one.

    Attributes
    ----------
    console : Console
        The Rich Console used for output.
    """

    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console or Console()
        logger.debug("Initialized CLIReporter")

    def report(self, rows: Sequence[ReportRow], state: AggregateState) -> None:
        """
        Print every row, the total and any regional errors.

        Parameters
        ----------
        rows : sequence of ReportRow
            Ranked rows from :func:`build_report`.
        state : AggregateState
            The run the rows were built from.
        """
        for row in rows:
            self.console.print(escape(self.format_row(row)), soft_wrap=True)

        self.print_total(state)

        if state.errors:
            self._print_errors(state.errors)

    @staticmethod
    def format_row(row: ReportRow) -> str:
        """Render one row as a single console line."""
        line = (
            f"Storage Used: {row.size_display}, {row.type} ID: {row.id}, "
            f"Region: {row.region}, Attached Instance: {row.attached_instance}"
        )
        if row.link:
            line += f", Link: {row.link}"
        return line

    def print_total(self, state: AggregateState) -> None:
        self.console.print(
            f"[bold]Total Storage Used: {state.total_terabytes:.2f} TB[/bold]"
        )

    def _print_errors(self, errors: Dict[str, List[str]]) -> None:
        """
        Print errors encountered during aggregation.

        Parameters
        ----------
        errors : dict
            Mapping of region name to list of error messages.
        """
        self.console.print("\n[yellow bold]Errors encountered:[/yellow bold]")

        for region, error_list in errors.items():
            self.console.print(f"\n[yellow]{region}:[/yellow]")
            for error in error_list:
                self.console.print(f"  [red]• {escape(error)}[/red]")

    # =========================================================================
    # Public Methods: Progress and Messages
    # =========================================================================

    def print_scanning_message(self, regions: List[str]) -> None:
        """Announce the regions about to be scanned."""
        region_preview = ", ".join(regions[:5])
        if len(regions) > 5:
            region_preview += f"... ({len(regions)} total)"
        self.console.print(
            f"\n[bold]Scanning volumes and snapshots across {len(regions)} region(s)...[/bold]"
        )
        self.console.print(f"[dim]Regions: {region_preview}[/dim]")

    def print_completion_message(self, output_file: Optional[str] = None) -> None:
        self.console.print("\n[green bold]Scan complete![/green bold]")
        if output_file:
            self.console.print(f"[dim]Output written to {output_file}[/dim]")

    def print_error(self, message: str) -> None:
        self.console.print(f"\n[red bold]Error:[/red bold] {escape(message)}")

    def __repr__(self) -> str:
        """Return string representation."""
        return "CLIReporter()"
