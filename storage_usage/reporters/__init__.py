"""
Report Generators
=================

build_report
    Ranks entities and formats them as :class:`ReportRow` objects.
CLIReporter
    One console line per row plus the total, using Rich.
JSONReporter
    The report file (array of rows), rewritten every run.

Example
-------
>>> from storage_usage.reporters import CLIReporter, JSONReporter, build_report
>>>
>>> rows = build_report(state.entities)
>>> CLIReporter().report(rows, state)
>>> JSONReporter(output_path="storage.json").report(rows)
"""

from storage_usage.reporters.cli_reporter import CLIReporter
from storage_usage.reporters.json_reporter import JSONReporter
from storage_usage.reporters.report_builder import (
    NOT_ATTACHED,
    build_report,
    console_link,
    format_bytes,
)

__all__ = [
    "CLIReporter",
    "JSONReporter",
    "NOT_ATTACHED",
    "build_report",
    "console_link",
    "format_bytes",
]
