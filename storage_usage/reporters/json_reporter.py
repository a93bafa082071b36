"""
JSON Reporter Module
====================

Writes the ranked report rows to a JSON file.

Output Structure
----------------
::

    [
      {
        "Type": "Volume",
        "ID": "vol-0abc",
        "StorageUsed": "100",
        "Region": "us-east-1",
        "AttachedInstance": "web-1",
        "Link": ""
      },
      ...
    ]

``StorageUsed`` is the size in whole GiB. The file is rewritten on every
run.

Example
-------
>>> from storage_usage.reporters import JSONReporter
>>>
>>> reporter = JSONReporter(output_path="storage.json")
>>> filepath = reporter.report(rows)
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from storage_usage.core.config import DEFAULT_REPORT_PATH
from storage_usage.core.exceptions import ReportWriteError
from storage_usage.core.models import ReportRow

# Module logger
logger = logging.getLogger(__name__)


class JSONReporter:
    """
    Reporter for exporting report rows to JSON.

    Parameters
    ----------
    output_path : str, default="storage.json"
        Path of the report file.
    indent : int, default=2
        JSON indentation level. None for compact output.

    Examples
    --------
    >>> reporter = JSONReporter(output_path="results.json")
    >>> filepath = reporter.report(rows)

    >>> reporter = JSONReporter(indent=None)
    >>> json_str = reporter.to_string(rows)
    """

    def __init__(
        self,
        output_path: str = DEFAULT_REPORT_PATH,
        indent: Optional[int] = 2,
    ) -> None:
        self.output_path = output_path
        self.indent = indent
        logger.debug(f"Initialized JSONReporter (output_path={output_path})")

    def report(self, rows: Sequence[ReportRow]) -> str:
        """
        Write ``rows`` to the report file, replacing any previous content.

        Returns
        -------
        str
            Path of the written file.

        Raises
        ------
        ReportWriteError
            If the file cannot be written.
        """
        output_path = Path(self.output_path)
        logger.info(f"Exporting {len(rows)} rows to {output_path}")

        try:
            with open(output_path, "w", encoding="utf-8") as f:
                json.dump(self.to_list(rows), f, indent=self.indent)
        except OSError as e:
            logger.error(f"Failed to write report to {output_path}: {e}")
            raise ReportWriteError(
                f"Failed to write report: {e}",
                path=str(output_path),
            )

        logger.info(f"JSON export complete: {output_path}")
        return str(output_path)

    def to_string(self, rows: Sequence[ReportRow]) -> str:
        """Serialize ``rows`` without touching the filesystem."""
        return json.dumps(self.to_list(rows), indent=self.indent)

    @staticmethod
    def to_list(rows: Sequence[ReportRow]) -> List[Dict[str, Any]]:
        return [row.to_dict() for row in rows]

    def __repr__(self) -> str:
        """Return string representation."""
        return f"JSONReporter(output_path={self.output_path!r}, indent={self.indent})"
