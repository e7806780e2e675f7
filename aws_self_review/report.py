"""Accumulation, filtering and presentation of evaluation results."""
from __future__ import annotations

import json
import sys
from dataclasses import asdict
from typing import IO, Iterable, List, Optional, Sequence, Tuple

from openpyxl import Workbook
from openpyxl.utils import get_column_letter

from .findings import EvaluationResult, SkippedCheck

HEADERS = ("SERVICE", "STATUS", "LEVEL", "RESOURCE", "SETTING", "ISSUE")

# Widest a non-final column may grow before values are truncated.
MAX_COLUMN_WIDTH = 48


class Report:
    """Ordered evaluation results for one audit run.

    With ``fail_only`` set, passing results are discarded as they arrive; the
    checks themselves still run.
    """

    def __init__(self, fail_only: bool = False) -> None:
        self.fail_only = fail_only
        self._rows: List[EvaluationResult] = []
        self._skipped: List[SkippedCheck] = []

    def add(self, result: EvaluationResult) -> None:
        if self.fail_only and result.passed:
            return
        self._rows.append(result)

    def skip(self, skipped: SkippedCheck) -> None:
        self._skipped.append(skipped)

    @property
    def rows(self) -> Tuple[EvaluationResult, ...]:
        return tuple(self._rows)

    @property
    def skipped(self) -> Tuple[SkippedCheck, ...]:
        return tuple(self._skipped)

    def failures(self) -> List[EvaluationResult]:
        return [row for row in self._rows if not row.passed]

    def __len__(self) -> int:
        return len(self._rows)

    def render(self, section: str, stream: Optional[IO[str]] = None) -> None:
        """Print the result table, or a notice naming *section* when empty.

        The notice is suppressed in fail-only mode.
        """

        stream = stream if stream is not None else sys.stdout
        if self._rows:
            for line in format_table(self._rows):
                print(line, file=stream)
        elif not self.fail_only:
            print(f"{section}: No issues found.", file=stream)

    def render_skipped(self, stream: Optional[IO[str]] = None) -> None:
        """List checks that could not be evaluated."""

        if not self._skipped:
            return
        stream = stream if stream is not None else sys.stderr
        print(f"Warning: {len(self._skipped)} check(s) could not be evaluated:", file=stream)
        for skipped in self._skipped:
            print(f"  - {skipped.message()}", file=stream)


def _display_row(result: EvaluationResult) -> Tuple[str, ...]:
    service, status, severity, resource_id, observed, issue = result.as_row()
    return (service, status, "-" if result.passed else severity, resource_id, observed, issue)


def _truncate(value: str, width: int) -> str:
    return value if len(value) <= width else value[: width - 3] + "..."


def format_table(results: Iterable[EvaluationResult]) -> List[str]:
    """Return the lines of a fixed-width table for *results*."""

    rows = [_display_row(result) for result in results]
    widths = [len(header) for header in HEADERS[:-1]]
    for row in rows:
        for idx, value in enumerate(row[:-1]):
            widths[idx] = min(max(widths[idx], len(value)), MAX_COLUMN_WIDTH)

    def line(values: Sequence[str]) -> str:
        cells = [f"{_truncate(value, width):<{width}}" for value, width in zip(values, widths)]
        return " ".join(cells + [values[-1]])

    header = line(HEADERS)
    lines = [header, "-" * len(header)]
    lines.extend(line(row) for row in rows)
    return lines


def export_results_to_json(results: Iterable[EvaluationResult], path: str) -> str:
    """Write *results* as a JSON array to *path*."""

    with open(path, "w", encoding="utf-8") as fh:
        json.dump([asdict(result) for result in results], fh, indent=2)
    return path


def export_results_to_excel(results: Iterable[EvaluationResult], path: str) -> str:
    """Write *results* to an Excel workbook located at *path*."""

    workbook = Workbook()
    sheet = workbook.active
    sheet.title = "Results"

    headers = ("Service", "Status", "Level", "Resource", "Setting", "Issue", "Rule")
    sheet.append(list(headers))
    column_widths = [len(header) for header in headers]

    for result in results:
        values = list(result.as_row()) + [result.rule_id]
        sheet.append(values)
        for idx, value in enumerate(values):
            column_widths[idx] = max(column_widths[idx], len(str(value)))

    for idx, width in enumerate(column_widths, start=1):
        sheet.column_dimensions[get_column_letter(idx)].width = min(width + 2, 60)

    workbook.save(path)
    return path


__all__ = [
    "HEADERS",
    "Report",
    "export_results_to_excel",
    "export_results_to_json",
    "format_table",
]
