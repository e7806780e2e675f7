"""Tests for report accumulation, rendering and export."""

from __future__ import annotations

import io
import json

from openpyxl import load_workbook

from aws_self_review.findings import EvaluationResult, SkippedCheck
from aws_self_review.report import HEADERS, Report, export_results_to_excel, export_results_to_json, format_table


def _result(rule_id: str, status: str, resource_id: str = "db-1", severity: str = "Warning") -> EvaluationResult:
    return EvaluationResult(
        rule_id=rule_id,
        service="RDS",
        status=status,
        severity=severity,
        resource_id=resource_id,
        observed="Disabled" if status == "Fail" else "Enabled",
        issue=f"{rule_id} issue",
    )


def _sample() -> list:
    return [
        _result("rds-deletion-protection", "Pass"),
        _result("rds-storage-encrypted", "Fail", severity="Alert"),
        _result("rds-copy-tags-to-snapshot", "Pass"),
        _result("rds-tags", "Fail", resource_id="db-2", severity="Info"),
    ]


def test_fail_only_keeps_only_failures_in_order() -> None:
    report = Report(fail_only=True)
    for result in _sample():
        report.add(result)

    assert [row.rule_id for row in report.rows] == ["rds-storage-encrypted", "rds-tags"]
    assert len(report) == 2


def test_full_report_keeps_every_result() -> None:
    report = Report()
    for result in _sample():
        report.add(result)

    assert len(report) == 4
    assert [row.rule_id for row in report.failures()] == ["rds-storage-encrypted", "rds-tags"]


def test_render_prints_table() -> None:
    report = Report()
    for result in _sample():
        report.add(result)
    stream = io.StringIO()

    report.render("RDS", stream)

    lines = stream.getvalue().splitlines()
    assert lines[0].split()[: len(HEADERS) - 1] == list(HEADERS[:-1])
    assert set(lines[1]) == {"-"}
    assert len(lines) == 2 + 4
    assert "rds-storage-encrypted issue" in lines[3]


def test_render_empty_report_prints_notice() -> None:
    stream = io.StringIO()

    Report().render("All Services", stream)

    assert stream.getvalue() == "All Services: No issues found.\n"


def test_render_empty_fail_only_report_prints_nothing() -> None:
    report = Report(fail_only=True)
    report.add(_result("rds-tags", "Pass"))
    stream = io.StringIO()

    report.render("RDS", stream)

    assert stream.getvalue() == ""


def test_passing_rows_show_no_level() -> None:
    lines = format_table([_result("rds-tags", "Pass", severity="Info"), _result("rds-tags", "Fail", severity="Info")])

    assert lines[2].split()[2] == "-"
    assert lines[3].split()[2] == "Info"


def test_long_values_are_truncated() -> None:
    result = _result("rds-tags", "Fail", resource_id="x" * 80)

    lines = format_table([result])

    assert "x" * 45 + "..." in lines[2]
    assert "x" * 49 not in lines[2]


def test_render_skipped_lists_messages() -> None:
    report = Report()
    report.skip(SkippedCheck("ECS", "web", "Failed to describe task definition td:1", "AccessDenied", ("ecs-cpu-architecture",)))
    stream = io.StringIO()

    report.render_skipped(stream)

    assert stream.getvalue().splitlines() == [
        "Warning: 1 check(s) could not be evaluated:",
        "  - ECS web: Failed to describe task definition td:1: AccessDenied (skipped: ecs-cpu-architecture)",
    ]


def test_render_skipped_is_silent_without_skips() -> None:
    stream = io.StringIO()

    Report().render_skipped(stream)

    assert stream.getvalue() == ""


def test_export_results_to_json(tmp_path) -> None:
    path = tmp_path / "results.json"

    export_results_to_json(_sample()[:2], str(path))

    data = json.loads(path.read_text(encoding="utf-8"))
    assert [entry["rule_id"] for entry in data] == ["rds-deletion-protection", "rds-storage-encrypted"]
    assert data[1]["status"] == "Fail"
    assert data[1]["severity"] == "Alert"


def test_export_results_to_excel(tmp_path) -> None:
    path = tmp_path / "results.xlsx"

    export_results_to_excel(_sample(), str(path))

    sheet = load_workbook(path)["Results"]
    rows = list(sheet.iter_rows(values_only=True))
    assert rows[0] == ("Service", "Status", "Level", "Resource", "Setting", "Issue", "Rule")
    assert rows[2] == ("RDS", "Fail", "Alert", "db-1", "Disabled", "rds-storage-encrypted issue", "rds-storage-encrypted")
    assert len(rows) == 5
