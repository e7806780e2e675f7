"""Tests for the command line entry point."""

from __future__ import annotations

import json
from unittest.mock import MagicMock

from aws_self_review import cli
from aws_self_review.config import AuditSettings
from aws_self_review.tests.aws_doubles import client_error


def _fake_session(monkeypatch) -> MagicMock:
    session = MagicMock()
    session.client.return_value.get_caller_identity.return_value = {"Account": "123456789012"}
    monkeypatch.setattr(cli.boto3, "Session", MagicMock(return_value=session))
    return session


def _fake_run_audit(session, services, auditor):
    auditor.evaluate(
        "vpc",
        {"VpcId": "vpc-1", "EnableDnsHostnames": True, "EnableDnsSupport": True, "FlowLogs": []},
    )
    return auditor.report


def test_parse_args_defaults() -> None:
    settings = AuditSettings.from_args(cli.parse_args([]))

    assert settings == AuditSettings()


def test_parse_args_collects_options() -> None:
    args = cli.parse_args(["--profile", "prod", "--services", "rds", "S3", "-f", "--json", "out.json", "-v"])
    settings = AuditSettings.from_args(args)

    assert settings.profile == "prod"
    assert settings.services == ("rds", "S3")
    assert settings.fail_only
    assert settings.json_path == "out.json"
    assert settings.verbose


def test_section_name() -> None:
    assert cli.section_name(["rds"]) == "RDS"
    assert cli.section_name(["wafv2"]) == "WAF v2"
    assert cli.section_name(["rds", "s3"]) == "All Services"


def test_missing_rule_catalog_exits_with_error(tmp_path, capsys) -> None:
    exit_code = cli.main(["--rules", str(tmp_path / "missing.yaml")])

    assert exit_code == 1
    assert capsys.readouterr().err.startswith("Error: Failed to read rule catalog")


def test_unknown_service_exits_with_error(capsys) -> None:
    exit_code = cli.main(["--services", "lambda"])

    assert exit_code == 1
    assert "Unknown service 'lambda'" in capsys.readouterr().err


def test_incomplete_rule_catalog_exits_before_contacting_aws(tmp_path, monkeypatch, capsys) -> None:
    rules = tmp_path / "rules.yaml"
    rules.write_text("rules:\n  vpc-name-tag:\n    service: VPC\n    level: Info\n    issue: Missing\n", encoding="utf-8")
    session_factory = MagicMock()
    monkeypatch.setattr(cli.boto3, "Session", session_factory)

    exit_code = cli.main(["--rules", str(rules)])

    assert exit_code == 1
    assert "Rule(s) not defined in the rule catalog" in capsys.readouterr().err
    session_factory.assert_not_called()


def test_main_renders_report_and_exports_json(tmp_path, monkeypatch, capsys) -> None:
    _fake_session(monkeypatch)
    monkeypatch.setattr(cli, "run_audit", _fake_run_audit)
    output = tmp_path / "results.json"

    exit_code = cli.main(["--services", "vpc", "--json", str(output)])

    assert exit_code == 0
    stdout = capsys.readouterr().out
    assert "Executing on AWS Account: 123456789012" in stdout
    assert "vpc-name-tag" not in stdout
    assert "SERVICE" in stdout
    assert f"Results exported to {output}" in stdout
    data = json.loads(output.read_text(encoding="utf-8"))
    assert {entry["rule_id"] for entry in data} == {
        "vpc-name-tag",
        "vpc-dns-hostnames",
        "vpc-dns-support",
        "vpc-flow-logs",
        "vpc-flow-logs-custom-format",
    }


def test_main_fail_only_hides_passing_rows(monkeypatch, capsys) -> None:
    _fake_session(monkeypatch)
    monkeypatch.setattr(cli, "run_audit", _fake_run_audit)

    exit_code = cli.main(["--services", "vpc", "--fail-only"])

    assert exit_code == 0
    table = [line for line in capsys.readouterr().out.splitlines() if line.startswith("VPC ")]
    assert len(table) == 3
    assert all(" Fail " in line for line in table)


def test_identity_failure_does_not_stop_the_run(monkeypatch, capsys) -> None:
    session = _fake_session(monkeypatch)
    session.client.return_value.get_caller_identity.side_effect = client_error("ExpiredToken", "GetCallerIdentity")
    monkeypatch.setattr(cli, "run_audit", lambda session, services, auditor: auditor.report)

    exit_code = cli.main(["--services", "s3"])

    assert exit_code == 0
    assert capsys.readouterr().out == "S3: No issues found.\n"
