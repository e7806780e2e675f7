"""Tests for the rule catalog."""

from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from aws_self_review.core import validate_catalog
from aws_self_review.evaluators import iter_rule_ids
from aws_self_review.rules import RuleCatalog, RuleCatalogError, UnknownRuleError


def _write(tmp_path: Path, content: str) -> Path:
    path = tmp_path / "rules.yaml"
    path.write_text(textwrap.dedent(content), encoding="utf-8")
    return path


def test_bundled_catalog_covers_every_evaluator(catalog: RuleCatalog) -> None:
    """Each rule referenced by the evaluator table is declared in rules.yaml."""

    missing = sorted(set(iter_rule_ids()) - set(catalog))
    assert missing == []
    validate_catalog(catalog)


def test_get_returns_rule_metadata(catalog: RuleCatalog) -> None:
    rule = catalog.get("rds-storage-encrypted")

    assert rule.id == "rds-storage-encrypted"
    assert rule.service == "RDS"
    assert rule.severity == "Alert"
    assert rule.issue


def test_get_unknown_rule_is_fatal(catalog: RuleCatalog) -> None:
    with pytest.raises(UnknownRuleError, match="no-such-rule"):
        catalog.get("no-such-rule")


def test_validate_names_every_missing_rule(tmp_path: Path) -> None:
    path = _write(
        tmp_path,
        """
        rules:
          only-rule:
            service: S3
            level: Info
            issue: Something
        """,
    )
    catalog = RuleCatalog.load(path)

    with pytest.raises(UnknownRuleError) as excinfo:
        catalog.validate(["only-rule", "b-rule", "a-rule"])

    assert "a-rule, b-rule" in str(excinfo.value)


def test_load_missing_file(tmp_path: Path) -> None:
    with pytest.raises(RuleCatalogError, match="Failed to read"):
        RuleCatalog.load(tmp_path / "absent.yaml")


def test_load_malformed_yaml(tmp_path: Path) -> None:
    path = _write(tmp_path, "rules: [unclosed\n")

    with pytest.raises(RuleCatalogError, match="Failed to parse"):
        RuleCatalog.load(path)


@pytest.mark.parametrize(
    "content, message",
    [
        ("other: {}\n", "no 'rules' mapping"),
        ("rules:\n  r1: just-a-string\n", "must be a mapping"),
        ("rules:\n  r1:\n    service: S3\n    level: Info\n", "missing: issue"),
        ("rules:\n  r1:\n    service: S3\n    level: Critical\n    issue: x\n", "unknown level 'Critical'"),
    ],
)
def test_load_rejects_invalid_entries(tmp_path: Path, content: str, message: str) -> None:
    path = _write(tmp_path, content)

    with pytest.raises(RuleCatalogError, match=message):
        RuleCatalog.load(path)
