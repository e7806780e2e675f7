"""Shared fixtures for the aws_self_review tests."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[2]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


from aws_self_review.core import Auditor
from aws_self_review.report import Report
from aws_self_review.rules import RuleCatalog


@pytest.fixture(scope="session")
def catalog() -> RuleCatalog:
    return RuleCatalog.load()


@pytest.fixture
def report() -> Report:
    return Report()


@pytest.fixture
def auditor(catalog: RuleCatalog, report: Report) -> Auditor:
    return Auditor(catalog, report)

