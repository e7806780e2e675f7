"""Check AWS resource configurations against a catalog of best-practice rules."""

from __future__ import annotations

from .core import Auditor, run_audit
from .findings import EvaluationResult, SkippedCheck
from .parameters import ParameterCache, ParameterResolver, ParameterSet
from .report import Report
from .rules import Rule, RuleCatalog, RuleCatalogError, UnknownRuleError

__all__ = [
    "Auditor",
    "EvaluationResult",
    "ParameterCache",
    "ParameterResolver",
    "ParameterSet",
    "Report",
    "Rule",
    "RuleCatalog",
    "RuleCatalogError",
    "SkippedCheck",
    "UnknownRuleError",
    "run_audit",
]
