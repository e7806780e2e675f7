"""Core orchestration for an audit run."""
from __future__ import annotations

import logging
from typing import Any, Collection, Iterable, List, Mapping, Optional

import boto3

from .evaluators import checks_for, iter_rule_ids, resource_id_of
from .findings import EvaluationResult, SkippedCheck
from .parameters import ParameterCache, ParameterResolver
from .report import Report
from .rules import RuleCatalog
from .services import COLLECTORS

logger = logging.getLogger(__name__)


class Auditor:
    """Runs the checks for each resource snapshot and feeds the report.

    One auditor lives for one run; it owns the parameter cache shared by every
    resolver it hands out.
    """

    def __init__(
        self,
        catalog: RuleCatalog,
        report: Report,
        parameter_cache: Optional[ParameterCache] = None,
    ) -> None:
        self.catalog = catalog
        self.report = report
        self.parameter_cache = parameter_cache if parameter_cache is not None else ParameterCache()

    def parameter_resolver(self, client: Any) -> ParameterResolver:
        return ParameterResolver(client, self.parameter_cache)

    def evaluate(
        self,
        resource_type: str,
        snapshot: Mapping[str, Any],
        parameters: Optional[Mapping[str, str]] = None,
        *,
        skip_rules: Collection[str] = (),
    ) -> List[EvaluationResult]:
        """Evaluate every applicable check for *snapshot* and record the results.

        Checks named in *skip_rules* are left out. Parameter-dependent checks
        are skipped, and reported as such, when *parameters* could not be
        resolved.
        """

        checks = checks_for(resource_type)
        resource_id = resource_id_of(resource_type, snapshot)
        parameters = parameters if parameters is not None else {}
        parameters_resolved = getattr(parameters, "resolved", True)

        results: List[EvaluationResult] = []
        unresolved: List[str] = []
        for check in checks:
            if check.rule_id in skip_rules or not check.applies_to(snapshot):
                continue
            rule = self.catalog.get(check.rule_id)
            if check.uses_parameters and not parameters_resolved:
                unresolved.append(rule.id)
                continue
            passed, observed = check.predicate(snapshot, parameters)
            result = EvaluationResult(
                rule_id=rule.id,
                service=rule.service,
                status="Pass" if passed else "Fail",
                severity=rule.severity,
                resource_id=resource_id,
                observed=observed,
                issue=rule.issue,
            )
            self.report.add(result)
            results.append(result)

        if unresolved:
            self.skip(
                self.catalog.get(unresolved[0]).service,
                resource_id,
                f"Parameter group {getattr(parameters, 'group_name', '')} unavailable",
                "parameters could not be described",
                rule_ids=unresolved,
            )
        return results

    def skip(
        self,
        service: str,
        resource_id: str,
        action: str,
        reason: object,
        *,
        rule_ids: Iterable[str] = (),
    ) -> SkippedCheck:
        """Record that checks for *resource_id* were not evaluated."""

        skipped = SkippedCheck(
            service=service,
            resource_id=resource_id,
            action=action,
            reason=str(reason),
            rule_ids=tuple(rule_ids),
        )
        logger.warning("%s", skipped.message())
        self.report.skip(skipped)
        return skipped


def validate_catalog(catalog: RuleCatalog) -> None:
    """Fail fast when the evaluator table references undeclared rules."""

    catalog.validate(iter_rule_ids())


def normalize_services(services: Optional[Iterable[str]], available: Iterable[str]) -> List[str]:
    """Return lower-cased, de-duplicated service names, all of them by default."""

    available = list(available)
    if not services:
        return available

    normalized: List[str] = []
    for service in services:
        key = service.lower()
        if key not in available:
            valid = ", ".join(sorted(available))
            raise ValueError(f"Unknown service '{service}'. Valid services: {valid}")
        normalized.append(key)
    return list(dict.fromkeys(normalized))


def run_audit(
    session: boto3.session.Session,
    services: Iterable[str],
    auditor: Auditor,
) -> Report:
    """Run the collectors for *services* in order and return the report."""

    selected = normalize_services(list(services), COLLECTORS.keys())
    for service in selected:
        logger.info("Auditing %s", COLLECTORS.display_name(service))
        COLLECTORS[service](session, auditor)
    return auditor.report


__all__ = ["Auditor", "normalize_services", "run_audit", "validate_catalog"]
