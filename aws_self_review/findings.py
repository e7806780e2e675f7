"""Data models for evaluation results."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Tuple

Status = Literal["Pass", "Fail"]


@dataclass(frozen=True)
class EvaluationResult:
    """Outcome of one rule evaluated against one resource."""

    rule_id: str
    service: str
    status: Status
    severity: str
    resource_id: str
    observed: str
    issue: str

    @property
    def passed(self) -> bool:
        return self.status == "Pass"

    def as_row(self) -> Tuple[str, str, str, str, str, str]:
        """Return the values shown in the report table, in column order."""

        return (self.service, self.status, self.severity, self.resource_id, self.observed, self.issue)


@dataclass(frozen=True)
class SkippedCheck:
    """A check that could not be evaluated because supporting data was unavailable."""

    service: str
    resource_id: str
    action: str
    reason: str
    rule_ids: Tuple[str, ...] = ()

    def message(self) -> str:
        action = self.action.rstrip(".")
        text = f"{self.service} {self.resource_id}: {action}: {self.reason}"
        if self.rule_ids:
            text += f" (skipped: {', '.join(self.rule_ids)})"
        return text


__all__ = ["EvaluationResult", "SkippedCheck", "Status"]
