"""Rule catalog loaded from the bundled ``rules.yaml``."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, Iterator, Literal, Optional, Union, get_args

import yaml

Severity = Literal["Info", "Warning", "Alert"]

SEVERITIES = get_args(Severity)

DEFAULT_RULES_PATH = Path(__file__).parent / "data" / "rules.yaml"


class RuleCatalogError(RuntimeError):
    """Raised when the rule catalog cannot be loaded or is inconsistent."""


class UnknownRuleError(RuleCatalogError):
    """Raised when a rule identifier is not declared in the catalog."""


@dataclass(frozen=True)
class Rule:
    """A named compliance check with its owning service and severity."""

    id: str
    service: str
    severity: Severity
    issue: str


class RuleCatalog:
    """Read-only mapping of rule identifier to :class:`Rule`."""

    def __init__(self, rules: Dict[str, Rule]) -> None:
        self._rules = dict(rules)

    @classmethod
    def load(cls, path: Optional[Union[str, Path]] = None) -> "RuleCatalog":
        """Parse the YAML catalog at *path* (the bundled catalog by default).

        Any problem with the source raises :class:`RuleCatalogError`; the
        catalog is a startup precondition, not something to degrade around.
        """

        source = Path(path) if path is not None else DEFAULT_RULES_PATH
        try:
            with open(source, encoding="utf-8") as fh:
                raw = yaml.safe_load(fh)
        except OSError as exc:
            raise RuleCatalogError(f"Failed to read rule catalog {source}: {exc}") from exc
        except yaml.YAMLError as exc:
            raise RuleCatalogError(f"Failed to parse rule catalog {source}: {exc}") from exc

        entries = raw.get("rules") if isinstance(raw, dict) else None
        if not isinstance(entries, dict) or not entries:
            raise RuleCatalogError(f"Rule catalog {source} has no 'rules' mapping")

        rules: Dict[str, Rule] = {}
        for rule_id, entry in entries.items():
            rules[str(rule_id)] = _parse_rule(str(rule_id), entry, source)
        return cls(rules)

    def get(self, rule_id: str) -> Rule:
        """Return the rule for *rule_id* or raise :class:`UnknownRuleError`."""

        try:
            return self._rules[rule_id]
        except KeyError:
            raise UnknownRuleError(f"Rule '{rule_id}' is not defined in the rule catalog") from None

    def validate(self, rule_ids: Iterable[str]) -> None:
        """Ensure every id in *rule_ids* is declared."""

        missing = sorted(set(rule_ids) - set(self._rules))
        if missing:
            raise UnknownRuleError(
                "Rule(s) not defined in the rule catalog: " + ", ".join(missing)
            )

    def __contains__(self, rule_id: object) -> bool:
        return rule_id in self._rules

    def __iter__(self) -> Iterator[str]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)


def _parse_rule(rule_id: str, entry: object, source: Path) -> Rule:
    if not isinstance(entry, dict):
        raise RuleCatalogError(f"Rule '{rule_id}' in {source} must be a mapping")

    missing = [key for key in ("service", "level", "issue") if not entry.get(key)]
    if missing:
        raise RuleCatalogError(
            f"Rule '{rule_id}' in {source} is missing: {', '.join(missing)}"
        )

    level = str(entry["level"])
    if level not in SEVERITIES:
        valid = ", ".join(SEVERITIES)
        raise RuleCatalogError(
            f"Rule '{rule_id}' in {source} has unknown level '{level}'. Valid levels: {valid}"
        )
    return Rule(id=rule_id, service=str(entry["service"]), severity=level, issue=str(entry["issue"]))


__all__ = [
    "DEFAULT_RULES_PATH",
    "Rule",
    "RuleCatalog",
    "RuleCatalogError",
    "SEVERITIES",
    "Severity",
    "UnknownRuleError",
]
