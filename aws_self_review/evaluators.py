"""Compliance predicates and the table mapping resource types to rules.

Every predicate takes a resource snapshot (the describe payload returned by a
collector) and the resource's resolved parameters, and returns a
``(passed, observed)`` verdict. Simple attribute checks are built with the
``value_check`` family of factories; the few checks with real logic
(log exports, maintenance windows, sensitive environment variables) are plain
functions that can be called on their own.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple, Union

from .utils import tag_value

Verdict = Tuple[bool, str]
Snapshot = Mapping[str, Any]
Predicate = Callable[[Snapshot, Mapping[str, str]], Verdict]
FieldPath = Union[str, Tuple[str, ...]]

ENABLED_LABELS = ("Enabled", "Disabled")

# Safe maintenance band in minutes since midnight UTC.
SAFE_WINDOW_START = 13 * 60
SAFE_WINDOW_END = 20 * 60

SENSITIVE_KEYWORDS = ("PASSWORD", "TOKEN", "SECRET", "KEY", "CREDENTIAL")

FLOW_LOG_REQUIRED_FIELDS = ("tcp-flags", "pkt-srcaddr", "pkt-dstaddr", "flow-direction")

# Key under which collectors attach the described task definition to a service.
TASK_DEFINITION_FIELD = "taskDefinitionDescription"


@dataclass(frozen=True)
class Check:
    """Binds a rule identifier to the predicate that evaluates it."""

    rule_id: str
    predicate: Predicate
    uses_parameters: bool = False
    applies: Optional[Callable[[Snapshot], bool]] = None

    def applies_to(self, snapshot: Snapshot) -> bool:
        return self.applies is None or bool(self.applies(snapshot))


@dataclass(frozen=True)
class ResourceType:
    """How to name a resource of one type and which checks to run on it."""

    id_field: FieldPath
    checks: Tuple[Check, ...]

    def resource_id(self, snapshot: Snapshot) -> str:
        value = dig(snapshot, self.id_field)
        return str(value) if value not in (None, "") else "unknown"


def dig(snapshot: Snapshot, path: FieldPath) -> Any:
    """Return the value at *path*, or ``None`` when any step is missing.

    A string path is a single key (keys may contain dots); a tuple walks
    nested mappings.
    """

    keys = (path,) if isinstance(path, str) else path
    value: Any = snapshot
    for key in keys:
        if not isinstance(value, Mapping):
            return None
        value = value.get(key)
        if value is None:
            return None
    return value


# ---------------------------------------------------------------------------
# Uniform attribute checks
# ---------------------------------------------------------------------------


def value_check(
    path: FieldPath,
    accept: Callable[[Any], Any],
    *,
    default: Any = None,
    labels: Optional[Tuple[str, str]] = None,
) -> Predicate:
    """Build a predicate that passes when ``accept(value)`` is truthy.

    The observed value is ``labels[0]``/``labels[1]`` when labels are given,
    otherwise the literal attribute value.
    """

    def predicate(snapshot: Snapshot, _parameters: Mapping[str, str]) -> Verdict:
        value = dig(snapshot, path)
        if value is None:
            value = default
        passed = bool(accept(value))
        if labels:
            return passed, labels[0] if passed else labels[1]
        return passed, "Not set" if value is None else str(value)

    return predicate


def flag_check(path: FieldPath, labels: Tuple[str, str] = ENABLED_LABELS) -> Predicate:
    return value_check(path, bool, labels=labels)


def equals_check(path: FieldPath, expected: Any, *, default: Any = None) -> Predicate:
    return value_check(path, lambda value: value == expected, default=default)


def present_check(path: FieldPath) -> Predicate:
    return value_check(path, lambda value: value not in (None, "", [], {}))


def tag_check(path: FieldPath, key: str) -> Predicate:
    """Pass when the ``[{Key, Value}]`` tag list at *path* has tag *key*."""

    def predicate(snapshot: Snapshot, _parameters: Mapping[str, str]) -> Verdict:
        value = tag_value(dig(snapshot, path) or [], key)
        if value is None:
            return False, "Missing"
        return True, value or "(empty)"

    return predicate


def tags_present_check(path: FieldPath) -> Predicate:
    def predicate(snapshot: Snapshot, _parameters: Mapping[str, str]) -> Verdict:
        count = len(dig(snapshot, path) or [])
        return count > 0, f"{count} tag(s)" if count else "None"

    return predicate


# ---------------------------------------------------------------------------
# Log exports
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LogRequirement:
    rule_id: str
    categories: Tuple[str, ...]
    parameter: Optional[str] = None
    parameter_optional: bool = False


LOG_REQUIREMENTS: Tuple[LogRequirement, ...] = (
    LogRequirement("rds-general-log", ("general",), "general_log"),
    LogRequirement("rds-slow-query-log", ("slowquery",), "slow_query_log"),
    # Engines without an audit parameter only need the export.
    LogRequirement("rds-audit-log", ("audit",), "server_audit_logging", parameter_optional=True),
    # Engines label the error log differently.
    LogRequirement("rds-error-log", ("error", "postgresql", "alert")),
)


def is_truthy_parameter(value: Optional[str]) -> bool:
    return value is not None and (value == "1" or value.upper() == "ON")


def check_logs(exports: Optional[Iterable[str]], parameters: Mapping[str, str]) -> Dict[str, Verdict]:
    """Evaluate the general, slow query, audit and error log rules.

    A rule passes only when one of its categories is exported and, where the
    rule has an engine parameter, that parameter is ``1`` or ``ON``.
    """

    exported = set(exports or ())
    verdicts: Dict[str, Verdict] = {}
    for requirement in LOG_REQUIREMENTS:
        is_exported = any(category in exported for category in requirement.categories)
        observed = "Exported" if is_exported else "Not exported"
        parameter_ok = True
        if requirement.parameter:
            value = parameters.get(requirement.parameter)
            if value is None:
                parameter_ok = requirement.parameter_optional
                observed += f", {requirement.parameter} not set"
            else:
                parameter_ok = is_truthy_parameter(value)
                observed += f", {requirement.parameter}={value}"
        verdicts[requirement.rule_id] = (is_exported and parameter_ok, observed)
    return verdicts


def log_check(rule_id: str, path: FieldPath = "EnabledCloudwatchLogsExports") -> Predicate:
    def predicate(snapshot: Snapshot, parameters: Mapping[str, str]) -> Verdict:
        return check_logs(dig(snapshot, path), parameters)[rule_id]

    return predicate


# ---------------------------------------------------------------------------
# Maintenance window
# ---------------------------------------------------------------------------


def is_window_valid(descriptor: Optional[str]) -> bool:
    """Return whether a ``ddd:HH:MM-ddd:HH:MM`` window lies in the safe band.

    The day of week is ignored, so a window that crosses midnight is always
    invalid.
    """

    endpoints = (descriptor or "").split("-")
    if len(endpoints) != 2:
        return False

    minutes: List[int] = []
    for endpoint in endpoints:
        segments = endpoint.split(":")
        if len(segments) != 3:
            return False
        try:
            hour, minute = int(segments[1]), int(segments[2])
        except ValueError:
            return False
        minutes.append(hour * 60 + minute)

    start, end = minutes
    return start >= SAFE_WINDOW_START and end <= SAFE_WINDOW_END and end > start


def window_check(path: FieldPath) -> Predicate:
    def predicate(snapshot: Snapshot, _parameters: Mapping[str, str]) -> Verdict:
        descriptor = dig(snapshot, path)
        return is_window_valid(descriptor), descriptor or "Not set"

    return predicate


# ---------------------------------------------------------------------------
# Sensitive configuration keys
# ---------------------------------------------------------------------------


def find_sensitive_keys(keys: Iterable[str]) -> List[str]:
    """Return the keys that contain a sensitive keyword, case-insensitively."""

    return [key for key in keys if any(word in key.upper() for word in SENSITIVE_KEYWORDS)]


def check_sensitive_environment_variables(task_definition: Snapshot) -> Verdict:
    """Flag container environment variable names that look like secrets.

    Only names are inspected. A name such as ``API_KEY_ARN`` is reported even
    though it likely references a secret rather than holding one.
    """

    names = [
        env.get("name", "")
        for container in task_definition.get("containerDefinitions") or []
        for env in container.get("environment") or []
    ]
    found = find_sensitive_keys(names)
    if found:
        return False, f"Found: {', '.join(found)}"
    return True, "Safe"


def _sensitive_environment(snapshot: Snapshot, _parameters: Mapping[str, str]) -> Verdict:
    return check_sensitive_environment_variables(snapshot.get(TASK_DEFINITION_FIELD) or {})


# ---------------------------------------------------------------------------
# Checks with service-specific shapes
# ---------------------------------------------------------------------------


def _container_insights(snapshot: Snapshot, _parameters: Mapping[str, str]) -> Verdict:
    for setting in snapshot.get("settings") or []:
        if setting.get("name") == "containerInsights":
            value = setting.get("value") or "disabled"
            return value in ("enabled", "enhanced"), value
    return False, "disabled"


def _exec_logging(snapshot: Snapshot, _parameters: Mapping[str, str]) -> Verdict:
    config = dig(snapshot, ("configuration", "executeCommandConfiguration"))
    if not config:
        return False, "Disabled"
    logging_mode = config.get("logging") or "DEFAULT"
    return logging_mode != "NONE", logging_mode


def _targets_healthy(snapshot: Snapshot, _parameters: Mapping[str, str]) -> Verdict:
    descriptions = snapshot.get("TargetHealthDescriptions") or []
    if not descriptions:
        return False, "No targets"
    for description in descriptions:
        state = dig(description, ("TargetHealth", "State")) or "unknown"
        if state != "healthy":
            return False, state
    return True, "healthy"


def _distribution_logging(snapshot: Snapshot, _parameters: Mapping[str, str]) -> Verdict:
    config = snapshot.get("DistributionConfig") or {}
    if dig(config, ("Logging", "Enabled")):
        return True, "Standard"
    behaviors = [config.get("DefaultCacheBehavior") or {}]
    behaviors.extend(dig(config, ("CacheBehaviors", "Items")) or [])
    if any(behavior.get("RealtimeLogConfigArn") for behavior in behaviors):
        return True, "Real-time"
    return False, "Disabled"


def _flow_log_format(snapshot: Snapshot, _parameters: Mapping[str, str]) -> Verdict:
    flow_logs = snapshot.get("FlowLogs") or []
    if not flow_logs:
        return False, "No flow logs"
    for flow_log in flow_logs:
        log_format = flow_log.get("LogFormat") or ""
        if all(field in log_format for field in FLOW_LOG_REQUIRED_FIELDS):
            return True, "Custom"
    return False, "Default"


def _is_log_bucket(snapshot: Snapshot) -> bool:
    return "log" in (snapshot.get("Name") or "")


def _is_standalone_instance(snapshot: Snapshot) -> bool:
    return not snapshot.get("DBClusterIdentifier")


def _rds_log_checks(applies: Optional[Callable[[Snapshot], bool]] = None) -> Tuple[Check, ...]:
    return tuple(
        Check(
            requirement.rule_id,
            log_check(requirement.rule_id),
            uses_parameters=requirement.parameter is not None,
            applies=applies,
        )
        for requirement in LOG_REQUIREMENTS
    )


# ---------------------------------------------------------------------------
# Resource type table
# ---------------------------------------------------------------------------


RESOURCE_TYPES: Mapping[str, ResourceType] = {
    "alb": ResourceType(
        "LoadBalancerName",
        (
            Check("alb-access-logging", value_check(("Attributes", "access_logs.s3.enabled"), lambda v: v == "true", labels=ENABLED_LABELS)),
            Check("alb-connection-logging", value_check(("Attributes", "connection_logs.s3.enabled"), lambda v: v == "true", labels=ENABLED_LABELS)),
            Check("alb-deletion-protection", value_check(("Attributes", "deletion_protection.enabled"), lambda v: v == "true", labels=ENABLED_LABELS)),
        ),
    ),
    "elb-target-group": ResourceType("Name", (Check("elb-target-health", _targets_healthy),)),
    "cloudfront-distribution": ResourceType("Id", (Check("cloudfront-logging-enabled", _distribution_logging),)),
    "cloudwatch-log-group": ResourceType(
        "logGroupName", (Check("cloudwatchlogs-retention", present_check("retentionInDays")),)
    ),
    "ec2-account": ResourceType("Region", (Check("ec2-ebs-default-encryption", flag_check("EbsEncryptionByDefault")),)),
    "ebs-volume": ResourceType(
        "VolumeId", (Check("ec2-volume-encryption", flag_check("Encrypted", ("Encrypted", "Unencrypted"))),)
    ),
    "ebs-snapshot": ResourceType(
        "SnapshotId", (Check("ec2-snapshot-encryption", flag_check("Encrypted", ("Encrypted", "Unencrypted"))),)
    ),
    "ecr-repository": ResourceType(
        "repositoryName",
        (
            Check("ecr-tag-immutability", equals_check("imageTagMutability", "IMMUTABLE")),
            Check("ecr-scan-on-push", flag_check(("imageScanningConfiguration", "scanOnPush"))),
            Check("ecr-lifecycle-policy", flag_check("lifecyclePolicy", ("Configured", "Not configured"))),
        ),
    ),
    "ecs-cluster": ResourceType(
        "clusterName",
        (
            Check("ecs-container-insights", _container_insights),
            Check("ecs-exec-logging", _exec_logging),
        ),
    ),
    "ecs-service": ResourceType(
        "serviceName",
        (
            Check("ecs-service-circuit-breaker", flag_check(("deploymentConfiguration", "deploymentCircuitBreaker", "enable"))),
            Check(
                "ecs-cpu-architecture",
                equals_check((TASK_DEFINITION_FIELD, "runtimePlatform", "cpuArchitecture"), "ARM64"),
            ),
            Check("ecs-sensitive-environment-variables", _sensitive_environment),
            Check("ecs-propagate-tags", value_check("propagateTags", lambda v: v != "NONE", default="NONE")),
        ),
    ),
    "observability-account": ResourceType(
        "Resource",
        (
            Check(
                "telemetry-resource-tags-enabled",
                value_check("Status", lambda v: v == "Running", default="Disabled/Missing"),
            ),
        ),
    ),
    "rds-cluster": ResourceType(
        "DBClusterIdentifier",
        (
            Check("rds-storage-encrypted", flag_check("StorageEncrypted")),
            Check("rds-deletion-protection", flag_check("DeletionProtection")),
            Check("rds-copy-tags-to-snapshot", flag_check("CopyTagsToSnapshot")),
            *_rds_log_checks(),
            Check("rds-maintenance-window", window_check("PreferredMaintenanceWindow")),
            Check("rds-tags", tags_present_check("TagList")),
        ),
    ),
    "rds-instance": ResourceType(
        "DBInstanceIdentifier",
        (
            Check("rds-public-access", value_check("PubliclyAccessible", lambda v: not v, labels=("Private", "Public"))),
            Check("rds-storage-encrypted", flag_check("StorageEncrypted"), applies=_is_standalone_instance),
            Check("rds-deletion-protection", flag_check("DeletionProtection"), applies=_is_standalone_instance),
            Check("rds-auto-minor-version-upgrade", flag_check("AutoMinorVersionUpgrade")),
            *_rds_log_checks(applies=_is_standalone_instance),
            Check("rds-maintenance-window", window_check("PreferredMaintenanceWindow")),
        ),
    ),
    "route53-hosted-zone": ResourceType(
        "Name", (Check("route53-query-logging", value_check("QueryLoggingConfigs", bool, labels=ENABLED_LABELS)),)
    ),
    "s3-account": ResourceType("AccountId", (Check("s3-storage-lens", flag_check("StorageLensEnabled")),)),
    "s3-bucket": ResourceType(
        "Name",
        (
            Check("s3-encryption", flag_check("Encryption")),
            Check("s3-public-access", flag_check("PublicAccessBlock")),
            Check("s3-lifecycle", flag_check("Lifecycle", ("Configured", "Not configured")), applies=_is_log_bucket),
            Check("s3-object-lock", flag_check("ObjectLock"), applies=_is_log_bucket),
        ),
    ),
    "vpc": ResourceType(
        "VpcId",
        (
            Check("vpc-name-tag", tag_check("Tags", "Name")),
            Check("vpc-dns-hostnames", flag_check("EnableDnsHostnames")),
            Check("vpc-dns-support", flag_check("EnableDnsSupport")),
            Check("vpc-flow-logs", value_check("FlowLogs", bool, labels=ENABLED_LABELS)),
            Check("vpc-flow-logs-custom-format", _flow_log_format),
        ),
    ),
    "wafv2-web-acl": ResourceType("Name", (Check("wafv2-logging-enabled", flag_check("LoggingEnabled")),)),
}


def checks_for(resource_type: str) -> Sequence[Check]:
    try:
        return RESOURCE_TYPES[resource_type].checks
    except KeyError:
        valid = ", ".join(sorted(RESOURCE_TYPES))
        raise ValueError(f"Unknown resource type '{resource_type}'. Valid types: {valid}") from None


def resource_id_of(resource_type: str, snapshot: Snapshot) -> str:
    checks_for(resource_type)
    return RESOURCE_TYPES[resource_type].resource_id(snapshot)


def iter_rule_ids() -> Iterator[str]:
    """Yield every rule id referenced by the resource type table."""

    for resource_type in RESOURCE_TYPES.values():
        for check in resource_type.checks:
            yield check.rule_id


__all__ = [
    "Check",
    "LOG_REQUIREMENTS",
    "RESOURCE_TYPES",
    "ResourceType",
    "SAFE_WINDOW_END",
    "SAFE_WINDOW_START",
    "SENSITIVE_KEYWORDS",
    "TASK_DEFINITION_FIELD",
    "Verdict",
    "check_logs",
    "check_sensitive_environment_variables",
    "checks_for",
    "dig",
    "equals_check",
    "find_sensitive_keys",
    "flag_check",
    "is_truthy_parameter",
    "is_window_valid",
    "iter_rule_ids",
    "present_check",
    "resource_id_of",
    "tag_check",
    "value_check",
]
