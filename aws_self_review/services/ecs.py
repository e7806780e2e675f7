"""Collector for Amazon ECS clusters, services and task definitions."""
from __future__ import annotations

from typing import TYPE_CHECKING, Dict, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..evaluators import TASK_DEFINITION_FIELD
from ..utils import batch_iterable, safe_paginate
from . import register_collector

if TYPE_CHECKING:
    from ..core import Auditor

CLUSTER_BATCH_SIZE = 100  # describe_clusters limit
SERVICE_BATCH_SIZE = 10  # describe_services limit

TASK_DEFINITION_RULES = ("ecs-cpu-architecture", "ecs-sensitive-environment-variables")


@register_collector("ecs", "ECS")
def collect_ecs(session: boto3.session.Session, auditor: "Auditor") -> None:
    """Evaluate clusters, then the services and task definitions they run."""

    ecs = session.client("ecs")
    try:
        cluster_arns = list(safe_paginate(ecs, "list_clusters", "clusterArns"))
    except (ClientError, BotoCoreError) as exc:
        auditor.skip("ECS", "*", "Failed to list ECS clusters", exc)
        return

    task_definitions: Dict[str, Optional[dict]] = {}
    for batch in batch_iterable(cluster_arns, CLUSTER_BATCH_SIZE):
        try:
            response = ecs.describe_clusters(clusters=list(batch), include=["SETTINGS", "CONFIGURATIONS"])
        except (ClientError, BotoCoreError) as exc:
            for arn in batch:
                auditor.skip("ECS", arn, "Failed to describe cluster", exc)
            continue

        for cluster in response.get("clusters", []):
            auditor.evaluate("ecs-cluster", cluster)
            _collect_services(ecs, auditor, cluster, task_definitions)


def _collect_services(
    ecs: boto3.client,
    auditor: "Auditor",
    cluster: dict,
    task_definitions: Dict[str, Optional[dict]],
) -> None:
    cluster_arn = cluster["clusterArn"]
    cluster_name = cluster.get("clusterName", cluster_arn)
    try:
        service_arns = list(safe_paginate(ecs, "list_services", "serviceArns", cluster=cluster_arn))
    except (ClientError, BotoCoreError) as exc:
        auditor.skip("ECS", cluster_name, "Failed to list services", exc)
        return

    for batch in batch_iterable(service_arns, SERVICE_BATCH_SIZE):
        try:
            response = ecs.describe_services(cluster=cluster_arn, services=list(batch))
        except (ClientError, BotoCoreError) as exc:
            auditor.skip("ECS", cluster_name, "Failed to describe services", exc)
            continue

        for service in response.get("services", []):
            task_definition = _describe_task_definition(ecs, auditor, service, task_definitions)
            skip_rules = TASK_DEFINITION_RULES if task_definition is None else ()
            snapshot = {**service, TASK_DEFINITION_FIELD: task_definition or {}}
            auditor.evaluate("ecs-service", snapshot, skip_rules=skip_rules)


def _describe_task_definition(
    ecs: boto3.client,
    auditor: "Auditor",
    service: dict,
    task_definitions: Dict[str, Optional[dict]],
) -> Optional[dict]:
    """Return the task definition *service* runs, described once per ARN.

    ``None`` means the task definition checks cannot run for this service.
    """

    arn = service.get("taskDefinition")
    if not arn:
        return None

    name = service.get("serviceName", arn)
    if arn not in task_definitions:
        try:
            response = ecs.describe_task_definition(taskDefinition=arn)
        except (ClientError, BotoCoreError) as exc:
            auditor.skip("ECS", name, f"Failed to describe task definition {arn}", exc, rule_ids=TASK_DEFINITION_RULES)
            task_definitions[arn] = None
            return None
        task_definitions[arn] = response.get("taskDefinition") or {}

    task_definition = task_definitions[arn]
    if task_definition is None:
        auditor.skip(
            "ECS",
            name,
            f"Task definition {arn} unavailable",
            "an earlier describe call failed",
            rule_ids=TASK_DEFINITION_RULES,
        )
    return task_definition


__all__ = ["collect_ecs"]
