"""Collector for Amazon RDS clusters and instances."""
from __future__ import annotations

from typing import TYPE_CHECKING, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..parameters import ParameterSet
from ..utils import safe_paginate
from . import register_collector

if TYPE_CHECKING:
    from ..core import Auditor


@register_collector("rds", "RDS")
def collect_rds(session: boto3.session.Session, auditor: "Auditor") -> None:
    """Evaluate DB clusters and DB instances, resolving their parameter groups."""

    rds = session.client("rds")
    resolver = auditor.parameter_resolver(rds)

    try:
        clusters = list(safe_paginate(rds, "describe_db_clusters", "DBClusters"))
    except (ClientError, BotoCoreError) as exc:
        auditor.skip("RDS", "*", "Failed to describe DB clusters", exc)
        clusters = []

    for cluster in clusters:
        parameters = resolver.resolve(cluster.get("DBClusterParameterGroup"), cluster_scope=True)
        auditor.evaluate("rds-cluster", cluster, parameters)

    try:
        instances = list(safe_paginate(rds, "describe_db_instances", "DBInstances"))
    except (ClientError, BotoCoreError) as exc:
        auditor.skip("RDS", "*", "Failed to describe DB instances", exc)
        return

    for instance in instances:
        # Cluster members inherit logging from the cluster parameter group.
        if instance.get("DBClusterIdentifier"):
            parameters = ParameterSet("")
        else:
            parameters = resolver.resolve(instance_parameter_group(instance), cluster_scope=False)
        auditor.evaluate("rds-instance", instance, parameters)


def instance_parameter_group(instance: dict) -> Optional[str]:
    """Return the name of the first DB parameter group attached to *instance*."""

    for group in instance.get("DBParameterGroups") or []:
        name = group.get("DBParameterGroupName")
        if name:
            return name
    return None


__all__ = ["collect_rds", "instance_parameter_group"]
