"""Collector for Application Load Balancers and their target groups."""
from __future__ import annotations

from typing import TYPE_CHECKING

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..utils import safe_paginate
from . import register_collector

if TYPE_CHECKING:
    from ..core import Auditor

ATTRIBUTE_RULES = ("alb-access-logging", "alb-connection-logging", "alb-deletion-protection")


@register_collector("elb", "ELB")
def collect_load_balancers(session: boto3.session.Session, auditor: "Auditor") -> None:
    """Evaluate logging, deletion protection and target health of ALBs."""

    elbv2 = session.client("elbv2")
    try:
        load_balancers = list(safe_paginate(elbv2, "describe_load_balancers", "LoadBalancers"))
    except (ClientError, BotoCoreError) as exc:
        auditor.skip("ELB", "*", "Failed to describe load balancers", exc)
        return

    for lb in load_balancers:
        if lb.get("Type") != "application":
            continue
        name = lb.get("LoadBalancerName", lb["LoadBalancerArn"])
        try:
            response = elbv2.describe_load_balancer_attributes(LoadBalancerArn=lb["LoadBalancerArn"])
        except (ClientError, BotoCoreError) as exc:
            auditor.skip("ALB", name, "Failed to describe load balancer attributes", exc, rule_ids=ATTRIBUTE_RULES)
        else:
            attributes = {attr.get("Key"): attr.get("Value") for attr in response.get("Attributes", [])}
            auditor.evaluate("alb", {**lb, "Attributes": attributes})

        _collect_target_groups(elbv2, auditor, lb, name)


def _collect_target_groups(elbv2: boto3.client, auditor: "Auditor", lb: dict, lb_name: str) -> None:
    try:
        target_groups = list(
            safe_paginate(elbv2, "describe_target_groups", "TargetGroups", LoadBalancerArn=lb["LoadBalancerArn"])
        )
    except (ClientError, BotoCoreError) as exc:
        auditor.skip("ELB", lb_name, "Failed to describe target groups", exc, rule_ids=("elb-target-health",))
        return

    for target_group in target_groups:
        resource_name = f"{lb_name} > {target_group.get('TargetGroupName', target_group['TargetGroupArn'])}"
        try:
            health = elbv2.describe_target_health(TargetGroupArn=target_group["TargetGroupArn"])
        except (ClientError, BotoCoreError) as exc:
            auditor.skip("ELB", resource_name, "Failed to describe target health", exc, rule_ids=("elb-target-health",))
            continue
        snapshot = {
            "Name": resource_name,
            "TargetHealthDescriptions": health.get("TargetHealthDescriptions", []),
        }
        auditor.evaluate("elb-target-group", snapshot)


__all__ = ["collect_load_balancers"]
