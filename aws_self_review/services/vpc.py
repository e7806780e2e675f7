"""Collector for Amazon VPC settings."""
from __future__ import annotations

from collections import defaultdict
from typing import TYPE_CHECKING, Any, Dict, List

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..utils import safe_paginate
from . import register_collector

if TYPE_CHECKING:
    from ..core import Auditor

FLOW_LOG_RULES = ("vpc-flow-logs", "vpc-flow-logs-custom-format")

DNS_ATTRIBUTES = (
    ("enableDnsHostnames", "EnableDnsHostnames", "vpc-dns-hostnames"),
    ("enableDnsSupport", "EnableDnsSupport", "vpc-dns-support"),
)


@register_collector("vpc", "VPC")
def collect_vpcs(session: boto3.session.Session, auditor: "Auditor") -> None:
    """Evaluate naming, DNS attributes and flow logs of every VPC."""

    ec2 = session.client("ec2")
    try:
        vpcs = list(safe_paginate(ec2, "describe_vpcs", "Vpcs"))
    except (ClientError, BotoCoreError) as exc:
        auditor.skip("VPC", "*", "Failed to describe VPCs", exc)
        return

    flow_logs: Dict[str, List[dict]] = defaultdict(list)
    flow_logs_available = True
    try:
        for flow_log in safe_paginate(ec2, "describe_flow_logs", "FlowLogs"):
            flow_logs[flow_log.get("ResourceId", "")].append(flow_log)
    except (ClientError, BotoCoreError) as exc:
        flow_logs_available = False
        auditor.skip("VPC", "*", "Failed to describe flow logs", exc, rule_ids=FLOW_LOG_RULES)

    for vpc in vpcs:
        vpc_id = vpc["VpcId"]
        snapshot: Dict[str, Any] = {**vpc, "FlowLogs": flow_logs.get(vpc_id, [])}
        skip_rules: List[str] = [] if flow_logs_available else list(FLOW_LOG_RULES)
        for attribute, key, rule_id in DNS_ATTRIBUTES:
            try:
                response = ec2.describe_vpc_attribute(VpcId=vpc_id, Attribute=attribute)
            except (ClientError, BotoCoreError) as exc:
                skip_rules.append(rule_id)
                auditor.skip("VPC", vpc_id, f"Failed to describe {attribute}", exc, rule_ids=(rule_id,))
                continue
            snapshot[key] = response.get(key, {}).get("Value", False)
        auditor.evaluate("vpc", snapshot, skip_rules=skip_rules)


__all__ = ["collect_vpcs"]
