"""Collector for Route 53 hosted zones."""
from __future__ import annotations

from typing import TYPE_CHECKING

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..utils import safe_paginate
from . import register_collector

if TYPE_CHECKING:
    from ..core import Auditor


@register_collector("route53", "Route53")
def collect_hosted_zones(session: boto3.session.Session, auditor: "Auditor") -> None:
    """Evaluate whether query logging is configured for each hosted zone."""

    route53 = session.client("route53")
    try:
        zones = list(safe_paginate(route53, "list_hosted_zones", "HostedZones"))
    except (ClientError, BotoCoreError) as exc:
        auditor.skip("Route53", "*", "Failed to list hosted zones", exc)
        return

    for zone in zones:
        zone_id = zone["Id"].split("/")[-1]
        try:
            configs = list(
                safe_paginate(route53, "list_query_logging_configs", "QueryLoggingConfigs", HostedZoneId=zone_id)
            )
        except (ClientError, BotoCoreError) as exc:
            auditor.skip(
                "Route53",
                zone.get("Name", zone_id),
                "Failed to list query logging configs",
                exc,
                rule_ids=("route53-query-logging",),
            )
            continue
        auditor.evaluate("route53-hosted-zone", {**zone, "QueryLoggingConfigs": configs})


__all__ = ["collect_hosted_zones"]
