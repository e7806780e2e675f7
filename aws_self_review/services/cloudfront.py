"""Collector for Amazon CloudFront distributions."""
from __future__ import annotations

from typing import TYPE_CHECKING, Iterator

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from . import register_collector

if TYPE_CHECKING:
    from ..core import Auditor


@register_collector("cloudfront", "CloudFront")
def collect_distributions(session: boto3.session.Session, auditor: "Auditor") -> None:
    """Evaluate whether each distribution has standard or real-time logging."""

    cloudfront = session.client("cloudfront")
    try:
        distribution_ids = [summary["Id"] for summary in _list_distributions(cloudfront)]
    except (ClientError, BotoCoreError) as exc:
        auditor.skip("CloudFront", "*", "Failed to list distributions", exc)
        return

    for distribution_id in distribution_ids:
        try:
            response = cloudfront.get_distribution_config(Id=distribution_id)
        except (ClientError, BotoCoreError) as exc:
            auditor.skip(
                "CloudFront",
                distribution_id,
                "Failed to get distribution config",
                exc,
                rule_ids=("cloudfront-logging-enabled",),
            )
            continue
        snapshot = {"Id": distribution_id, "DistributionConfig": response.get("DistributionConfig", {})}
        auditor.evaluate("cloudfront-distribution", snapshot)


def _list_distributions(cloudfront: boto3.client) -> Iterator[dict]:
    # The distribution list is nested one level below the page.
    for page in cloudfront.get_paginator("list_distributions").paginate():
        for summary in page.get("DistributionList", {}).get("Items", []):
            yield summary


__all__ = ["collect_distributions"]
