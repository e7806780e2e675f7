"""Collector for CloudWatch Observability Admin account settings."""
from __future__ import annotations

from typing import TYPE_CHECKING

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..utils import error_code
from . import register_collector

if TYPE_CHECKING:
    from ..core import Auditor

TELEMETRY_RULE = "telemetry-resource-tags-enabled"


@register_collector("observability", "Observability")
def collect_telemetry_enrichment(session: boto3.session.Session, auditor: "Auditor") -> None:
    """Evaluate whether resource tags are added to telemetry for the account.

    A missing enrichment configuration counts as disabled.
    """

    client = session.client("observabilityadmin")
    try:
        status = client.get_telemetry_enrichment_status().get("Status")
    except (ClientError, BotoCoreError) as exc:
        if "ResourceNotFoundException" not in error_code(exc):
            auditor.skip(
                "Observability",
                "Account",
                "Failed to get telemetry enrichment status",
                exc,
                rule_ids=(TELEMETRY_RULE,),
            )
            return
        status = None
    auditor.evaluate("observability-account", {"Resource": "Account", "Status": status})


__all__ = ["collect_telemetry_enrichment"]
