"""Collector for CloudWatch Logs log groups."""
from __future__ import annotations

from typing import TYPE_CHECKING

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..utils import safe_paginate
from . import register_collector

if TYPE_CHECKING:
    from ..core import Auditor


@register_collector("cloudwatchlogs", "CloudWatchLogs")
def collect_log_groups(session: boto3.session.Session, auditor: "Auditor") -> None:
    """Evaluate the retention setting of every log group."""

    logs = session.client("logs")
    try:
        for log_group in safe_paginate(logs, "describe_log_groups", "logGroups"):
            auditor.evaluate("cloudwatch-log-group", log_group)
    except (ClientError, BotoCoreError) as exc:
        auditor.skip("CloudWatchLogs", "*", "Failed to describe log groups", exc)


__all__ = ["collect_log_groups"]
