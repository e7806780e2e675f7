"""Collector for EBS encryption settings, volumes and snapshots."""
from __future__ import annotations

from typing import TYPE_CHECKING

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..utils import safe_paginate
from . import register_collector

if TYPE_CHECKING:
    from ..core import Auditor


@register_collector("ec2", "EC2")
def collect_ebs(session: boto3.session.Session, auditor: "Auditor") -> None:
    """Evaluate default EBS encryption and the encryption of volumes and snapshots."""

    ec2 = session.client("ec2")
    region = ec2.meta.region_name or "default"
    try:
        response = ec2.get_ebs_encryption_by_default()
    except (ClientError, BotoCoreError) as exc:
        auditor.skip(
            "EC2", region, "Failed to get EBS encryption default", exc, rule_ids=("ec2-ebs-default-encryption",)
        )
    else:
        snapshot = {"Region": region, "EbsEncryptionByDefault": response.get("EbsEncryptionByDefault", False)}
        auditor.evaluate("ec2-account", snapshot)

    try:
        for volume in safe_paginate(ec2, "describe_volumes", "Volumes"):
            auditor.evaluate("ebs-volume", volume)
    except (ClientError, BotoCoreError) as exc:
        auditor.skip("EC2", "*", "Failed to describe EBS volumes", exc)

    try:
        for snapshot in safe_paginate(ec2, "describe_snapshots", "Snapshots", OwnerIds=["self"]):
            auditor.evaluate("ebs-snapshot", snapshot)
    except (ClientError, BotoCoreError) as exc:
        auditor.skip("EC2", "*", "Failed to describe EBS snapshots", exc)


__all__ = ["collect_ebs"]
