"""Collector for Amazon ECR repositories."""
from __future__ import annotations

from typing import TYPE_CHECKING

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..utils import error_code, safe_paginate
from . import register_collector

if TYPE_CHECKING:
    from ..core import Auditor


@register_collector("ecr", "ECR")
def collect_repositories(session: boto3.session.Session, auditor: "Auditor") -> None:
    """Evaluate tag mutability, scan on push and lifecycle policy of repositories."""

    ecr = session.client("ecr")
    try:
        repositories = list(safe_paginate(ecr, "describe_repositories", "repositories"))
    except (ClientError, BotoCoreError) as exc:
        auditor.skip("ECR", "*", "Failed to describe repositories", exc)
        return

    for repository in repositories:
        name = repository["repositoryName"]
        skip_rules = ()
        try:
            ecr.get_lifecycle_policy(repositoryName=name)
            has_policy = True
        except (ClientError, BotoCoreError) as exc:
            has_policy = False
            if error_code(exc) != "LifecyclePolicyNotFoundException":
                skip_rules = ("ecr-lifecycle-policy",)
                auditor.skip("ECR", name, "Failed to get lifecycle policy", exc, rule_ids=skip_rules)
        auditor.evaluate("ecr-repository", {**repository, "lifecyclePolicy": has_policy}, skip_rules=skip_rules)


__all__ = ["collect_repositories"]
