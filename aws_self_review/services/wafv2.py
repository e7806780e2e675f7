"""Collector for AWS WAF v2 web ACLs in regional and CloudFront scope."""
from __future__ import annotations

from typing import TYPE_CHECKING, Iterator

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..utils import error_code
from . import register_collector

if TYPE_CHECKING:
    from ..core import Auditor

# Web ACLs for CloudFront only exist in us-east-1.
CLOUDFRONT_REGION = "us-east-1"

SCOPES = (("REGIONAL", "Regional"), ("CLOUDFRONT", "CloudFront"))


@register_collector("wafv2", "WAF v2")
def collect_web_acls(session: boto3.session.Session, auditor: "Auditor") -> None:
    """Evaluate whether logging is configured for every web ACL."""

    clients = {
        "REGIONAL": session.client("wafv2"),
        "CLOUDFRONT": session.client("wafv2", region_name=CLOUDFRONT_REGION),
    }
    for scope, label in SCOPES:
        client = clients[scope]
        try:
            web_acls = list(_list_web_acls(client, scope))
        except (ClientError, BotoCoreError) as exc:
            auditor.skip("WAFV2", f"* ({label})", "Failed to list web ACLs", exc)
            continue

        for acl in web_acls:
            resource_name = f"{acl['Name']} ({label})"
            try:
                client.get_logging_configuration(ResourceArn=acl["ARN"])
                enabled = True
            except (ClientError, BotoCoreError) as exc:
                if error_code(exc) != "WAFNonexistentItemException":
                    auditor.skip(
                        "WAFV2",
                        resource_name,
                        "Failed to get logging configuration",
                        exc,
                        rule_ids=("wafv2-logging-enabled",),
                    )
                    continue
                enabled = False
            auditor.evaluate("wafv2-web-acl", {"Name": resource_name, "ARN": acl["ARN"], "LoggingEnabled": enabled})


def _list_web_acls(client: boto3.client, scope: str) -> Iterator[dict]:
    # list_web_acls has no boto3 paginator; follow NextMarker by hand.
    kwargs = {"Scope": scope, "Limit": 100}
    while True:
        response = client.list_web_acls(**kwargs)
        web_acls = response.get("WebACLs", [])
        for acl in web_acls:
            yield acl
        marker = response.get("NextMarker")
        if not marker or not web_acls:
            return
        kwargs["NextMarker"] = marker


__all__ = ["collect_web_acls"]
