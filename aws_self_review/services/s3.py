"""Collector for Amazon S3 buckets."""
from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Tuple

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..utils import error_code, safe_paginate
from . import register_collector

if TYPE_CHECKING:
    from ..core import Auditor

PUBLIC_ACCESS_FLAGS = (
    "BlockPublicAcls",
    "IgnorePublicAcls",
    "BlockPublicPolicy",
    "RestrictPublicBuckets",
)

STORAGE_LENS_RULE = "s3-storage-lens"


@dataclass(frozen=True)
class BucketLookup:
    """One bucket configuration call and how to read its response.

    ``missing_code`` is the error AWS returns when the configuration does not
    exist, which the lookup reports as ``False`` instead of an error.
    """

    field: str
    rule_id: str
    method: str
    missing_code: str
    interpret: Callable[[Dict[str, Any]], bool]
    log_buckets_only: bool = False


def _fully_blocked(response: Dict[str, Any]) -> bool:
    config = response.get("PublicAccessBlockConfiguration", {})
    return all(config.get(flag, False) for flag in PUBLIC_ACCESS_FLAGS)


LOOKUPS: Tuple[BucketLookup, ...] = (
    BucketLookup(
        "Encryption",
        "s3-encryption",
        "get_bucket_encryption",
        "ServerSideEncryptionConfigurationNotFoundError",
        lambda response: bool(response.get("ServerSideEncryptionConfiguration")),
    ),
    BucketLookup(
        "PublicAccessBlock",
        "s3-public-access",
        "get_public_access_block",
        "NoSuchPublicAccessBlockConfiguration",
        _fully_blocked,
    ),
    BucketLookup(
        "Lifecycle",
        "s3-lifecycle",
        "get_bucket_lifecycle_configuration",
        "NoSuchLifecycleConfiguration",
        lambda response: bool(response.get("Rules")),
        log_buckets_only=True,
    ),
    BucketLookup(
        "ObjectLock",
        "s3-object-lock",
        "get_object_lock_configuration",
        "ObjectLockConfigurationNotFoundError",
        lambda response: response.get("ObjectLockConfiguration", {}).get("ObjectLockEnabled") == "Enabled",
        log_buckets_only=True,
    ),
)


@register_collector("s3", "S3")
def collect_buckets(session: boto3.session.Session, auditor: "Auditor") -> None:
    """Evaluate every bucket, retention of log buckets and account-wide Storage Lens."""

    s3 = session.client("s3")
    try:
        buckets = s3.list_buckets().get("Buckets", [])
    except (ClientError, BotoCoreError) as exc:
        auditor.skip("S3", "*", "Failed to list buckets", exc)
        buckets = []

    for bucket in buckets:
        _evaluate_bucket(s3, auditor, bucket["Name"])

    _evaluate_storage_lens(session, auditor)


def _evaluate_bucket(s3: boto3.client, auditor: "Auditor", name: str) -> None:
    snapshot: Dict[str, Any] = {"Name": name}
    skip_rules: List[str] = []
    for lookup in LOOKUPS:
        if lookup.log_buckets_only and "log" not in name:
            continue
        try:
            response = getattr(s3, lookup.method)(Bucket=name)
        except (ClientError, BotoCoreError) as exc:
            if error_code(exc) == lookup.missing_code:
                snapshot[lookup.field] = False
                continue
            skip_rules.append(lookup.rule_id)
            auditor.skip("S3", name, f"Failed to call {lookup.method}", exc, rule_ids=(lookup.rule_id,))
            continue
        snapshot[lookup.field] = lookup.interpret(response)
    auditor.evaluate("s3-bucket", snapshot, skip_rules=skip_rules)


def _evaluate_storage_lens(session: boto3.session.Session, auditor: "Auditor") -> None:
    # Storage Lens is configured per account, so the account id comes first.
    try:
        account_id = session.client("sts").get_caller_identity()["Account"]
    except (ClientError, BotoCoreError) as exc:
        auditor.skip("S3", "Account", "Failed to get AWS account ID", exc, rule_ids=(STORAGE_LENS_RULE,))
        return

    s3control = session.client("s3control")
    try:
        configurations = list(
            safe_paginate(
                s3control,
                "list_storage_lens_configurations",
                "StorageLensConfigurationList",
                AccountId=account_id,
            )
        )
    except (ClientError, BotoCoreError) as exc:
        auditor.skip(
            "S3",
            account_id,
            "Failed to list Storage Lens configurations",
            exc,
            rule_ids=(STORAGE_LENS_RULE,),
        )
        return

    enabled = any(configuration.get("IsEnabled") for configuration in configurations)
    auditor.evaluate("s3-account", {"AccountId": account_id, "StorageLensEnabled": enabled})


__all__ = ["LOOKUPS", "STORAGE_LENS_RULE", "collect_buckets"]
