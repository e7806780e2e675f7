"""Shared helpers for boto3 collectors."""
from __future__ import annotations

from typing import Any, Iterable, Iterator, Sequence, TypeVar

from botocore.exceptions import ClientError, OperationNotPageableError

T = TypeVar("T")


def safe_paginate(client: Any, method_name: str, result_key: str, **kwargs) -> Iterator[dict]:
    """Iterate through paginated boto3 results while handling pagination gaps."""

    try:
        paginator = client.get_paginator(method_name)
    except OperationNotPageableError:
        response = getattr(client, method_name)(**kwargs)
        for item in response.get(result_key, []):
            yield item
        return

    for page in paginator.paginate(**kwargs):
        for item in page.get(result_key, []):
            yield item


def batch_iterable(items: Sequence[T], size: int) -> Iterable[Sequence[T]]:
    """Yield slices of *items* with at most ``size`` members."""

    for i in range(0, len(items), size):
        yield items[i : i + size]


def error_code(exc: Exception) -> str:
    """Return the AWS error code from a botocore exception, if present."""

    if isinstance(exc, ClientError):
        return exc.response.get("Error", {}).get("Code", "")
    return ""


def tag_value(tags: Iterable[dict], key: str) -> str | None:
    """Return the value of tag *key* from an AWS ``[{Key, Value}]`` list."""

    for tag in tags or ():
        if tag.get("Key") == key:
            return tag.get("Value", "")
    return None


__all__ = ["batch_iterable", "error_code", "safe_paginate", "tag_value"]
