"""Stand-ins for boto3 clients and errors used across the test modules."""

from __future__ import annotations

from unittest.mock import MagicMock

from botocore.exceptions import ClientError


def client_error(code: str, operation: str = "Operation") -> ClientError:
    """Build a botocore ``ClientError`` carrying *code*."""

    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


def paginating_client(pages_by_method: dict) -> MagicMock:
    """Return a mock client whose paginators yield the given pages per method.

    A page list that is an exception instance is raised by ``paginate``
    instead. The paginators stay reachable through ``client.paginators``.
    """

    client = MagicMock()
    paginators = {}
    for method_name, pages in pages_by_method.items():
        paginator = MagicMock()
        if isinstance(pages, Exception):
            paginator.paginate.side_effect = pages
        else:
            paginator.paginate.return_value = pages
        paginators[method_name] = paginator

    client.get_paginator.side_effect = lambda method_name: paginators[method_name]
    client.paginators = paginators
    return client
