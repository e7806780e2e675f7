"""Tests for parameter group resolution and caching."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from aws_self_review.parameters import ParameterCache, ParameterResolver, ParameterSet
from aws_self_review.tests.aws_doubles import client_error, paginating_client


def _rds_client(parameters: list) -> MagicMock:
    page = {"Parameters": parameters}
    return paginating_client(
        {
            "describe_db_cluster_parameters": [page],
            "describe_db_parameters": [page],
        }
    )


def test_empty_group_name_makes_no_remote_call() -> None:
    client = MagicMock()
    resolver = ParameterResolver(client)

    parameters = resolver.resolve("", cluster_scope=True)

    assert dict(parameters) == {}
    assert parameters.resolved
    client.get_paginator.assert_not_called()


def test_second_resolution_hits_the_cache() -> None:
    """A group shared by many resources is described only once per run."""

    client = _rds_client([{"ParameterName": "general_log", "ParameterValue": "1"}])
    resolver = ParameterResolver(client)

    first = resolver.resolve("aurora-mysql-custom", cluster_scope=True)
    second = resolver.resolve("aurora-mysql-custom", cluster_scope=True)

    assert first is second
    assert client.get_paginator.call_count == 1


def test_cache_is_shared_between_resolvers() -> None:
    cache = ParameterCache()
    client = _rds_client([{"ParameterName": "general_log", "ParameterValue": "1"}])

    ParameterResolver(client, cache).resolve("shared", cluster_scope=False)
    ParameterResolver(client, cache).resolve("shared", cluster_scope=False)

    assert "shared" in cache
    assert client.get_paginator.call_count == 1


@pytest.mark.parametrize(
    "cluster_scope, method, argument",
    [
        (True, "describe_db_cluster_parameters", "DBClusterParameterGroupName"),
        (False, "describe_db_parameters", "DBParameterGroupName"),
    ],
)
def test_scope_selects_describe_call(cluster_scope: bool, method: str, argument: str) -> None:
    client = _rds_client([])
    resolver = ParameterResolver(client)

    resolver.resolve("group-a", cluster_scope=cluster_scope)

    client.get_paginator.assert_called_once_with(method)
    client.paginators[method].paginate.assert_called_once_with(**{argument: "group-a"})


def test_parameters_without_values_are_omitted() -> None:
    client = _rds_client(
        [
            {"ParameterName": "general_log", "ParameterValue": "ON"},
            {"ParameterName": "slow_query_log"},
            {"ParameterName": "long_query_time", "ParameterValue": 2},
        ]
    )

    parameters = ParameterResolver(client).resolve("group-a", cluster_scope=True)

    assert dict(parameters) == {"general_log": "ON", "long_query_time": "2"}
    assert parameters.group_name == "group-a"


def test_failure_returns_unresolved_empty_set(caplog) -> None:
    client = paginating_client(
        {"describe_db_parameters": client_error("DBParameterGroupNotFound", "DescribeDBParameters")}
    )
    resolver = ParameterResolver(client)

    parameters = resolver.resolve("missing-group", cluster_scope=False)

    assert isinstance(parameters, ParameterSet)
    assert dict(parameters) == {}
    assert not parameters.resolved
    assert "Failed to describe parameter group missing-group" in caplog.text


def test_failed_group_is_looked_up_only_once(caplog) -> None:
    """A throttled or denied group shared by many resources costs one call."""

    client = paginating_client({"describe_db_parameters": client_error("Throttling", "DescribeDBParameters")})
    resolver = ParameterResolver(client)

    results = [resolver.resolve("shared-group", cluster_scope=False) for _ in range(5)]

    assert client.get_paginator.call_count == 1
    assert "shared-group" in resolver.cache
    assert all(result is results[0] for result in results)
    assert not results[0].resolved
    assert caplog.text.count("Failed to describe parameter group shared-group") == 1
