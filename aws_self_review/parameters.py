"""Resolution of RDS parameter groups into effective parameter values."""
from __future__ import annotations

import logging
from typing import Any, Dict, Iterator, Mapping, Optional

from botocore.exceptions import BotoCoreError, ClientError

from .utils import safe_paginate

logger = logging.getLogger(__name__)


class ParameterSet(Mapping[str, str]):
    """Effective parameter values of a single parameter group.

    ``resolved`` is ``False`` only when the group could not be described, in
    which case the set is empty and parameter-dependent checks are skipped for
    every resource attached to the group.
    """

    def __init__(
        self, group_name: str, values: Optional[Mapping[str, str]] = None, *, resolved: bool = True
    ) -> None:
        self.group_name = group_name
        self.resolved = resolved
        self._values: Dict[str, str] = dict(values or {})

    def __getitem__(self, name: str) -> str:
        return self._values[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        state = "" if self.resolved else ", resolved=False"
        return f"ParameterSet({self.group_name!r}, {self._values!r}{state})"


class ParameterCache:
    """Run-scoped store of resolved parameter sets keyed by group name.

    Entries are never refreshed. The cache is not synchronised and is meant to
    be owned by a single sequential audit run.
    """

    def __init__(self) -> None:
        self._sets: Dict[str, ParameterSet] = {}

    def get(self, group_name: str) -> Optional[ParameterSet]:
        return self._sets.get(group_name)

    def put(self, parameters: ParameterSet) -> None:
        self._sets[parameters.group_name] = parameters

    def __contains__(self, group_name: object) -> bool:
        return group_name in self._sets

    def __len__(self) -> int:
        return len(self._sets)


class ParameterResolver:
    """Resolve parameter groups through an RDS client, once per group name."""

    def __init__(self, client: Any, cache: Optional[ParameterCache] = None) -> None:
        self._client = client
        self.cache = cache if cache is not None else ParameterCache()

    def resolve(self, group_name: Optional[str], cluster_scope: bool) -> ParameterSet:
        """Return the effective parameters of *group_name*.

        Failures are logged once and produce an empty, unresolved set that is
        cached like any other result.
        """

        if not group_name:
            return ParameterSet("")

        cached = self.cache.get(group_name)
        if cached is not None:
            return cached

        if cluster_scope:
            method, kwargs = "describe_db_cluster_parameters", {"DBClusterParameterGroupName": group_name}
        else:
            method, kwargs = "describe_db_parameters", {"DBParameterGroupName": group_name}

        logger.debug("Describing parameter group %s via %s", group_name, method)
        try:
            values = {
                item["ParameterName"]: str(item["ParameterValue"])
                for item in safe_paginate(self._client, method, "Parameters", **kwargs)
                if item.get("ParameterName") and item.get("ParameterValue") is not None
            }
        except (ClientError, BotoCoreError) as exc:
            logger.warning("Failed to describe parameter group %s: %s", group_name, exc)
            parameters = ParameterSet(group_name, resolved=False)
        else:
            parameters = ParameterSet(group_name, values)
        self.cache.put(parameters)
        return parameters


__all__ = ["ParameterCache", "ParameterResolver", "ParameterSet"]
