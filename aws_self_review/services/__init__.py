"""Resource collectors and their registry.

Each collector lists the resources of one AWS service, builds a snapshot per
resource and hands it to :meth:`aws_self_review.core.Auditor.evaluate`.
Collectors absorb AWS API failures by recording skipped checks so that one
unreadable resource never aborts the run.
"""
from __future__ import annotations

import importlib
import pkgutil
from typing import TYPE_CHECKING, Callable, Dict, Iterator, Tuple

import boto3

if TYPE_CHECKING:
    from ..core import Auditor

Collector = Callable[[boto3.session.Session, "Auditor"], None]


class CollectorRegistry:
    """Registry that stores available collectors in registration order."""

    def __init__(self) -> None:
        self._collectors: Dict[str, Collector] = {}
        self._display_names: Dict[str, str] = {}

    @staticmethod
    def _normalize(name: str) -> str:
        if not name:
            raise ValueError("Service name must be a non-empty string")
        return name.strip().lower()

    def register(self, name: str, display_name: str | None = None) -> Callable[[Collector], Collector]:
        """Return a decorator that registers the wrapped collector under *name*."""

        normalized = self._normalize(name)

        def decorator(func: Collector) -> Collector:
            if normalized in self._collectors and self._collectors[normalized] is not func:
                raise ValueError(f"Service '{name}' is already registered")
            self._collectors[normalized] = func
            self._display_names[normalized] = display_name or name
            return func

        return decorator

    def display_name(self, name: str) -> str:
        return self._display_names[self._normalize(name)]

    def __contains__(self, name: object) -> bool:
        if not isinstance(name, str):
            return False
        return self._normalize(name) in self._collectors

    def __getitem__(self, name: str) -> Collector:
        return self._collectors[self._normalize(name)]

    def __len__(self) -> int:
        return len(self._collectors)

    def keys(self) -> Iterator[str]:
        return iter(self._collectors)

    def items(self) -> Iterator[Tuple[str, Collector]]:
        return iter(self._collectors.items())


COLLECTORS = CollectorRegistry()
register_collector = COLLECTORS.register


def _import_collector_modules() -> None:
    """Import modules that register collectors via decorators."""

    package_paths = getattr(__spec__, "submodule_search_locations", None)
    if not package_paths:
        return

    for module_info in sorted(pkgutil.iter_modules(package_paths), key=lambda info: info.name):
        if module_info.name.startswith("_"):
            continue
        importlib.import_module(f"{__name__}.{module_info.name}")


_import_collector_modules()

__all__ = ["COLLECTORS", "Collector", "CollectorRegistry", "register_collector"]
