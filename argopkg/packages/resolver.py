from __future__ import annotations
from typing import Callable

import logging

from . import store as pkg_store
from . import topological


logger = logging.getLogger(__name__)


class Resolver:
    """Compute the not-yet-installed dependency closure of a package."""

    def __init__(
        self,
        store: pkg_store.PackageStore,
        is_installed: Callable[[str], bool],
    ) -> None:
        self._store = store
        self._is_installed = is_installed

    def graph(self, name: str) -> dict[str, dict]:
        """Return the dependency graph reachable from *name*.

        Installed dependencies are leaves: they are neither added to the
        graph nor followed.  The root is always expanded.
        """
        graph: dict[str, dict] = {}
        pending = [name]
        while pending:
            current = pending.pop()
            if current in graph:
                continue
            pkg = self._store.get(current)
            deps = [
                dep for dep in pkg.dependencies
                if dep == name or not self._is_installed(dep)
            ]
            graph[current] = {"item": current, "deps": deps}
            pending.extend(reversed(deps))

        # Vertex order drives the sort; make the root the first vertex.
        root = graph.pop(name)
        return {name: root, **graph}

    def resolve(self, name: str) -> list[str]:
        """Return the packages to build and install, in order, before *name*.

        Raises :exc:`~argopkg.errors.CycleDetected` on a dependency cycle and
        :exc:`~argopkg.errors.PackageNotFound` on an undefined dependency.
        """
        order = topological.sort(self.graph(name))
        order.remove(name)
        if order:
            logger.info(
                "%s needs %s", name, ", ".join(order)
            )
        return order
