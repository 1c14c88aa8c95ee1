from __future__ import annotations
from typing import TYPE_CHECKING, NamedTuple

import logging
import pathlib
import shutil

from argopkg import errors
from argopkg import install

if TYPE_CHECKING:
    from argopkg import manager as argo_manager


logger = logging.getLogger(__name__)


class UpgradeResult(NamedTuple):
    name: str
    version: str
    rebuilt: list[str]
    failed: dict[str, errors.ArgoError]

    @property
    def ok(self) -> bool:
        return not self.failed


class Upgrader:
    """Rebuild a package, replace it in place and rebuild its dependents."""

    def __init__(self, manager: argo_manager.PackageManager) -> None:
        self._manager = manager
        self._config = manager.config
        self._db = manager.db
        self._store = manager.store
        self._installer = manager.installer

    def upgrade(self, name: str, version: str) -> UpgradeResult:
        with self._db.locked():
            if not self._db.is_installed(name):
                raise errors.NotInstalled(name)

            logger.info("Upgrading %s to %s", name, version)
            package = self._store.get(name)
            self._manager.build(name)

            self._installer.run_hook("pre_install", package)
            stage = self._config.workspace(name) / "stage"
            if stage.exists():
                shutil.rmtree(stage)
            self._installer.place(package, stage)

            destination = self._config.destination.absolute()
            previous = self._db.read_manifest(name) or []
            placed: list[pathlib.Path] = []
            try:
                install.copy_tree(stage, destination, placed=placed)
            finally:
                # Record whatever reached the destination, even on failure.
                known = set(previous)
                manifest = previous + [p for p in placed if p not in known]
                self._installer.record(package, manifest)
            self._installer.run_hook("post_install", package)

            self._db.append_version(name, version)

            rebuilt, failed = self.rebuild_dependents(name)

        if failed:
            logger.error(
                "Upgrade of %s finished, but %d dependent(s) failed: %s",
                name,
                len(failed),
                ", ".join(failed),
            )
        else:
            logger.info("Upgrade of %s to %s finished", name, version)
        return UpgradeResult(name, version, rebuilt, failed)

    def dependents(self, name: str) -> list[str]:
        """Installed packages whose dependency list names *name*."""
        dependents = []
        for installed in self._db.installed():
            if installed == name:
                continue
            pkg = self._store.find(installed)
            if pkg is not None and pkg.depends_on(name):
                dependents.append(installed)
        return dependents

    def rebuild_dependents(
        self, name: str
    ) -> tuple[list[str], dict[str, errors.ArgoError]]:
        rebuilt = []
        failed: dict[str, errors.ArgoError] = {}
        for dependent in self.dependents(name):
            logger.info("Rebuilding %s, which depends on %s", dependent, name)
            try:
                self._manager.build(dependent)
                self._manager.install(dependent)
            except errors.ArgoError as e:
                logger.error("Rebuild of %s failed: %s", dependent, e)
                failed[dependent] = e
            except Exception as e:
                logger.exception("Rebuild of %s failed", dependent)
                error = errors.BuildFailure(
                    f"rebuild of {dependent} failed: {e}"
                )
                error.__cause__ = e
                failed[dependent] = error
            else:
                rebuilt.append(dependent)
        return rebuilt, failed
