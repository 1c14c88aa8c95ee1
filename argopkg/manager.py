from __future__ import annotations
from typing import TYPE_CHECKING, NamedTuple

import logging
import pathlib
import shutil

from cleo.io.null_io import NullIO

from argopkg import build as argo_build
from argopkg import config as argo_config
from argopkg import errors
from argopkg import hooks as argo_hooks
from argopkg import install
from argopkg import integrity
from argopkg import orphans
from argopkg import remove
from argopkg import state
from argopkg import upgrade
from argopkg.packages import resolver as pkg_resolver
from argopkg.packages import store as pkg_store

if TYPE_CHECKING:
    from cleo.io.io import IO


logger = logging.getLogger(__name__)


class PackageInfo(NamedTuple):
    name: str
    installed: bool
    version: str | None
    history: list[str]
    dependencies: tuple[str, ...]
    available_version: str | None
    file_count: int | None


class PackageManager:
    """Entry point for every package operation."""

    def __init__(
        self,
        config: argo_config.Config,
        *,
        io: IO | None = None,
        hooks: argo_hooks.HookRunner | None = None,
        store: pkg_store.PackageStore | None = None,
        db: state.InstalledDatabase | None = None,
    ) -> None:
        self.config = config
        self.io = io if io is not None else NullIO()
        self.hooks = hooks if hooks is not None else (
            argo_hooks.ScriptHookRunner(config)
        )
        self.store = store if store is not None else (
            pkg_store.PackageStore(config.repository)
        )
        self.db = db if db is not None else state.InstalledDatabase(config)
        self.resolver = pkg_resolver.Resolver(self.store, self.db.is_installed)
        self.installer = install.Installer(config, self.db, self.hooks)
        self.remover = remove.Remover(config, self.db, self.store, self.hooks)
        self.upgrader = upgrade.Upgrader(self)

    def _run_hook(
        self, stage: str, package: pkg_store.PackageDefinition
    ) -> None:
        result = self.hooks.run(
            stage, package, self.config.workspace(package.name)
        )
        if not result.success:
            logger.warning(
                "%s hook of %s failed: %s",
                stage,
                package.name,
                result.output.strip(),
            )

    # build

    def build(self, name: str) -> pathlib.Path:
        """Build *name*, first building and installing missing dependencies.

        Returns the build directory.
        """
        self.config.ensure_dirs()
        with self.db.locked():
            return self._build(name, resolve=True)

    def _build(self, name: str, *, resolve: bool) -> pathlib.Path:
        package = self.store.get(name)
        self._run_hook("pre_build", package)

        if resolve:
            self.satisfy_dependencies(name)

        builddir = argo_build.Build(self.config, package, io=self.io).run()

        self._run_hook("post_build", package)
        return builddir

    def satisfy_dependencies(self, name: str) -> list[str]:
        order = self.resolver.resolve(name)
        for dep in order:
            logger.info("Building dependency %s of %s", dep, name)
            try:
                self._build(dep, resolve=False)
                self.installer.install(self.store.get(dep))
            except errors.ArgoError as e:
                logger.error("%s", e)
                raise errors.DependencyFailure(name, dep) from e
        return order

    # install / remove / upgrade / clean

    def install(
        self,
        name: str,
        destination: pathlib.Path | None = None,
    ) -> list[pathlib.Path]:
        self.config.ensure_dirs()
        return self.installer.install(self.store.get(name), destination)

    def remove(self, name: str) -> list[pathlib.Path]:
        return self.remover.remove(name)

    def upgrade(self, name: str, version: str) -> upgrade.UpgradeResult:
        self.config.ensure_dirs()
        return self.upgrader.upgrade(name, version)

    def clean(self, name: str | None = None) -> list[pathlib.Path]:
        """Remove the build workspace of *name*, or of every package."""
        if name is not None and ("/" in name or name in ("", ".", "..")):
            raise errors.PackageNotFound(name)
        package = self.store.find(name) if name else None
        if package is not None:
            self._run_hook("pre_clean", package)

        if name:
            workspaces = [self.config.workspace(name)]
        elif self.config.build_root.is_dir():
            workspaces = sorted(self.config.build_root.iterdir())
        else:
            workspaces = []

        removed = []
        for workspace in workspaces:
            if workspace.is_dir() and not workspace.is_symlink():
                shutil.rmtree(workspace)
                removed.append(workspace)
            elif workspace.exists():
                workspace.unlink()
                removed.append(workspace)

        if package is not None:
            self._run_hook("post_clean", package)

        logger.info("Clean finished for %s", name or "all packages")
        return removed

    # queries

    def installed(self) -> list[str]:
        return self.db.installed()

    def info(self, name: str) -> PackageInfo:
        package = self.store.find(name)
        if package is None and not self.db.is_installed(name):
            raise errors.PackageNotFound(name)

        manifest = self.db.read_manifest(name)
        return PackageInfo(
            name=name,
            installed=self.db.is_installed(name),
            version=self.db.current_version(name),
            history=[v for _, v in self.db.versions(name)],
            dependencies=package.dependencies if package else (),
            available_version=package.version if package else None,
            file_count=len(manifest) if manifest is not None else None,
        )

    def orphans(self) -> list[str]:
        return orphans.compute_orphans(self.db, self.store)

    def hash(
        self, name: str, *, verify: bool = False
    ) -> list[integrity.FileDigest]:
        return integrity.hash_package(
            self.db,
            name,
            algorithm=self.config.hash_algorithm,
            verify=verify,
        )

    def search(self, pattern: str) -> list[str]:
        return self.store.search(pattern)

    def check_updates(self) -> list[tuple[str, str | None, str]]:
        """Return ``(name, current, available)`` for outdated packages."""
        updates = []
        for name in self.db.installed():
            package = self.store.find(name)
            if package is None or package.version is None:
                continue
            current = self.db.current_version(name)
            if current != package.version:
                updates.append((name, current, package.version))
        return updates
