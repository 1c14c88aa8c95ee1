from __future__ import annotations
from typing import Iterable, Iterator

import logging
import os
import pathlib
import shutil

from argopkg import config as argo_config
from argopkg import errors
from argopkg import hooks as argo_hooks
from argopkg import integrity
from argopkg import state
from argopkg.packages import store as pkg_store


logger = logging.getLogger(__name__)


def get_paths_in(directory: pathlib.Path) -> Iterator[pathlib.Path]:
    """Yield paths under *directory*, relative to it, parents first.

    Directories are yielded before their contents.  Symlinks to
    directories are reported as files and not descended into.
    """
    for root, dirs, files in os.walk(directory):
        dirs.sort()
        root_p = pathlib.Path(root).relative_to(directory)
        for name in list(dirs):
            if (pathlib.Path(root) / name).is_symlink():
                dirs.remove(name)
                files.append(name)
            else:
                yield root_p / name
        for name in sorted(files):
            yield root_p / name


def copy_tree(
    src: pathlib.Path,
    dest: pathlib.Path,
    *,
    placed: list[pathlib.Path] | None = None,
) -> list[pathlib.Path]:
    """Copy *src* over *dest*, preserving modes, times and symlinks.

    Return the destination paths of every non-directory entry copied, in
    the order they were discovered.  When *placed* is given, paths are
    appended to it as they are copied, so a caller still knows what was
    written if the copy fails halfway.
    """
    if placed is None:
        placed = []
    try:
        dest.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise errors.InstallFailure(f"cannot create {dest}: {e}") from e
    for rel in get_paths_in(src):
        path_from = src / rel
        path_to = dest / rel
        try:
            if path_from.is_dir() and not path_from.is_symlink():
                if not path_to.is_dir():
                    path_to.mkdir()
                    shutil.copystat(path_from, path_to)
                continue

            if path_to.is_dir() and not path_to.is_symlink():
                raise errors.InstallFailure(
                    f"cannot copy {path_from} -> {path_to}: "
                    f"a directory is in the way"
                )
            if path_to.is_symlink() or (
                path_from.is_symlink() and path_to.exists()
            ):
                path_to.unlink()
            shutil.copy2(path_from, path_to, follow_symlinks=False)
        except OSError as e:
            raise errors.InstallFailure(
                f"cannot copy {path_from} -> {path_to}: {e}"
            ) from e
        logger.debug("cp %s -> %s", path_from, path_to)
        placed.append(path_to)

    return placed


class Installer:
    def __init__(
        self,
        config: argo_config.Config,
        db: state.InstalledDatabase,
        hooks: argo_hooks.HookRunner,
    ) -> None:
        self._config = config
        self._db = db
        self._hooks = hooks

    def build_dir(self, package: pkg_store.PackageDefinition) -> pathlib.Path:
        return self._config.workspace(package.name) / "build"

    def run_hook(
        self, stage: str, package: pkg_store.PackageDefinition
    ) -> None:
        result = self._hooks.run(
            stage, package, self._config.workspace(package.name)
        )
        if not result.success:
            logger.warning(
                "%s hook of %s failed: %s",
                stage,
                package.name,
                result.output.strip(),
            )

    def place(
        self,
        package: pkg_store.PackageDefinition,
        destination: pathlib.Path,
        placed: list[pathlib.Path] | None = None,
    ) -> list[pathlib.Path]:
        builddir = self.build_dir(package)
        if not builddir.is_dir():
            raise errors.InstallFailure(
                f"{package.name} has not been built"
            )
        return copy_tree(builddir, destination, placed=placed)

    def install(
        self,
        package: pkg_store.PackageDefinition,
        destination: pathlib.Path | None = None,
    ) -> list[pathlib.Path]:
        """Copy the build tree of *package* into *destination* and record it.

        The manifest covers the copied subtree only; files already present
        under *destination* are not claimed by the package.
        """
        if destination is None:
            destination = self._config.destination
        destination = destination.absolute()

        with self._db.locked():
            self.run_hook("pre_install", package)
            placed: list[pathlib.Path] = []
            try:
                manifest = self.place(package, destination, placed)
            except errors.InstallFailure:
                self.rollback(placed)
                raise
            self.record(package, manifest)
            self.run_hook("post_install", package)

        logger.info("%s installed in %s", package.name, destination)
        return manifest

    def rollback(self, placed: list[pathlib.Path]) -> None:
        """Delete files copied by an install that did not complete."""
        for path in reversed(placed):
            try:
                path.unlink(missing_ok=True)
            except OSError as e:
                logger.warning("cannot roll back %s: %s", path, e)
        logger.info("Rolled back %d file(s)", len(placed))

    def record(
        self,
        package: pkg_store.PackageDefinition,
        manifest: Iterable[pathlib.Path],
    ) -> None:
        manifest = list(manifest)
        with self._db.locked():
            if self._config.record_digests:
                self._db.write_digests(
                    package.name,
                    integrity.digest_files(
                        manifest, self._config.hash_algorithm
                    ),
                )
            self._db.write_manifest(package.name, manifest)
            self._db.add_installed(package.name)
