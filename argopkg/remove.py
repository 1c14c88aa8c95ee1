from __future__ import annotations

import logging
import pathlib

from argopkg import config as argo_config
from argopkg import errors
from argopkg import hooks as argo_hooks
from argopkg import state
from argopkg.packages import store as pkg_store


logger = logging.getLogger(__name__)


def _delete_path(path: pathlib.Path) -> bool:
    if path.is_symlink() or path.is_file():
        path.unlink()
        return True
    elif path.is_dir():
        if any(path.iterdir()):
            logger.debug("keeping non-empty directory %s", path)
            return False
        path.rmdir()
        return True
    else:
        logger.debug("%s is already gone", path)
        return False


class Remover:
    def __init__(
        self,
        config: argo_config.Config,
        db: state.InstalledDatabase,
        store: pkg_store.PackageStore,
        hooks: argo_hooks.HookRunner,
    ) -> None:
        self._config = config
        self._db = db
        self._store = store
        self._hooks = hooks

    def run_hook(self, stage: str, name: str) -> None:
        package = self._store.find(name)
        if package is None:
            return
        result = self._hooks.run(
            stage, package, self._config.workspace(name)
        )
        if not result.success:
            logger.warning(
                "%s hook of %s failed: %s", stage, name, result.output.strip()
            )

    def remove(self, name: str) -> list[pathlib.Path]:
        """Delete every file recorded for *name*, last recorded first.

        Raises :exc:`~argopkg.errors.ManifestMissing`, without touching
        anything, when *name* has no manifest.
        """
        with self._db.locked():
            manifest = self._db.read_manifest(name)
            if manifest is None:
                raise errors.ManifestMissing(name)

            self.run_hook("pre_remove", name)

            removed = []
            for path in reversed(manifest):
                try:
                    deleted = _delete_path(path)
                except OSError as e:
                    logger.warning("cannot remove %s: %s", path, e)
                    continue
                if deleted:
                    removed.append(path)

            self._db.delete_manifest(name)
            self._db.delete_digests(name)
            self._db.remove_installed(name)

            self.run_hook("post_remove", name)

        logger.info("%s removed (%d files)", name, len(removed))
        return removed
