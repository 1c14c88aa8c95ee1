from __future__ import annotations
from typing import Iterable, Iterator

import contextlib
import fcntl
import os
import pathlib
import tempfile
import threading

from argopkg import config as argo_config
from argopkg.packages.store import read_list


def write_atomic(path: pathlib.Path, lines: Iterable[str]) -> None:
    """Replace *path* with *lines* via a temporary file and a rename."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.")
    try:
        with os.fdopen(fd, "w") as f:
            for line in lines:
                f.write(f"{line}\n")
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, path)
    except BaseException:
        with contextlib.suppress(FileNotFoundError):
            os.unlink(tmp)
        raise


def _read_lines(path: pathlib.Path) -> list[str]:
    try:
        return [line for line in path.read_text().splitlines() if line]
    except FileNotFoundError:
        return []


class InstalledDatabase:
    """Installed packages, their version log, manifests and digests.

    Mutations must happen inside :meth:`locked`, which takes an exclusive
    ``flock`` on the state directory.  The lock is re-entrant within a
    process, so an operation can hold it while calling other operations.
    """

    def __init__(self, config: argo_config.Config) -> None:
        self._config = config
        self._lock_depth = 0
        self._lock_file = None
        self._thread_lock = threading.RLock()

    @contextlib.contextmanager
    def locked(self) -> Iterator[InstalledDatabase]:
        with self._thread_lock:
            if self._lock_depth == 0:
                self._config.var_dir.mkdir(parents=True, exist_ok=True)
                lock_file = open(self._config.lock_file, "a+")
                try:
                    fcntl.flock(lock_file.fileno(), fcntl.LOCK_EX)
                except BaseException:
                    lock_file.close()
                    raise
                self._lock_file = lock_file
            self._lock_depth += 1
            try:
                yield self
            finally:
                self._lock_depth -= 1
                if self._lock_depth == 0 and self._lock_file is not None:
                    fcntl.flock(self._lock_file.fileno(), fcntl.LOCK_UN)
                    self._lock_file.close()
                    self._lock_file = None

    def _check_locked(self) -> None:
        if self._lock_depth == 0:
            raise RuntimeError("database mutation outside of locked()")

    # installed.list

    def installed(self) -> list[str]:
        seen = set()
        names = []
        for name in read_list(self._config.installed_list):
            if name not in seen:
                seen.add(name)
                names.append(name)
        return names

    def is_installed(self, name: str) -> bool:
        return name in self.installed()

    def add_installed(self, name: str) -> None:
        self._check_locked()
        names = self.installed()
        if name not in names:
            names.append(name)
            write_atomic(self._config.installed_list, names)

    def remove_installed(self, name: str) -> None:
        self._check_locked()
        names = self.installed()
        if name in names:
            names.remove(name)
            write_atomic(self._config.installed_list, names)

    # versions.list

    def versions(self, name: str | None = None) -> list[tuple[str, str]]:
        records = []
        for line in _read_lines(self._config.versions_list):
            pkg, _, version = line.partition(" ")
            if name is None or pkg == name:
                records.append((pkg, version.strip()))
        return records

    def current_version(self, name: str) -> str | None:
        """Return the last version logged for *name*."""
        records = self.versions(name)
        return records[-1][1] if records else None

    def append_version(self, name: str, version: str) -> None:
        self._check_locked()
        lines = _read_lines(self._config.versions_list)
        lines.append(f"{name} {version}")
        write_atomic(self._config.versions_list, lines)

    # manifests/<name>.list

    def manifest_path(self, name: str) -> pathlib.Path:
        return self._config.manifest_dir / f"{name}.list"

    def has_manifest(self, name: str) -> bool:
        return self.manifest_path(name).is_file()

    def read_manifest(self, name: str) -> list[pathlib.Path] | None:
        path = self.manifest_path(name)
        if not path.is_file():
            return None
        return [pathlib.Path(line) for line in _read_lines(path)]

    def write_manifest(
        self, name: str, files: Iterable[os.PathLike[str] | str]
    ) -> None:
        self._check_locked()
        write_atomic(self.manifest_path(name), (str(f) for f in files))

    def delete_manifest(self, name: str) -> None:
        self._check_locked()
        self.manifest_path(name).unlink(missing_ok=True)

    # digests/<name>.<algorithm>

    def digest_path(self, name: str) -> pathlib.Path:
        algorithm = self._config.hash_algorithm
        return self._config.digest_dir / f"{name}.{algorithm}"

    def read_digests(self, name: str) -> dict[pathlib.Path, str] | None:
        path = self.digest_path(name)
        if not path.is_file():
            return None
        digests = {}
        for line in _read_lines(path):
            digest, _, filename = line.partition("  ")
            digests[pathlib.Path(filename)] = digest
        return digests

    def write_digests(
        self, name: str, digests: Iterable[tuple[pathlib.Path, str]]
    ) -> None:
        self._check_locked()
        write_atomic(
            self.digest_path(name),
            (f"{digest}  {path}" for path, digest in digests),
        )

    def delete_digests(self, name: str) -> None:
        self._check_locked()
        self.digest_path(name).unlink(missing_ok=True)

    # orphan.list

    def write_orphans(self, names: Iterable[str]) -> None:
        self._check_locked()
        write_atomic(self._config.orphan_list, names)
