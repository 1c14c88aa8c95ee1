from __future__ import annotations
from typing import Iterable, Iterator, NamedTuple

import hashlib
import os
import pathlib

from argopkg import errors
from argopkg import state


OK = "ok"
MISMATCH = "mismatch"
MISSING = "missing"
UNRECORDED = "unrecorded"


class FileDigest(NamedTuple):
    path: pathlib.Path
    digest: str | None
    expected: str | None = None

    @property
    def status(self) -> str:
        if self.digest is None:
            return MISSING
        elif self.expected is None:
            return UNRECORDED
        elif self.digest == self.expected:
            return OK
        else:
            return MISMATCH

    def format(self) -> str:
        """Render in the ``sha256sum`` checksum-file format."""
        return f"{self.digest}  {self.path}"


def file_digest(path: pathlib.Path, algorithm: str = "sha256") -> str:
    """Return the hex digest of *path*.

    Symlinks are hashed by their target string, not followed.
    """
    hashfunc = hashlib.new(algorithm)
    if path.is_symlink():
        hashfunc.update(os.fsencode(os.readlink(path)))
        return hashfunc.hexdigest()

    with open(path, "rb") as f:
        while True:
            chunk = f.read(1024 * 1024)
            if not chunk:
                break
            hashfunc.update(chunk)
    return hashfunc.hexdigest()


def digest_files(
    paths: Iterable[pathlib.Path], algorithm: str = "sha256"
) -> Iterator[tuple[pathlib.Path, str]]:
    for path in paths:
        if path.is_symlink() or path.is_file():
            yield path, file_digest(path, algorithm)


def hash_package(
    db: state.InstalledDatabase,
    name: str,
    *,
    algorithm: str = "sha256",
    verify: bool = False,
) -> list[FileDigest]:
    """Digest every file in the manifest of *name*.

    With *verify*, each entry also carries the digest recorded when the
    package was installed, so that :attr:`FileDigest.status` tells whether
    the file changed.
    """
    manifest = db.read_manifest(name)
    if manifest is None:
        raise errors.ManifestMissing(name)

    baseline: dict[pathlib.Path, str] = {}
    if verify:
        baseline = db.read_digests(name) or {}

    result = []
    for path in manifest:
        if path.is_symlink() or path.is_file():
            digest = file_digest(path, algorithm)
        else:
            digest = None
        result.append(FileDigest(path, digest, baseline.get(path)))
    return result
