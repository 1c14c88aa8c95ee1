from __future__ import annotations
from typing import Iterator, Mapping

import dataclasses
import pathlib

from argopkg.errors import PackageNotFound


HOOK_STAGES = (
    "pre_build",
    "post_build",
    "pre_install",
    "post_install",
    "pre_remove",
    "post_remove",
    "pre_clean",
    "post_clean",
)


def read_list(path: pathlib.Path) -> list[str]:
    """Read a newline-separated list, dropping comments and blank lines.

    A missing file reads as an empty list.
    """
    try:
        text = path.read_text()
    except FileNotFoundError:
        return []

    entries = []
    for line in text.splitlines():
        entry, _, _ = line.partition("#")
        entry = entry.strip()
        if entry:
            entries.append(entry)
    return entries


def _read_value(path: pathlib.Path) -> str | None:
    entries = read_list(path)
    return entries[0] if entries else None


@dataclasses.dataclass(frozen=True)
class PackageDefinition:
    name: str
    path: pathlib.Path
    dependencies: tuple[str, ...] = ()
    build_script: pathlib.Path | None = None
    patches: tuple[pathlib.Path, ...] = ()
    hooks: Mapping[str, pathlib.Path] = dataclasses.field(
        default_factory=dict
    )
    source: str | None = None
    version: str | None = None

    def depends_on(self, name: str) -> bool:
        return name in self.dependencies

    def __str__(self) -> str:
        return self.name


class PackageStore:
    """Read-only view of a package repository.

    Every package ``P`` is a directory ``<base>/P`` that may contain
    ``deps.list``, ``build``, ``patch/*``, ``hooks/<stage>.sh``, ``source``
    and ``version``.
    """

    def __init__(self, base: pathlib.Path) -> None:
        self.base = base
        self._cache: dict[str, PackageDefinition] = {}

    def names(self) -> Iterator[str]:
        if not self.base.is_dir():
            return
        for path in sorted(self.base.iterdir()):
            if path.is_dir():
                yield path.name

    def find(self, name: str) -> PackageDefinition | None:
        try:
            return self.get(name)
        except PackageNotFound:
            return None

    def get(self, name: str) -> PackageDefinition:
        try:
            return self._cache[name]
        except KeyError:
            pass

        pkgdir = self._pkgdir(name)
        if not pkgdir.is_dir():
            raise PackageNotFound(name)

        build_script = pkgdir / "build"
        patch_dir = pkgdir / "patch"
        if patch_dir.is_dir():
            patches = tuple(
                p for p in sorted(patch_dir.iterdir()) if p.is_file()
            )
        else:
            patches = ()

        hooks = {}
        for stage in HOOK_STAGES:
            hook = pkgdir / "hooks" / f"{stage}.sh"
            if hook.is_file():
                hooks[stage] = hook

        pkg = PackageDefinition(
            name=name,
            path=pkgdir,
            dependencies=tuple(read_list(pkgdir / "deps.list")),
            build_script=build_script if build_script.is_file() else None,
            patches=patches,
            hooks=hooks,
            source=_read_value(pkgdir / "source"),
            version=_read_value(pkgdir / "version"),
        )
        self._cache[name] = pkg
        return pkg

    def search(self, pattern: str) -> list[str]:
        pattern = pattern.lower()
        return [name for name in self.names() if pattern in name.lower()]

    def _pkgdir(self, name: str) -> pathlib.Path:
        if not name or "/" in name or name in {".", ".."}:
            raise PackageNotFound(name)
        return self.base / name
