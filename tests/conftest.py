from __future__ import annotations

import pathlib
import shlex

import pytest

from argopkg import config as argo_config
from argopkg import manager as argo_manager


class Repository:
    """Writes package definitions into a throwaway repository."""

    def __init__(self, base: pathlib.Path, events: pathlib.Path) -> None:
        self.base = base
        self.events = events

    def add(
        self,
        name: str,
        *,
        deps: tuple[str, ...] | list[str] = (),
        files: dict[str, str] | None = None,
        script: str | None = None,
        fail: bool = False,
        hooks: dict[str, str] | None = None,
        source: str | None = None,
        version: str | None = None,
    ) -> pathlib.Path:
        pkgdir = self.base / name
        pkgdir.mkdir(parents=True, exist_ok=True)
        if deps:
            (pkgdir / "deps.list").write_text("\n".join(deps) + "\n")

        if script is None:
            lines = [
                "set -e",
                f'echo "build $ARGO_PACKAGE" >> {shlex.quote(str(self.events))}',
            ]
            for relpath, content in (files or {}).items():
                target = f'"$1"/{shlex.quote(relpath)}'
                lines.append(f"mkdir -p \"$(dirname {target})\"")
                lines.append(f"printf %s {shlex.quote(content)} > {target}")
            if fail:
                lines.append("exit 3")
            script = "\n".join(lines) + "\n"
        (pkgdir / "build").write_text(script)

        for stage, body in (hooks or {}).items():
            hookdir = pkgdir / "hooks"
            hookdir.mkdir(exist_ok=True)
            (hookdir / f"{stage}.sh").write_text(body)

        if source is not None:
            (pkgdir / "source").write_text(source + "\n")
        if version is not None:
            (pkgdir / "version").write_text(version + "\n")

        return pkgdir

    def log(self) -> list[str]:
        if not self.events.exists():
            return []
        return self.events.read_text().splitlines()


@pytest.fixture
def config(tmp_path: pathlib.Path) -> argo_config.Config:
    return argo_config.Config.from_root(
        tmp_path / "argo", destination=tmp_path / "root"
    )


@pytest.fixture
def repo(config: argo_config.Config, tmp_path: pathlib.Path) -> Repository:
    config.repository.mkdir(parents=True)
    return Repository(config.repository, tmp_path / "events.log")


@pytest.fixture
def manager(
    config: argo_config.Config, repo: Repository
) -> argo_manager.PackageManager:
    return argo_manager.PackageManager(config)
