from __future__ import annotations
from typing import Any, Mapping

import dataclasses
import hashlib
import os
import pathlib

import tomli

from .errors import ConfigError


ARGO_HOME = pathlib.Path.home() / "argo"
CONFIG_NAME = "argo.toml"

_PATH_KEYS = ("repository", "build_root", "var_dir", "destination")


@dataclasses.dataclass(frozen=True)
class Config:
    """Locations and switches shared by every component."""

    root: pathlib.Path
    repository: pathlib.Path
    build_root: pathlib.Path
    var_dir: pathlib.Path
    destination: pathlib.Path = pathlib.Path("/")
    apply_patches: bool = True
    record_digests: bool = True
    hash_algorithm: str = "sha256"
    shell: str = "/bin/bash"
    build_timeout: float | None = None
    fetch_timeout: float | None = 300.0

    def __post_init__(self) -> None:
        if self.hash_algorithm not in hashlib.algorithms_available:
            raise ConfigError(
                f"unsupported hash_algorithm: {self.hash_algorithm!r}"
            )
        for key in ("apply_patches", "record_digests"):
            if not isinstance(getattr(self, key), bool):
                raise ConfigError(f"{key} must be true or false")
        for key in ("build_timeout", "fetch_timeout"):
            value = getattr(self, key)
            if value is None:
                continue
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ConfigError(f"{key} must be a number")
            if value <= 0:
                raise ConfigError(f"{key} must be positive")
        if not isinstance(self.shell, str) or not self.shell:
            raise ConfigError("shell must be a non-empty string")

    @classmethod
    def from_root(cls, root: str | os.PathLike[str], **overrides: Any) -> Config:
        root_p = pathlib.Path(root).expanduser()
        values: dict[str, Any] = {
            "repository": root_p / "base",
            "build_root": root_p / "tmp",
            "var_dir": root_p / "var",
        }
        for key, value in overrides.items():
            if key in _PATH_KEYS:
                if not isinstance(value, (str, os.PathLike)):
                    raise ConfigError(f"{key} must be a path")
                value = root_p / pathlib.Path(value).expanduser()
            values[key] = value
        return cls(root=root_p, **values)

    @property
    def installed_list(self) -> pathlib.Path:
        return self.var_dir / "installed.list"

    @property
    def versions_list(self) -> pathlib.Path:
        return self.var_dir / "versions.list"

    @property
    def orphan_list(self) -> pathlib.Path:
        return self.var_dir / "orphan.list"

    @property
    def manifest_dir(self) -> pathlib.Path:
        return self.var_dir / "manifests"

    @property
    def digest_dir(self) -> pathlib.Path:
        return self.var_dir / "digests"

    @property
    def log_file(self) -> pathlib.Path:
        return self.var_dir / "argo.log"

    @property
    def lock_file(self) -> pathlib.Path:
        return self.var_dir / "lock"

    def workspace(self, name: str) -> pathlib.Path:
        return self.build_root / name

    def ensure_dirs(self) -> None:
        for d in (self.build_root, self.var_dir, self.manifest_dir):
            d.mkdir(parents=True, exist_ok=True)


def load(
    path: str | os.PathLike[str] | None = None,
    *,
    environ: Mapping[str, str] | None = None,
) -> Config:
    """Build a :class:`Config` from the environment and ``argo.toml``.

    ``ARGO_ROOT`` selects the root directory and ``ARGO_CONFIG`` the
    configuration file.  The file is optional unless named explicitly.
    """
    if environ is None:
        environ = os.environ

    root = pathlib.Path(environ.get("ARGO_ROOT", ARGO_HOME)).expanduser()

    explicit = path is not None or "ARGO_CONFIG" in environ
    if path is None:
        path = environ.get("ARGO_CONFIG", root / CONFIG_NAME)
    config_path = pathlib.Path(path).expanduser()

    if not config_path.exists():
        if explicit:
            raise ConfigError(f"configuration file {config_path} not found")
        return Config.from_root(root)

    try:
        with open(config_path, "rb") as f:
            data = tomli.load(f)
    except tomli.TOMLDecodeError as e:
        raise ConfigError(f"cannot parse {config_path}: {e}") from e

    section = data.get("argo", {})
    if not isinstance(section, dict):
        raise ConfigError(f"{config_path}: [argo] must be a table")

    known = {f.name for f in dataclasses.fields(Config)} - {"root"}
    unknown = set(section) - known
    if unknown:
        raise ConfigError(
            f"{config_path}: unknown settings: {', '.join(sorted(unknown))}"
        )

    return Config.from_root(root, **section)
