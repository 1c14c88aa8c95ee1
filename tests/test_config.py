import pathlib

import pytest

from argopkg import config as argo_config
from argopkg.errors import ConfigError


def test_defaults(tmp_path):
    config = argo_config.load(environ={"ARGO_ROOT": str(tmp_path)})

    assert config.root == tmp_path
    assert config.repository == tmp_path / "base"
    assert config.build_root == tmp_path / "tmp"
    assert config.var_dir == tmp_path / "var"
    assert config.destination == pathlib.Path("/")
    assert config.installed_list == tmp_path / "var" / "installed.list"
    assert config.manifest_dir == tmp_path / "var" / "manifests"
    assert config.apply_patches


def test_toml_overrides(tmp_path):
    (tmp_path / "argo.toml").write_text(
        "[argo]\n"
        'repository = "/srv/ports"\n'
        'var_dir = "state"\n'
        "apply_patches = false\n"
        "build_timeout = 60\n"
    )

    config = argo_config.load(environ={"ARGO_ROOT": str(tmp_path)})

    assert config.repository == pathlib.Path("/srv/ports")
    assert config.var_dir == tmp_path / "state"
    assert not config.apply_patches
    assert config.build_timeout == 60


def test_unknown_setting(tmp_path):
    (tmp_path / "argo.toml").write_text("[argo]\nfrobnicate = 1\n")
    with pytest.raises(ConfigError, match="frobnicate"):
        argo_config.load(environ={"ARGO_ROOT": str(tmp_path)})


def test_explicit_config_must_exist(tmp_path):
    with pytest.raises(ConfigError):
        argo_config.load(
            environ={
                "ARGO_ROOT": str(tmp_path),
                "ARGO_CONFIG": str(tmp_path / "missing.toml"),
            }
        )


def test_invalid_toml(tmp_path):
    (tmp_path / "argo.toml").write_text("[argo\n")
    with pytest.raises(ConfigError):
        argo_config.load(environ={"ARGO_ROOT": str(tmp_path)})


@pytest.mark.parametrize(
    "setting, message",
    [
        ('hash_algorithm = "crc99"', "hash_algorithm"),
        ('apply_patches = "yes"', "apply_patches"),
        ('build_timeout = "soon"', "build_timeout"),
        ("fetch_timeout = 0", "fetch_timeout"),
        ("var_dir = 5", "var_dir"),
    ],
)
def test_invalid_setting_values(tmp_path, setting, message):
    (tmp_path / "argo.toml").write_text(f"[argo]\n{setting}\n")
    with pytest.raises(ConfigError, match=message):
        argo_config.load(environ={"ARGO_ROOT": str(tmp_path)})


def test_hash_algorithm_is_checked_up_front(tmp_path):
    with pytest.raises(ConfigError, match="unsupported"):
        argo_config.Config.from_root(tmp_path, hash_algorithm="nope")
