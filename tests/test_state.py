import pathlib

import pytest

from argopkg import state


@pytest.fixture
def db(config):
    return state.InstalledDatabase(config)


def test_installed_is_deduplicated(db, config):
    with db.locked():
        db.add_installed("zlib")
        db.add_installed("curl")
        db.add_installed("zlib")

    assert db.installed() == ["zlib", "curl"]
    assert config.installed_list.read_text() == "zlib\ncurl\n"

    with db.locked():
        db.remove_installed("zlib")
    assert db.installed() == ["curl"]
    assert not db.is_installed("zlib")


def test_legacy_duplicates_are_collapsed(db, config):
    config.var_dir.mkdir(parents=True)
    config.installed_list.write_text("a\nb\na\n")
    assert db.installed() == ["a", "b"]


def test_last_version_wins(db):
    assert db.current_version("x") is None
    with db.locked():
        db.append_version("x", "1.0")
        db.append_version("y", "3.1")
        db.append_version("x", "2.0")

    assert db.current_version("x") == "2.0"
    assert db.versions("x") == [("x", "1.0"), ("x", "2.0")]
    assert db.current_version("y") == "3.1"


def test_manifest_roundtrip(db):
    files = [pathlib.Path("/usr/bin/foo"), pathlib.Path("/usr/lib/libfoo.so")]
    assert db.read_manifest("foo") is None

    with db.locked():
        db.write_manifest("foo", files)
    assert db.has_manifest("foo")
    assert db.read_manifest("foo") == files

    with db.locked():
        db.delete_manifest("foo")
    assert db.read_manifest("foo") is None


def test_digests_roundtrip(db):
    path = pathlib.Path("/opt/with space/file")
    with db.locked():
        db.write_digests("foo", [(path, "abc123")])
    assert db.read_digests("foo") == {path: "abc123"}


def test_mutation_requires_lock(db):
    with pytest.raises(RuntimeError):
        db.add_installed("zlib")


def test_lock_is_reentrant(db, config):
    with db.locked():
        with db.locked():
            db.add_installed("a")
        db.add_installed("b")
    assert db.installed() == ["a", "b"]
    assert config.lock_file.exists()


def test_write_atomic_leaves_no_temporaries(tmp_path):
    target = tmp_path / "state" / "list"
    state.write_atomic(target, ["one", "two"])
    state.write_atomic(target, ["three"])
    assert target.read_text() == "three\n"
    assert [p.name for p in target.parent.iterdir()] == ["list"]
