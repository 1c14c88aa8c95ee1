import hashlib

import pytest

from argopkg import errors
from argopkg import integrity


def test_hash_without_manifest(manager, config):
    with pytest.raises(errors.ManifestMissing):
        manager.hash("ghost")
    assert not config.var_dir.exists()


def test_hash_lists_digests(repo, manager, config):
    repo.add("tool", files={"bin/a": "alpha", "bin/b": "beta"})
    manager.build("tool")
    manager.install("tool")

    digests = manager.hash("tool")

    dest = config.destination
    assert [(d.path, d.digest) for d in digests] == [
        (dest / "bin" / "a", hashlib.sha256(b"alpha").hexdigest()),
        (dest / "bin" / "b", hashlib.sha256(b"beta").hexdigest()),
    ]
    assert digests[0].format() == (
        f"{hashlib.sha256(b'alpha').hexdigest()}  {dest / 'bin' / 'a'}"
    )


def test_verify(repo, manager, config):
    repo.add("tool", files={"a": "1", "b": "2", "c": "3"})
    manager.build("tool")
    manager.install("tool")
    dest = config.destination
    (dest / "b").write_text("tampered")
    (dest / "c").unlink()

    statuses = {d.path.name: d.status for d in manager.hash("tool", verify=True)}

    assert statuses == {
        "a": integrity.OK,
        "b": integrity.MISMATCH,
        "c": integrity.MISSING,
    }


def test_verify_without_baseline(manager, config, tmp_path):
    target = tmp_path / "file"
    target.write_text("x")
    with manager.db.locked():
        manager.db.write_manifest("pkg", [target])
        manager.db.add_installed("pkg")

    [entry] = manager.hash("pkg", verify=True)

    assert entry.status == integrity.UNRECORDED


def test_file_digest_of_symlink(tmp_path):
    link = tmp_path / "link"
    link.symlink_to("nowhere")
    assert integrity.file_digest(link) == hashlib.sha256(b"nowhere").hexdigest()
