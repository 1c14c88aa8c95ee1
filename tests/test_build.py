import dataclasses
import pathlib
import shlex
import shutil
import tarfile
import zipfile

import pytest

from argopkg import build as argo_build
from argopkg import errors
from argopkg import manager as argo_manager
from argopkg.packages import store as pkg_store


def test_build_runs_script_with_build_dir(repo, manager, config):
    repo.add(
        "hello",
        script='set -e\necho "$1" > "$1/where"\necho "$PWD" > "$1/cwd"\n',
    )

    builddir = manager.build("hello")

    assert builddir == config.workspace("hello") / "build"
    assert (builddir / "where").read_text().strip() == str(builddir)
    cwd = (builddir / "cwd").read_text().strip()
    assert pathlib.Path(cwd).resolve() == builddir.resolve()


def test_build_failure_is_reported(repo, manager):
    repo.add("broken", fail=True)
    with pytest.raises(errors.BuildScriptFailure):
        manager.build("broken")


def test_build_timeout(repo, config):
    repo.add("slow", script="exec sleep 10\n")
    config = dataclasses.replace(config, build_timeout=0.2)
    with pytest.raises(errors.BuildScriptFailure, match="timed out"):
        argo_manager.PackageManager(config).build("slow")


def test_build_dir_is_recreated(repo, manager, config):
    repo.add("pkg", files={"usr/share/a": "a"})
    builddir = manager.build("pkg")
    (builddir / "stale").write_text("old")

    manager.build("pkg")

    assert not (builddir / "stale").exists()
    assert (builddir / "usr" / "share" / "a").read_text() == "a"


def test_build_without_script(config, manager, repo):
    (config.repository / "meta").mkdir()
    builddir = manager.build("meta")
    assert builddir.is_dir()
    assert list(builddir.iterdir()) == []


def test_build_fetches_and_extracts_local_archive(repo, manager, tmp_path):
    tree = tmp_path / "upstream" / "pkg-1.0"
    tree.mkdir(parents=True)
    (tree / "Makefile").write_text("all:\n")
    archive = tmp_path / "pkg-1.0.tar.gz"
    with tarfile.open(archive, "w:gz") as tf:
        tf.add(tree, arcname="pkg-1.0")
    repo.add(
        "pkg",
        source=str(archive),
        script='test -f "$1/pkg-1.0/Makefile"\n',
    )

    builddir = manager.build("pkg")

    assert (builddir / "pkg-1.0" / "Makefile").exists()


def test_fetch_failure(repo, manager, tmp_path):
    repo.add("pkg", source=str(tmp_path / "does-not-exist.tar.gz"))
    with pytest.raises(errors.FetchFailure):
        manager.build("pkg")
    assert repo.log() == []


def test_dependencies_are_installed_before_build(repo, manager, config):
    repo.add("app", deps=["liba", "libb"])
    repo.add("liba", deps=["libc"], files={"usr/lib/liba": "a"})
    repo.add("libb", files={"usr/lib/libb": "b"})
    repo.add("libc", files={"usr/lib/libc": "c"})

    manager.build("app")

    assert repo.log() == [
        "build libc",
        "build liba",
        "build libb",
        "build app",
    ]
    assert manager.installed() == ["libc", "liba", "libb"]
    assert (config.destination / "usr" / "lib" / "liba").read_text() == "a"
    assert not manager.db.is_installed("app")


def test_installed_dependencies_are_not_rebuilt(repo, manager):
    repo.add("app", deps=["lib"])
    repo.add("lib")
    manager.build("lib")
    manager.install("lib")

    manager.build("app")

    assert repo.log() == ["build lib", "build app"]


def test_dependency_failure_aborts_build(repo, manager):
    repo.add("app", deps=["good", "bad", "later"])
    repo.add("good")
    repo.add("bad", fail=True)
    repo.add("later")

    with pytest.raises(errors.DependencyFailure) as exc:
        manager.build("app")

    assert exc.value.dependency == "bad"
    assert isinstance(exc.value.__cause__, errors.BuildScriptFailure)
    assert repo.log() == ["build good", "build bad"]
    assert manager.installed() == ["good"]


def test_cycle_fails_before_building(repo, manager):
    repo.add("p", deps=["q"])
    repo.add("q", deps=["p"])
    with pytest.raises(errors.CycleDetected):
        manager.build("p")
    assert repo.log() == []


def test_hooks_bracket_the_build(repo, manager, tmp_path):
    hook = f'echo "$ARGO_STAGE" >> {shlex.quote(str(repo.events))}\n'
    repo.add("pkg", hooks={"pre_build": hook, "post_build": hook})

    manager.build("pkg")

    assert repo.log() == ["pre_build", "build pkg", "post_build"]


def test_failing_pre_build_hook_does_not_fail_build(repo, manager):
    repo.add("pkg", hooks={"pre_build": "exit 1\n"})
    manager.build("pkg")
    assert repo.log() == ["build pkg"]


@pytest.mark.skipif(shutil.which("patch") is None, reason="needs patch(1)")
def test_patches_are_applied_in_order(repo, config, tmp_path):
    upstream = tmp_path / "upstream"
    upstream.mkdir()
    (upstream / "greeting").write_text("hello\n")
    pkgdir = repo.add(
        "pkg", source=f"file://{upstream}", script="true\n"
    )
    (pkgdir / "patch").mkdir()
    (pkgdir / "patch" / "01-world.patch").write_text(
        "--- a/greeting\n"
        "+++ b/greeting\n"
        "@@ -1 +1 @@\n"
        "-hello\n"
        "+hello world\n"
    )
    (pkgdir / "patch" / "02-bang.patch").write_text(
        "--- a/greeting\n"
        "+++ b/greeting\n"
        "@@ -1 +1 @@\n"
        "-hello world\n"
        "+hello world!\n"
    )
    pkg = pkg_store.PackageStore(config.repository).get("pkg")

    builddir = argo_build.Build(config, pkg).run()

    assert (builddir / "greeting").read_text() == "hello world!\n"

@pytest.mark.parametrize("name", ["pkg-1.0.tar.gz", "pkg-1.0.zip"])
def test_corrupt_archive_is_a_build_failure(repo, manager, tmp_path, name):
    bad = tmp_path / name
    bad.write_bytes(b"not an archive")
    repo.add("pkg", source=str(bad))

    with pytest.raises(errors.BuildFailure, match="cannot extract"):
        manager.build("pkg")
    assert repo.log() == []


def test_archive_escaping_build_dir_is_a_build_failure(
    repo, manager, config, tmp_path
):
    archive = tmp_path / "pkg.zip"
    with zipfile.ZipFile(archive, "w") as zf:
        zf.writestr("../../escaped.txt", "x")
    repo.add("pkg", source=str(archive))

    with pytest.raises(errors.BuildFailure):
        manager.build("pkg")
    assert not (config.build_root / "escaped.txt").exists()
    assert repo.log() == []
