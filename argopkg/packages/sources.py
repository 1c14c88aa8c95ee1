from __future__ import annotations
from typing import Any

import logging
import os
import pathlib
import shutil
import tarfile
import urllib.parse
import zipfile

import requests

from argopkg import tools


logger = logging.getLogger(__name__)

ARCHIVE_SUFFIXES = (
    ".tar",
    ".tar.gz",
    ".tgz",
    ".tar.bz2",
    ".tbz2",
    ".tar.xz",
    ".txz",
    ".zip",
)

VCS_DIRS = (".git", ".hg", ".svn")


class BaseSource:
    def __init__(
        self,
        url: str,
        name: str,
        **extras: Any,
    ) -> None:
        self.url = url
        self.name = name
        self.extras = extras

    def download(self, target_dir: pathlib.Path) -> pathlib.Path:
        """Fetch the source into *target_dir* and return the artifact path."""
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.url}>"


class HttpsSource(BaseSource):
    def download(self, target_dir: pathlib.Path) -> pathlib.Path:
        target_dir.mkdir(parents=True, exist_ok=True)
        destination = target_dir / self.name
        return self._download(destination)

    def _download(self, destination: pathlib.Path) -> pathlib.Path:
        logger.info("Downloading %s", self.url)
        req = requests.get(
            self.url, stream=True, timeout=self.extras.get("timeout")
        )
        if req.status_code < 200 or req.status_code >= 300:
            raise RuntimeError(f"download failed: {req.status_code}")

        try:
            with open(destination, "wb") as f:
                for chunk in req.iter_content(chunk_size=4096):
                    if chunk:
                        f.write(chunk)
        except BaseException:
            if destination.exists():
                destination.unlink()
            raise
        finally:
            req.close()

        return destination


class LocalSource(BaseSource):
    def download(self, target_dir: pathlib.Path) -> pathlib.Path:
        src = pathlib.Path(self.url)
        target_dir.mkdir(parents=True, exist_ok=True)
        destination = target_dir / self.name
        if src.is_dir():
            if destination.exists():
                shutil.rmtree(destination)
            shutil.copytree(
                src,
                destination,
                symlinks=True,
                ignore=shutil.ignore_patterns(*VCS_DIRS),
            )
        else:
            shutil.copy2(src, destination)
        return destination


class GitSource(BaseSource):
    def __init__(
        self,
        url: str,
        name: str,
        *,
        vcs_version: str | None = None,
        **extras: Any,
    ) -> None:
        super().__init__(url, name, **extras)
        self.ref = vcs_version

    def download(self, target_dir: pathlib.Path) -> pathlib.Path:
        return tools.git.update_repo(
            self.url,
            target_dir / self.name,
            ref=self.ref,
            timeout=self.extras.get("timeout"),
        )


def source_for_url(url: str, **extras: Any) -> BaseSource:
    """Pick a source implementation from the shape of *url*.

    ``http(s)://`` URLs are downloaded unless they name a ``.git``
    repository, ``file://`` URLs and absolute paths are copied, and
    anything else is cloned with git.  A ``#ref`` fragment selects the
    revision of a git source.
    """
    parts = urllib.parse.urlparse(url)
    path_parts = parts.path.rstrip("/").split("/")
    name = path_parts[-1] or parts.netloc
    if parts.scheme in ("https", "http") and not parts.path.endswith(".git"):
        return HttpsSource(url, name=name, **extras)
    elif parts.scheme == "file":
        return LocalSource(urllib.parse.unquote(parts.path), name, **extras)
    elif not parts.scheme and os.path.isabs(url):
        return LocalSource(url, name, **extras)
    else:
        if url.startswith("git+"):
            url = url[4:]
        url, _, ref = url.partition("#")
        if name.endswith(".git"):
            name = name[:-4]
        name = name.partition("#")[0]
        return GitSource(url, name=name, vcs_version=ref or None, **extras)


def is_archive(path: pathlib.Path) -> bool:
    return path.is_file() and path.name.endswith(ARCHIVE_SUFFIXES)


def unpack(
    archive: pathlib.Path,
    dest: pathlib.Path,
    *,
    strip_components: int = 0,
) -> None:
    if not dest.exists():
        dest.mkdir(parents=True)

    if archive.name.endswith(".zip"):
        unpack_zip(archive, dest, strip_components=strip_components)
    elif archive.name.endswith(ARCHIVE_SUFFIXES):
        unpack_tar(archive, dest, strip_components=strip_components)
    else:
        raise ValueError(f"{archive.name} is not a supported archive")


def _strip(parts: tuple[str, ...], strip_components: int) -> pathlib.Path:
    return pathlib.Path(parts[strip_components]).joinpath(
        *parts[strip_components + 1 :]
    )


def _member_path(
    dest: pathlib.Path, relpath: str | os.PathLike[str]
) -> pathlib.Path:
    # Resolving follows symlinks already extracted into dest.
    target = (dest / relpath).resolve()
    if not target.is_relative_to(dest.resolve()):
        raise ValueError(f"archive member {str(relpath)!r} escapes {dest}")
    return target


def unpack_tar(
    archive: pathlib.Path,
    dest: pathlib.Path,
    *,
    strip_components: int,
) -> None:
    with tarfile.open(archive, "r:*") as tf:
        for member in tf.getmembers():
            if strip_components:
                member_parts = pathlib.Path(member.name).parts
                if len(member_parts) <= strip_components:
                    continue
                member.name = str(_strip(member_parts, strip_components))
            _member_path(dest, member.name)
            if member.islnk():
                _member_path(dest, member.linkname)
            tf.extract(member, path=dest)


def unpack_zip(
    archive: pathlib.Path,
    dest: pathlib.Path,
    *,
    strip_components: int,
) -> None:
    with zipfile.ZipFile(archive) as zf:
        for member in zf.infolist():
            if strip_components:
                member_parts = pathlib.Path(member.filename).parts
                if len(member_parts) <= strip_components:
                    continue
                relpath = _strip(member_parts, strip_components)
            else:
                relpath = pathlib.Path(member.filename)
            targetpath = _member_path(dest, relpath)
            if member.is_dir():
                targetpath.mkdir(parents=True, exist_ok=True)
            else:
                targetpath.parent.mkdir(parents=True, exist_ok=True)
                with open(targetpath, "wb") as df, zf.open(member) as sf:
                    shutil.copyfileobj(sf, df)
                mode = (member.external_attr >> 16) & 0o777
                if mode:
                    targetpath.chmod(mode)


def extract(artifact: pathlib.Path, dest: pathlib.Path) -> None:
    """Populate *dest* from a fetched artifact.

    Archives are unpacked, directories are copied verbatim without VCS
    metadata, and any other file is copied in as is.
    """
    dest.mkdir(parents=True, exist_ok=True)
    if is_archive(artifact):
        unpack(artifact, dest)
    elif artifact.is_dir():
        shutil.copytree(
            artifact,
            dest,
            symlinks=True,
            ignore=shutil.ignore_patterns(*VCS_DIRS),
            dirs_exist_ok=True,
        )
    else:
        shutil.copy2(artifact, dest / artifact.name)
