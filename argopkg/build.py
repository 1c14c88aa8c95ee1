from __future__ import annotations
from typing import TYPE_CHECKING

import concurrent.futures
import logging
import os
import pathlib
import shutil
import subprocess
import tarfile
import zipfile

from cleo.io.null_io import NullIO
from cleo.ui.progress_indicator import ProgressIndicator

from argopkg import config as argo_config
from argopkg import errors
from argopkg import tools
from argopkg.packages import sources as pkg_sources
from argopkg.packages import store as pkg_store

if TYPE_CHECKING:
    from cleo.io.io import IO


logger = logging.getLogger(__name__)


class Build:
    """Fetch, extract, patch and compile one package.

    The workspace of a package ``P`` is ``<build_root>/P``.  Fetched
    artifacts land in ``src/`` and the build tree that gets installed is
    ``build/``, which is recreated from scratch on every run.
    """

    def __init__(
        self,
        config: argo_config.Config,
        package: pkg_store.PackageDefinition,
        *,
        io: IO | None = None,
    ) -> None:
        self._config = config
        self._pkg = package
        self._io = io if io is not None else NullIO()
        self._workspace = config.workspace(package.name)
        self._srcdir = self._workspace / "src"
        self._builddir = self._workspace / "build"
        self._artifact: pathlib.Path | None = None

    def run(self) -> pathlib.Path:
        self._io.write_line(f"<info>Building {self._pkg.name}</info>")

        self.prepare()
        self.fetch()
        self.unpack_sources()
        self.apply_patches()
        self.build()

        logger.info("Build finished for %s", self._pkg.name)
        return self._builddir

    def prepare(self) -> None:
        try:
            self._srcdir.mkdir(parents=True, exist_ok=True)
            if self._builddir.exists():
                shutil.rmtree(self._builddir)
            self._builddir.mkdir(parents=True)
        except OSError as e:
            raise errors.BuildFailure(
                f"cannot prepare workspace of {self._pkg.name}: {e}"
            ) from e

    def get_source(self) -> pkg_sources.BaseSource | None:
        if not self._pkg.source:
            return None
        return pkg_sources.source_for_url(
            self._pkg.source, timeout=self._config.fetch_timeout
        )

    def fetch(self) -> pathlib.Path | None:
        source = self.get_source()
        if source is None:
            logger.info("%s declares no source, nothing to fetch", self._pkg)
            return None

        logger.info("Fetching %s for %s", source.url, self._pkg.name)
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            future = pool.submit(source.download, self._srcdir)
            try:
                self._artifact = self._await_fetch(future, source)
            except Exception as e:
                raise errors.FetchFailure(
                    f"cannot fetch {source.url} for {self._pkg.name}: {e}"
                ) from e

        return self._artifact

    def _await_fetch(
        self,
        future: concurrent.futures.Future[pathlib.Path],
        source: pkg_sources.BaseSource,
    ) -> pathlib.Path:
        if not self._io.is_decorated():
            return future.result()

        indicator = ProgressIndicator(self._io)
        with indicator.auto(
            f"Fetching <info>{source.url}</>",
            f"Fetched <info>{source.name}</>",
        ):
            return future.result()

    def unpack_sources(self) -> None:
        if self._artifact is None:
            return

        logger.info("Extracting %s", self._artifact.name)
        try:
            pkg_sources.extract(self._artifact, self._builddir)
        except (
            OSError,
            ValueError,
            tarfile.TarError,
            zipfile.BadZipFile,
        ) as e:
            raise errors.BuildFailure(
                f"cannot extract {self._artifact.name}: {e}"
            ) from e

    def apply_patches(self) -> None:
        if not self._config.apply_patches:
            return

        for patch in self._pkg.patches:
            logger.info("Applying patch %s", patch.name)
            try:
                tools.cmd(
                    "patch", "-p1", "-d", self._builddir, "-i", patch
                )
            except (subprocess.CalledProcessError, OSError) as e:
                raise errors.PatchFailure(
                    f"patch {patch.name} does not apply to {self._pkg.name}"
                ) from e

    def get_build_env(self) -> dict[str, str]:
        env = dict(os.environ)
        env["ARGO_PACKAGE"] = self._pkg.name
        env["ARGO_BUILD_DIR"] = str(self._builddir)
        env["ARGO_SOURCE_DIR"] = str(self._srcdir)
        return env

    def build(self) -> None:
        script = self._pkg.build_script
        if script is None:
            logger.info("%s has no build script", self._pkg.name)
            return

        logger.info("Compiling %s", self._pkg.name)
        try:
            output = tools.cmd(
                self._config.shell,
                script,
                self._builddir,
                cwd=self._builddir,
                env=self.get_build_env(),
                stderr=subprocess.STDOUT,
                timeout=self._config.build_timeout,
            )
        except subprocess.CalledProcessError as e:
            raise errors.BuildScriptFailure(
                f"build of {self._pkg.name} failed "
                f"with exit code {e.returncode}"
            ) from e
        except subprocess.TimeoutExpired as e:
            raise errors.BuildScriptFailure(
                f"build of {self._pkg.name} timed out after {e.timeout}s"
            ) from e
        except KeyboardInterrupt as e:
            raise errors.BuildScriptFailure(
                f"build of {self._pkg.name} was interrupted"
            ) from e
        except OSError as e:
            raise errors.BuildScriptFailure(
                f"cannot run build script of {self._pkg.name}: {e}"
            ) from e

        if output:
            logger.debug(output)
