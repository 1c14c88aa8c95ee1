from __future__ import annotations
from typing import NamedTuple

import logging
import os
import pathlib
import subprocess

from argopkg import config as argo_config
from argopkg import tools
from argopkg.packages import store as pkg_store


logger = logging.getLogger(__name__)


class HookResult(NamedTuple):
    stage: str
    package: str
    success: bool
    output: str = ""
    ran: bool = True


class HookRunner:
    """Runs a package's lifecycle hook for a named stage."""

    def run(
        self,
        stage: str,
        package: pkg_store.PackageDefinition,
        workdir: pathlib.Path,
    ) -> HookResult:
        raise NotImplementedError


class ScriptHookRunner(HookRunner):
    """Runs ``hooks/<stage>.sh`` from the package definition, if present."""

    def __init__(self, config: argo_config.Config) -> None:
        self._config = config

    def run(
        self,
        stage: str,
        package: pkg_store.PackageDefinition,
        workdir: pathlib.Path,
    ) -> HookResult:
        script = package.hooks.get(stage)
        if script is None:
            return HookResult(stage, package.name, success=True, ran=False)

        logger.info("Running %s hook for %s", stage, package.name)
        if not workdir.is_dir():
            workdir = package.path

        env = dict(os.environ)
        env["ARGO_STAGE"] = stage
        env["ARGO_PACKAGE"] = package.name
        env["ARGO_WORKDIR"] = str(workdir)

        try:
            output = tools.cmd(
                self._config.shell,
                script,
                cwd=workdir,
                env=env,
                stderr=subprocess.STDOUT,
            )
        except subprocess.CalledProcessError as e:
            return HookResult(
                stage, package.name, success=False, output=e.stdout or ""
            )
        except OSError as e:
            return HookResult(stage, package.name, success=False, output=str(e))

        return HookResult(stage, package.name, success=True, output=output)
