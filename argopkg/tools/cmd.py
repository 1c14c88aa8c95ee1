from __future__ import annotations
from typing import Any

import logging
import os
import subprocess


logger = logging.getLogger(__name__)


def cmd(
    *cmd: str | os.PathLike[str],
    hide_stderr: bool = False,
    **kwargs: Any,
) -> str:
    """Run *cmd* and return its stripped standard output.

    A non-zero exit status raises :exc:`subprocess.CalledProcessError`
    after the captured output has been logged.
    """
    default_kwargs: dict[str, Any] = {
        "stderr": subprocess.DEVNULL if hide_stderr else subprocess.PIPE,
        "stdout": subprocess.PIPE,
    }

    default_kwargs.update(kwargs)

    str_cmd = [str(c) for c in cmd]
    cmd_line = " ".join(str_cmd)
    logger.debug(cmd_line)

    try:
        p = subprocess.run(str_cmd, text=True, check=True, **default_kwargs)
    except subprocess.CalledProcessError as e:
        if e.stdout:
            logger.error(e.stdout.rstrip())
        if e.stderr:
            logger.error(e.stderr.rstrip())
        logger.error(
            "{} failed with exit code {}".format(cmd_line, e.returncode)
        )
        raise
    else:
        output = p.stdout
        if output is not None:
            output = output.rstrip()
        return output  # type: ignore
