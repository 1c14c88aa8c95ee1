from __future__ import annotations
from typing import Any

import pathlib

from . import cmd


class Git:
    def __init__(self, work_dir: pathlib.Path) -> None:
        self._work_dir = work_dir

    def run(
        self,
        *args: Any,
        folder: pathlib.Path | None = None,
        **kwargs: Any,
    ) -> str:
        if not folder and self._work_dir.exists():
            folder = self._work_dir
        result = cmd.cmd("git", *args, cwd=folder, **kwargs)
        result = result.strip(" \n\t")
        return result


def update_repo(
    repo_url: str,
    checkout: pathlib.Path,
    *,
    ref: str | None = None,
    timeout: float | None = None,
) -> pathlib.Path:
    """Clone *repo_url* into *checkout*, or fast-forward an existing clone."""
    if ref == "HEAD":
        ref = None

    repo = Git(checkout)
    if (checkout / ".git").exists():
        repo.run("pull", "--ff-only", timeout=timeout)
    else:
        checkout.parent.mkdir(parents=True, exist_ok=True)
        repo.run(
            "clone",
            repo_url,
            checkout,
            folder=checkout.parent,
            timeout=timeout,
        )

    if ref is not None:
        repo.run("checkout", "--force", ref)

    return checkout
