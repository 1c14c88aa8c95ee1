from __future__ import annotations

import logging

from argopkg import state
from argopkg.packages import store as pkg_store


logger = logging.getLogger(__name__)


def compute_orphans(
    db: state.InstalledDatabase,
    store: pkg_store.PackageStore,
) -> list[str]:
    """Return installed packages no other installed package depends on.

    Every installed package's dependency list is scanned for every
    installed package, so the cost is O(n^2) in the number of installed
    packages.  Packages missing from the repository declare no
    dependencies.
    """
    installed = db.installed()
    deps = {}
    for name in installed:
        pkg = store.find(name)
        if pkg is None:
            logger.warning("%s is installed but no longer defined", name)
            deps[name] = ()
        else:
            deps[name] = pkg.dependencies

    orphans = []
    for name in installed:
        depended_upon = any(
            name in deps[other] for other in installed if other != name
        )
        if not depended_upon:
            orphans.append(name)

    with db.locked():
        db.write_orphans(orphans)

    return orphans
