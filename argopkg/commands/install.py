from __future__ import annotations

import pathlib

from cleo.helpers import argument

from . import base


class Install(base.Command):
    name = "install"
    description = "Install a built package and record its files"
    arguments = [
        argument("package", description="Package to install."),
        argument(
            "destination",
            description="Destination root (defaults to the configured one).",
            optional=True,
        ),
    ]

    def handle(self) -> int:
        name = self.argument("package")
        destination = self.argument("destination")
        dest = pathlib.Path(destination) if destination else None
        manifest = self.manager.install(name, dest)
        self.line(f"<info>{name}</info> installed ({len(manifest)} files)")
        return 0


class Remove(base.Command):
    name = "remove"
    description = "Remove an installed package using its manifest"
    arguments = [
        argument("package", description="Package to remove."),
    ]

    def handle(self) -> int:
        name = self.argument("package")
        removed = self.manager.remove(name)
        self.line(f"<info>{name}</info> removed ({len(removed)} files)")
        return 0


class Upgrade(base.Command):
    name = "upgrade"
    description = "Rebuild and reinstall a package, then its dependents"
    arguments = [
        argument("package", description="Package to upgrade."),
        argument("version", description="Version being installed."),
    ]

    def handle(self) -> int:
        name = self.argument("package")
        version = self.argument("version")
        result = self.manager.upgrade(name, version)
        self.line(f"<info>{name}</info> upgraded to {version}")
        for dependent in result.rebuilt:
            self.line(f"  rebuilt <info>{dependent}</info>")
        for dependent, error in result.failed.items():
            self.line_error(
                f"  <error>rebuild of {dependent} failed: {error}</error>"
            )
        return 0 if result.ok else 1


class Clean(base.Command):
    name = "clean"
    description = "Remove build workspaces"
    arguments = [
        argument(
            "package",
            description="Package whose workspace to remove (default: all).",
            optional=True,
        ),
    ]

    def handle(self) -> int:
        name = self.argument("package")
        removed = self.manager.clean(name)
        self.line(f"Removed {len(removed)} workspace(s)")
        return 0
