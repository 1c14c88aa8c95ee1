from __future__ import annotations

from cleo.helpers import argument

from . import base


class Info(base.Command):
    name = "info"
    description = "Show details about a package"
    arguments = [
        argument("package", description="Package to describe."),
    ]

    def handle(self) -> int:
        info = self.manager.info(self.argument("package"))
        self.line(f"<comment>Package:</comment> {info.name}")
        self.line(
            f"<comment>Installed:</comment> {'yes' if info.installed else 'no'}"
        )
        self.line(f"<comment>Version:</comment> {info.version or 'unknown'}")
        if len(info.history) > 1:
            self.line(f"<comment>History:</comment> {' '.join(info.history)}")
        if info.available_version:
            self.line(
                f"<comment>Available:</comment> {info.available_version}"
            )
        self.line(
            "<comment>Dependencies:</comment> "
            + (" ".join(info.dependencies) or "none")
        )
        if info.file_count is None:
            self.line("<comment>Installed files:</comment> no manifest")
        else:
            self.line(f"<comment>Installed files:</comment> {info.file_count}")
        return 0


class List(base.Command):
    name = "list"
    description = "List installed packages"

    def handle(self) -> int:
        for name in self.manager.installed():
            self.line(name)
        return 0


class Orphan(base.Command):
    name = "orphan"
    description = "List installed packages no other package depends on"

    def handle(self) -> int:
        for name in self.manager.orphans():
            self.line(name)
        return 0


class Search(base.Command):
    name = "search"
    description = "Search the repository for packages"
    arguments = [
        argument("pattern", description="Substring to look for."),
    ]

    def handle(self) -> int:
        found = self.manager.search(self.argument("pattern"))
        for name in found:
            self.line(name)
        return 0 if found else 1


class CheckUpdates(base.Command):
    name = "check-updates"
    description = "List installed packages with a newer repository version"

    def handle(self) -> int:
        for name, current, available in self.manager.check_updates():
            self.line(f"{name} {current or 'unknown'} -> {available}")
        return 0
