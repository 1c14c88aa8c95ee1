from __future__ import annotations

from cleo.helpers import argument

from . import base


class Build(base.Command):
    name = "build"
    description = "Build a package and any dependency that is not installed"
    arguments = [
        argument("package", description="Package to build."),
    ]

    def handle(self) -> int:
        name = self.argument("package")
        builddir = self.manager.build(name)
        self.line(f"<info>{name}</info> built in {builddir}")
        return 0
