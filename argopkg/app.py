from __future__ import annotations
from typing import (
    TYPE_CHECKING,
)

from cleo.application import Application as BaseApplication
from cleo.formatters.style import Style

import argopkg

from . import commands as argo_commands

if TYPE_CHECKING:
    from cleo.io.inputs.input import Input
    from cleo.io.io import IO
    from cleo.io.outputs.output import Output


class App(BaseApplication):
    def __init__(self) -> None:
        super().__init__("argo", argopkg.__version__)

    def create_io(
        self,
        input: Input | None = None,
        output: Output | None = None,
        error_output: Output | None = None,
    ) -> IO:
        io = super().create_io(input, output, error_output)
        io.output.formatter.set_style("info", Style("green").bold())
        io.error_output.formatter.set_style("info", Style("green").bold())
        io.output.formatter.set_style("warning", Style("yellow"))
        io.error_output.formatter.set_style("warning", Style("yellow"))
        return io


def main() -> int:
    app = App()
    for cmd in argo_commands.commands:
        app.add(cmd())

    return app.run()
