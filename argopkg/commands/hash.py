from __future__ import annotations

import pathlib

from cleo.helpers import argument, option

from argopkg import integrity

from . import base


class Hash(base.Command):
    name = "hash"
    description = "Print or verify content digests of installed files"
    arguments = [
        argument("package", description="Installed package."),
    ]
    options = [
        option(
            "verify",
            description="Compare against digests recorded at install time.",
            flag=True,
        ),
        option(
            "output",
            "o",
            description="Also write the result to this file.",
            flag=False,
        ),
    ]

    def handle(self) -> int:
        name = self.argument("package")
        verify = self.option("verify")
        output = self.option("output")

        digests = self.manager.hash(name, verify=verify)
        if verify:
            lines = [f"{d.path}: {d.status}" for d in digests]
            failed = [d for d in digests if d.status != integrity.OK]
        else:
            lines = [d.format() for d in digests if d.digest is not None]
            failed = [d for d in digests if d.digest is None]

        for line in lines:
            self.line(line)
        if output:
            pathlib.Path(output).write_text(
                "".join(f"{line}\n" for line in lines)
            )

        if failed:
            self.line_error(
                f"<error>{len(failed)} of {len(digests)} files "
                f"did not verify</error>"
            )
            return 1
        return 0
