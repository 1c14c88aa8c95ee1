from __future__ import annotations


class ArgoError(Exception):
    """Base class for all errors raised by the package manager."""

    kind = "error"
    #: Soft failures abort the operation cleanly but are only warned about.
    soft = False


class ConfigError(ArgoError):
    kind = "config"


class PackageNotFound(ArgoError):
    kind = "not-found"

    def __init__(self, name: str) -> None:
        super().__init__(f"package {name!r} is not defined in the repository")
        self.name = name


class FetchFailure(ArgoError):
    kind = "fetch"


class BuildFailure(ArgoError):
    kind = "build"


class BuildScriptFailure(BuildFailure):
    kind = "build-script"


class PatchFailure(BuildFailure):
    kind = "patch"


class DependencyFailure(BuildFailure):
    kind = "dependency"

    def __init__(self, package: str, dependency: str) -> None:
        super().__init__(
            f"dependency {dependency!r} of {package!r} could not be built"
        )
        self.package = package
        self.dependency = dependency


class CycleDetected(BuildFailure):
    kind = "cycle"


class UnresolvedReferenceError(BuildFailure):
    kind = "unresolved"


class InstallFailure(ArgoError):
    kind = "install"


class ManifestMissing(ArgoError):
    kind = "manifest-missing"
    soft = True

    def __init__(self, name: str) -> None:
        super().__init__(f"no manifest found for {name!r}")
        self.name = name


class NotInstalled(ArgoError):
    kind = "not-installed"

    def __init__(self, name: str) -> None:
        super().__init__(f"{name!r} is not installed")
        self.name = name
