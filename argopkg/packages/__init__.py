# flake8: noqa

from .store import PackageDefinition, PackageStore, HOOK_STAGES, read_list
from .resolver import Resolver
from .sources import BaseSource, HttpsSource, GitSource, LocalSource


__all__ = (
    "PackageDefinition",
    "PackageStore",
    "HOOK_STAGES",
    "read_list",
    "Resolver",
    "BaseSource",
    "HttpsSource",
    "GitSource",
    "LocalSource",
)
