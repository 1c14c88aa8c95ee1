from . import git
from .cmd import cmd

__all__ = (
    "cmd",
    "git",
)
