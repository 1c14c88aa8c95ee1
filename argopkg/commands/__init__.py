from .build import Build
from .hash import Hash
from .install import Clean, Install, Remove, Upgrade
from .query import CheckUpdates, Info, List, Orphan, Search

commands = [
    Build,
    Install,
    Remove,
    Upgrade,
    Clean,
    Info,
    List,
    Orphan,
    Hash,
    Search,
    CheckUpdates,
]

__all__ = [cmd.__name__ for cmd in commands]
