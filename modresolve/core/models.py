# modresolve/core/models.py
"""Enums and record types shared by the resolver, the strategy steps and the module table."""
from dataclasses import dataclass
from enum import Enum
from typing import Optional
import structlog

log = structlog.get_logger(__name__)

class Action(Enum):
    # how a name token should be matched against available versions.
    MATCH = "match"
    AT_LEAST = "atleast"
    LATEST = "latest"

    @classmethod
    def from_string(cls, s: Optional[str]) -> Optional["Action"]:
        if not s:
            return None
        try:
            return cls(s.lower())
        except ValueError:
            log.warning("invalid_action_string", input_string=s)
            return None

class LookupMode(Enum):
    # where the short name of a token is looked up.
    FROM_ENTRY = "entryT"
    FOR_LOAD = "load"
    ALREADY_LOADED = "mt"

class Step(Enum):
    # resolution steps a resolver can run, see modresolve.core.strategies.
    EXACT_MATCH = "exact_match"
    MARKED_DEFAULT = "marked_default"
    LATEST = "latest"

    @classmethod
    def from_string(cls, s: Optional[str]) -> Optional["Step"]:
        if not s:
            return None
        try:
            return cls(s.lower())
        except ValueError:
            log.warning("invalid_step_string", input_string=s)
            return None

@dataclass(frozen=True)
class ModuleEntry:
    # a module whose short name and full name are already known.
    user_name: str
    sn: str
    full_name: str

@dataclass(frozen=True)
class LocationEntry:
    # one module path root holding files for a short name.
    mpath: str  # search root, e.g. "/opt/modulefiles"
    file: str   # candidate prefix, e.g. "/opt/modulefiles/gcc"

@dataclass
class FindResult:
    fn: Optional[str] = None
    full_name: Optional[str] = None
    sn: Optional[str] = None
    is_default: bool = False

    @property
    def found(self) -> bool:
        return self.fn is not None
