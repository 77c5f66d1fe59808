# modresolve/core/module_name.py
"""
ModuleName: turns one user-supplied module name into a module file.

A name like "foo/bar" is ambiguous. "foo" may be the short name and "bar"
the version, or "foo/bar" may be the short name with no version given.
The module table settles it: the short name is either the name as given or
the name with its last segment removed, never anything shorter, because a
version is exactly one path segment.

Callers say whether the name is one to be loaded (looked up in the
location table) or one that is already loaded (looked up in the loaded
table), since a loaded module may no longer be on the module path.
"""
from typing import Any, FrozenSet, Iterable, List, NamedTuple, Optional, Union
import structlog

from .models import Action, FindResult, LookupMode, ModuleEntry, Step
from .strategies import DEFAULT_STEPS, STEP_FUNCTIONS, StepRegistry
from .version_codec import extract_version

def shorten(name: str, level: int) -> str:
    # level 0 keeps the name, level 1 drops its last "/segment".
    if level == 0:
        return name
    if level != 1:
        raise ValueError(f"shorten() only supports level 0 or 1, got {level}")
    head, sep, _ = name.rpartition("/")
    return head if sep else ""

class _Resolved(NamedTuple):
    sn: Optional[str]
    version: Optional[str]

class ModuleName:
    def __init__(
        self,
        mode: LookupMode,
        name: Union[str, ModuleEntry, None],
        table,
        action: Optional[Action] = None,
        *,
        prefer_latest: bool = False,
        step_registry: Optional[StepRegistry] = None,
        log: Any = None,
        visited_version_files: FrozenSet[str] = frozenset(),
    ):
        self.mode = mode
        self.table = table
        self.step_registry: StepRegistry = step_registry if step_registry is not None else DEFAULT_STEPS
        self.log = log if log is not None else structlog.get_logger(__name__)
        # ".version" files already followed on the way to this resolver.
        self.visited_version_files: FrozenSet[str] = frozenset(visited_version_files)
        self._action = action or (Action.LATEST if prefer_latest else Action.MATCH)
        self._entry: Optional[ModuleEntry] = None
        # None until the short name and version are derived, then fixed for good.
        self._resolved: Optional[_Resolved] = None

        if mode is LookupMode.FROM_ENTRY:
            if not isinstance(name, ModuleEntry):
                raise TypeError("LookupMode.FROM_ENTRY requires a ModuleEntry")
            self._entry = name
            self._name = name.user_name
        else:
            self._name = (name or "").rstrip("/")

    def __repr__(self) -> str:
        return f"ModuleName(mode={self.mode.name}, name={self._name!r}, action={self._action.value})"

    def action(self) -> Action:
        return self._action

    def usr_name(self) -> str:
        # the name as the user gave it: a short name or a full name.
        return self._name

    def steps(self) -> tuple:
        return tuple(self.step_registry.get(self._action, ()))

    def _lazy_eval(self) -> _Resolved:
        if self._resolved is not None:
            return self._resolved

        sn: Optional[str] = None
        version: Optional[str] = None
        if self._entry is not None:
            sn = self._entry.sn
            version = extract_version(self._entry.full_name, self._entry.sn)
        else:
            for level in (0, 1):
                candidate = shorten(self._name, level)
                if not candidate:
                    continue
                if self.mode is LookupMode.FOR_LOAD:
                    if self.table.location_tbl(candidate):
                        sn = candidate
                        break
                elif self.table.exists(candidate):
                    sn = candidate
                    version = self.table.version_of(candidate)
                    break

            if sn and not version:
                version = extract_version(self._name, sn)

        self._resolved = _Resolved(sn, version)
        self.log.debug("module_name_resolved", user_name=self._name, mode=self.mode.value, sn=sn, version=version)
        return self._resolved

    def sn(self) -> Optional[str]:
        # the short name, or None when the table does not know this module.
        return self._lazy_eval().sn

    def version(self) -> Optional[str]:
        """
        Returns the version part of the name, or None if there is none.

        A name that is itself the short name carries no version.
        """
        resolved = self._lazy_eval()
        if resolved.sn is not None and resolved.sn == self._name:
            return None
        return resolved.version

    def find(self) -> FindResult:
        # runs the steps for this action until one of them locates a file.
        find_log = self.log.bind(user_name=self._name, action=self._action.value)
        sn = self.sn()
        location_entries = self.table.location_tbl(sn) if sn else None
        if not location_entries:
            find_log.debug("module_not_in_location_table", sn=sn)
            return FindResult()

        for step in self.steps():
            result = STEP_FUNCTIONS[step](self, location_entries)
            if result is not None:
                find_log.debug("module_found", step=step.value, fn=result.fn, full_name=result.full_name,
                               is_default=result.is_default)
                return result

        find_log.debug("module_not_found", sn=sn, steps=[s.value for s in self.steps()])
        return FindResult()

    @classmethod
    def build_array(cls, mode: LookupMode, table, *items: Any, **kwargs: Any) -> List["ModuleName"]:
        # strings become new resolvers, existing resolvers pass through, anything else is dropped.
        resolvers: List[ModuleName] = []
        for item in items:
            if isinstance(item, str):
                resolvers.append(cls(mode, item, table, **kwargs))
            elif isinstance(item, ModuleName):
                resolvers.append(item)
        return resolvers

    @staticmethod
    def stringify(*resolvers: "ModuleName") -> List[str]:
        # display forms for diagnostics: '"gcc"' or 'atleast("gcc","9.1")'.
        out: List[str] = []
        for mname in resolvers:
            action = mname.action()
            if action is Action.MATCH:
                out.append(f'"{mname.usr_name()}"')
            else:
                out.append(f'{action.value}("{mname.sn() or ""}","{mname.version() or ""}")')
        return out

def describe_steps(steps: Iterable[Step]) -> str:
    return ", ".join(step.value for step in steps)
