# modresolve/core/strategies.py
"""
The three directory-search steps a ModuleName can run, and the registry
that decides which of them run, in which order, for each Action.

Every step takes the resolver and the ordered location entries for its
short name and returns a FindResult on success or None on a miss. Steps
never raise.
"""
import os
from types import MappingProxyType
from typing import Callable, Dict, List, Mapping, Optional, Tuple

from .models import Action, FindResult, LocationEntry, LookupMode, Step
from .path_probe import (
    LUA_SUFFIX,
    follow_default,
    is_readable_file,
    last_file_in_dir,
    read_version_file,
    strip_lua_suffix,
)
from .version_codec import extract_version, version_key

SEARCH_SUFFIXES: Tuple[str, ...] = (LUA_SUFFIX, "")
DEFAULT_MARKERS: Tuple[str, ...] = ("default", ".version")

StepRegistry = Mapping[Action, Tuple[Step, ...]]

DEFAULT_STEPS: StepRegistry = MappingProxyType({
    Action.MATCH: (Step.EXACT_MATCH, Step.MARKED_DEFAULT, Step.LATEST),
    Action.AT_LEAST: (Step.EXACT_MATCH, Step.LATEST),
    Action.LATEST: (Step.LATEST,),
})

def build_step_registry(overrides: Optional[Dict[Action, Tuple[Step, ...]]] = None) -> StepRegistry:
    # layers configured step lists over the defaults; the result is read-only.
    merged = dict(DEFAULT_STEPS)
    if overrides:
        merged.update(overrides)
    return MappingProxyType(merged)

def full_name_from_path(path: str, mpath: str) -> str:
    # "/opt/mf/gcc/9.1.lua" under "/opt/mf" -> "gcc/9.1"
    prefix = mpath.rstrip("/") + "/"
    relative = path[len(prefix):] if path.startswith(prefix) else path
    return strip_lua_suffix(relative)

def is_valid_referenced_version(referenced: Optional[str]) -> bool:
    # a ".version" must name exactly one version segment below its own directory.
    if not referenced:
        return False
    return referenced not in (".", "..") and "/" not in referenced

def _search_prefix(entry: LocationEntry, version: Optional[str]) -> str:
    return os.path.join(entry.file, version) if version else entry.file

def find_exact_match(mname, location_entries: List[LocationEntry]) -> Optional[FindResult]:
    log = mname.log.bind(step=Step.EXACT_MATCH.value, user_name=mname.usr_name())
    sn = mname.sn()
    version = mname.version()

    for entry in location_entries:
        fn = _search_prefix(entry, version)
        for suffix in SEARCH_SUFFIXES:
            candidate = fn + suffix
            if is_readable_file(candidate):
                full_name = full_name_from_path(candidate, entry.mpath)
                log.debug("exact_match_found", fn=candidate, full_name=full_name)
                return FindResult(fn=candidate, full_name=full_name, sn=sn, is_default=False)

    log.debug("exact_match_missed", searched=len(location_entries))
    return None

def find_marked_default(mname, location_entries: List[LocationEntry]) -> Optional[FindResult]:
    # "default" is checked before ".version" in every directory, so it masks the descriptor.
    from .module_name import ModuleName

    log = mname.log.bind(step=Step.MARKED_DEFAULT.value, user_name=mname.usr_name())
    sn = mname.sn()
    version = mname.version()

    for entry in location_entries:
        fn = _search_prefix(entry, version)
        for marker in DEFAULT_MARKERS:
            candidate = os.path.join(fn, marker)
            if not is_readable_file(candidate):
                continue

            if marker == "default":
                resolved = follow_default(candidate)
                if resolved:
                    full_name = full_name_from_path(resolved, entry.mpath)
                    log.debug("marked_default_found", marker=marker, fn=resolved, full_name=full_name)
                    return FindResult(fn=resolved, full_name=full_name, sn=sn, is_default=True)
                continue

            version_file = os.path.realpath(candidate)
            if version_file in mname.visited_version_files:
                log.warning("version_file_cycle_ignored", path=candidate)
                continue
            referenced = read_version_file(candidate)
            if not is_valid_referenced_version(referenced):
                log.debug("version_file_ignored", path=candidate, referenced_version=referenced)
                continue
            delegate = ModuleName(
                LookupMode.FOR_LOAD,
                f"{sn}/{referenced}",
                mname.table,
                action=Action.MATCH,
                step_registry=mname.step_registry,
                log=mname.log,
                visited_version_files=mname.visited_version_files | {version_file},
            )
            delegated = delegate.find()
            if delegated.found:
                delegated.is_default = True
                log.debug("marked_default_found", marker=marker, fn=delegated.fn, full_name=delegated.full_name)
                return delegated
            log.debug("version_file_target_missing", path=candidate, referenced_version=referenced)

    log.debug("marked_default_missed", searched=len(location_entries))
    return None

def find_latest(mname, location_entries: List[LocationEntry]) -> Optional[FindResult]:
    # unlike the other steps, every directory is examined and the highest version wins.
    log = mname.log.bind(step=Step.LATEST.value, user_name=mname.usr_name())
    sn = mname.sn()
    version = mname.version()

    best: Optional[FindResult] = None
    best_key: Optional[str] = None
    for entry in location_entries:
        candidate = last_file_in_dir(_search_prefix(entry, version))
        if candidate is None:
            continue
        full_name = full_name_from_path(candidate, entry.mpath)
        key = version_key(extract_version(full_name, sn))
        log.debug("latest_candidate", mpath=entry.mpath, full_name=full_name, key=key)
        if best_key is None or key > best_key:
            best_key = key
            best = FindResult(fn=candidate, full_name=full_name, sn=sn, is_default=True)

    if best is None:
        log.debug("latest_missed", searched=len(location_entries))
    return best

STEP_FUNCTIONS: Mapping[Step, Callable[..., Optional[FindResult]]] = MappingProxyType({
    Step.EXACT_MATCH: find_exact_match,
    Step.MARKED_DEFAULT: find_marked_default,
    Step.LATEST: find_latest,
})
