# modresolve/core/path_probe.py
"""
Filesystem probes used by the resolution steps.

All functions take and return plain path strings and never raise for
missing or unreadable paths; they report a miss instead.
"""
import os
import re
import stat
from typing import List, Optional
import structlog

from .version_codec import version_key

log = structlog.get_logger(__name__)

LUA_SUFFIX = ".lua"
VERSION_FILE_HEADER = "#%Module"
_MODULES_VERSION_RE = re.compile(r'^\s*set\s+ModulesVersion\s+(?:"([^"]*)"|(\S+))', re.MULTILINE)

def is_readable_file(path: str) -> bool:
    # a regular file (symlinks followed) that the current user can read.
    try:
        st = os.stat(path)
    except OSError:
        return False
    return stat.S_ISREG(st.st_mode) and os.access(path, os.R_OK)

def is_searchable_dir(path: str) -> bool:
    try:
        st = os.stat(path)
    except OSError:
        return False
    return stat.S_ISDIR(st.st_mode) and os.access(path, os.R_OK | os.X_OK)

def strip_lua_suffix(name: str) -> str:
    return name[: -len(LUA_SUFFIX)] if name.endswith(LUA_SUFFIX) else name

def is_ignored_name(name: str) -> bool:
    # hidden entries and editor backups are never module files.
    return name.startswith(".") or name.endswith("~")

def follow_default(path: Optional[str]) -> Optional[str]:
    """
    Resolves a "default" marker one hop.

    Returns None when nothing exists at `path`, the path itself when it is
    not a symbolic link, and otherwise the link target resolved against the
    link's own directory. The target is walked segment by segment: ".."
    steps back one position, anything else overwrites the current position
    and advances. The resolved path is not checked for being a link again.
    """
    if path is None:
        return None
    try:
        st = os.lstat(path)
    except OSError:
        log.debug("follow_default_missing", path=path)
        return None
    if not stat.S_ISLNK(st.st_mode):
        return path

    try:
        target = os.readlink(path)
    except OSError as e:
        log.warning("follow_default_readlink_failed", path=path, error=str(e))
        return None

    segments = path.split("/")
    cursor = len(segments) - 1
    if target.startswith("/"):
        segments, cursor = [""], 1
    floor = 1 if segments[0] == "" else 0
    for part in target.split("/"):
        if part == "" or part == ".":
            continue
        if part == "..":
            cursor = max(cursor - 1, floor)
            continue
        if cursor < len(segments):
            segments[cursor] = part
        else:
            segments.append(part)
        cursor += 1

    result = "/".join(segments[:cursor])
    log.debug("follow_default_resolved", path=path, target=target, result=result)
    return result

def last_file_in_dir(path: str) -> Optional[str]:
    # returns the highest-ranking module file below `path`, searching subdirectories too.
    if not is_searchable_dir(path):
        return None

    best_path: Optional[str] = None
    best_key: Optional[str] = None
    pending: List[str] = [path]
    while pending:
        current = pending.pop()
        try:
            with os.scandir(current) as it:
                names = sorted(entry.name for entry in it)
        except OSError as e:
            log.warning("last_file_in_dir_scan_failed", path=current, error=str(e))
            continue

        for name in names:
            if is_ignored_name(name) or name == "default":
                continue
            candidate = os.path.join(current, name)
            if is_searchable_dir(candidate):
                pending.append(candidate)
            elif is_readable_file(candidate):
                key = version_key(strip_lua_suffix(os.path.relpath(candidate, path)))
                # on equal keys "<v>.lua" beats "<v>", the same order the exact match uses.
                lua_wins_tie = (key == best_key and name.endswith(LUA_SUFFIX)
                                and not best_path.endswith(LUA_SUFFIX))
                if best_key is None or key > best_key or lua_wins_tie:
                    best_key, best_path = key, candidate

    log.debug("last_file_in_dir", path=path, result=best_path, key=best_key)
    return best_path

def read_version_file(path: str) -> Optional[str]:
    # extracts the version named by a ".version" descriptor, None when malformed.
    try:
        with open(path, "r", encoding="utf-8", errors="replace") as f_obj:
            content = f_obj.read()
    except OSError as e:
        log.warning("version_file_unreadable", path=path, error=str(e))
        return None

    if not content.startswith(VERSION_FILE_HEADER):
        log.warning("version_file_missing_header", path=path, expected=VERSION_FILE_HEADER)
        return None

    match = _MODULES_VERSION_RE.search(content)
    if not match:
        log.debug("version_file_has_no_modules_version", path=path)
        return None
    version = (match.group(1) or match.group(2) or "").strip()
    return version or None
