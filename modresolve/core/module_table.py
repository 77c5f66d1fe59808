# modresolve/core/module_table.py
import os
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Union
import structlog

from .models import LocationEntry
from .module_name import shorten
from .path_probe import is_ignored_name, strip_lua_suffix
from .version_codec import extract_version

log = structlog.get_logger(__name__)

MARKER_FILES = ("default", ".version")

class ModuleTable:
    """
    Read-only view of what can be loaded and what is already loaded.

    The location table maps each short name to the module path roots that
    hold files for it, in module path order. The loaded table maps short
    names of loaded modules to their versions.
    """

    def __init__(
        self,
        locations: Optional[Dict[str, List[LocationEntry]]] = None,
        loaded: Optional[Dict[str, Optional[str]]] = None,
    ):
        self._locations: Dict[str, List[LocationEntry]] = {sn: list(v) for sn, v in (locations or {}).items()}
        self._loaded: Dict[str, Optional[str]] = dict(loaded or {})

    def location_tbl(self, sn: Optional[str]) -> Optional[List[LocationEntry]]:
        if not sn:
            return None
        entries = self._locations.get(sn)
        return list(entries) if entries else None

    def exists(self, sn: Optional[str]) -> bool:
        # true when a module with this short name is loaded.
        return bool(sn) and sn in self._loaded

    def version_of(self, sn: str) -> Optional[str]:
        return self._loaded.get(sn)

    def short_names(self) -> List[str]:
        return sorted(self._locations)

    def loaded_modules(self) -> Dict[str, Optional[str]]:
        return dict(self._loaded)

    @classmethod
    def from_module_path(
        cls,
        module_path: Sequence[Union[str, Path]],
        loaded_modules: Iterable[str] = (),
    ) -> "ModuleTable":
        # scans every module path root in order and splits the loaded full names.
        locations: Dict[str, List[LocationEntry]] = {}
        for raw_root in module_path:
            root = str(raw_root).rstrip("/") or "/"
            if not os.path.isdir(root):
                log.warning("module_path_root_missing_skipped", mpath=root)
                continue
            for sn in _scan_root(root):
                entry = LocationEntry(mpath=root, file=os.path.join(root, sn))
                entries = locations.setdefault(sn, [])
                if entry not in entries:
                    entries.append(entry)

        table = cls(locations)
        for full_name in loaded_modules:
            full_name = full_name.strip().rstrip("/")
            if not full_name:
                continue
            sn = table._split_loaded(full_name)
            table._loaded[sn] = extract_version(full_name, sn)

        log.info("module_table_built", short_names=len(locations), loaded=len(table._loaded))
        return table

    def _split_loaded(self, full_name: str) -> str:
        # prefer a short name the location table knows, else the last segment is the version.
        for level in (0, 1):
            candidate = shorten(full_name, level)
            if candidate and candidate in self._locations:
                return candidate
        return shorten(full_name, 1) or full_name

def _scan_root(root: str) -> List[str]:
    # short names found below one module path root, in walk order.
    found: List[str] = []
    seen = set()
    for dirpath, dirs, files in os.walk(root, topdown=True, followlinks=True):
        dirs[:] = sorted(d for d in dirs if not is_ignored_name(d))
        rel_dir = Path(dirpath).relative_to(root).as_posix()

        for file_name in sorted(files):
            if rel_dir == ".":
                if is_ignored_name(file_name) or file_name in MARKER_FILES:
                    continue
                sn = strip_lua_suffix(file_name)
            else:
                if is_ignored_name(file_name) and file_name not in MARKER_FILES:
                    continue
                sn = rel_dir
            if sn and sn not in seen:
                seen.add(sn)
                found.append(sn)
    return found
