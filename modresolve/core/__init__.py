# modresolve/core/__init__.py
"""
Module-name resolution engine for modresolve.

Turns a name token such as "foo" or "foo/1.0" into a module file on the
module path, using the module table to tell short names from versions.
"""
from .models import Action, FindResult, LocationEntry, LookupMode, ModuleEntry, Step
from .module_name import ModuleName
from .module_table import ModuleTable

__all__ = [
    "Action",
    "FindResult",
    "LocationEntry",
    "LookupMode",
    "ModuleEntry",
    "ModuleName",
    "ModuleTable",
    "Step",
]
