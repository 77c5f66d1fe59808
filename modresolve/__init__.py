# modresolve/__init__.py
"""modresolve: resolve environment-module names to module files on a MODULEPATH."""

__version__ = "0.3.0"
