import os
from pathlib import Path

import pytest

@pytest.fixture
def write_module():
    """Returns a helper that creates a module file (and its parent directories)."""
    def _write(path: Path, body: str = "-- module file\n") -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(body)
        return path
    return _write

@pytest.fixture
def link_default():
    """Returns a helper that creates `<directory>/default` as a symlink to `target`."""
    def _link(directory: Path, target: str) -> Path:
        directory.mkdir(parents=True, exist_ok=True)
        link = directory / "default"
        os.symlink(target, link)
        return link
    return _link
