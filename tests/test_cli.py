import json
from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from modresolve.cli.interface import main_cli_group

@pytest.fixture
def module_tree(tmp_path: Path):
    """Creates two module path roots for testing the CLI end-to-end."""
    p1, p2 = tmp_path / "p1", tmp_path / "p2"
    for path in (p1 / "foo" / "1.0.lua", p1 / "foo" / "2.0.lua", p2 / "foo" / "3.0.lua", p1 / "bar" / "2.0.lua"):
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("-- module\n")
    (p1 / "bar" / "default").symlink_to("2.0.lua")
    return p1, p2

@pytest.fixture(autouse=True)
def no_user_config(tmp_path: Path):
    with patch("modresolve.config.loader.USER_CONFIG_FILE", tmp_path / "no-such-config.toml"):
        yield

def _invoke(args, env=None):
    runner = CliRunner()
    with runner.isolated_filesystem():
        return runner.invoke(main_cli_group, args, env={"MODULEPATH": None, "LOADEDMODULES": None, "MODRESOLVE_LATEST": None, **(env or {})}, catch_exceptions=False)

def test_find_json(module_tree):
    p1, p2 = module_tree
    result = _invoke(["-m", str(p1), "-m", str(p2), "find", "foo/1.0", "bar", "--format", "json"])
    assert result.exit_code == 0
    rows = json.loads(result.stdout)
    assert rows[0] == {
        "name": "foo/1.0", "action": "match",
        "fn": str(p1 / "foo" / "1.0.lua"), "full_name": "foo/1.0", "sn": "foo", "is_default": False,
    }
    assert rows[1]["fn"] == str(p1 / "bar" / "2.0.lua")
    assert rows[1]["is_default"] is True

def test_find_latest_flag(module_tree):
    p1, p2 = module_tree
    result = _invoke(["-m", str(p1), "-m", str(p2), "--latest", "find", "foo", "-F", "json"])
    assert result.exit_code == 0
    rows = json.loads(result.stdout)
    assert rows[0]["action"] == "latest"
    assert rows[0]["fn"] == str(p2 / "foo" / "3.0.lua")

def test_find_uses_modulepath_env(module_tree):
    p1, p2 = module_tree
    result = _invoke(["find", "foo/3.0", "-F", "json"], env={"MODULEPATH": f"{p1}:{p2}"})
    assert result.exit_code == 0
    assert json.loads(result.stdout)[0]["fn"] == str(p2 / "foo" / "3.0.lua")

def test_find_loaded(module_tree):
    p1, _ = module_tree
    result = _invoke(["-m", str(p1), "find", "--loaded", "foo/1.0", "-F", "json"], env={"LOADEDMODULES": "foo/1.0"})
    assert result.exit_code == 0
    row = json.loads(result.stdout)[0]
    assert row["sn"] == "foo"
    assert row["full_name"] == "foo/1.0"
    assert row["fn"] == str(p1 / "foo" / "1.0.lua")

def test_find_unknown_module_exits_nonzero(module_tree):
    p1, _ = module_tree
    result = _invoke(["-m", str(p1), "find", "zzz"])
    assert result.exit_code == 1
    assert "not found" in result.output
    assert "Unable to locate module(s): zzz" in result.output

def test_find_without_modulepath():
    result = _invoke(["find", "foo"])
    assert result.exit_code == 1
    assert "No module path configured" in result.output

def test_avail(module_tree):
    p1, p2 = module_tree
    result = _invoke(["-m", str(p1), "-m", str(p2), "avail"])
    assert result.exit_code == 0
    assert "foo" in result.output
    assert "bar" in result.output

def test_describe(module_tree):
    p1, _ = module_tree
    result = _invoke(["-m", str(p1), "describe", "foo/1.0", "--action", "atleast"])
    assert result.exit_code == 0
    assert result.output.strip() == 'atleast("foo","1.0")\tsn=foo\tversion=1.0\tsteps=exact_match, latest'

def test_version_option():
    result = _invoke(["--version"])
    assert result.exit_code == 0
    assert "modresolve" in result.output
