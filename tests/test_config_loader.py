from pathlib import Path

import pytest

from modresolve.config.loader import build_config, load_and_merge_configs, read_environment
from modresolve.config.settings import ResolverConfig, OutputFormat
from modresolve.core.models import Action, Step
from modresolve.exceptions import ConfigError

@pytest.fixture
def config_dirs(tmp_path: Path):
    """A fake home config file location and a project directory."""
    project = tmp_path / "project"
    project.mkdir()
    user_file = tmp_path / "home" / "config.toml"
    user_file.parent.mkdir()
    return project, user_file

def test_defaults():
    config = ResolverConfig()
    assert config.module_path == []
    assert config.effective_action() is Action.MATCH
    assert config.output_format is OutputFormat.TABLE

def test_project_config_overrides_user_config(config_dirs):
    project, user_file = config_dirs
    user_file.write_text('modulepath = ["/user/mf"]\nprefer_latest = true\n[steps]\nmatch = ["latest"]\n')
    (project / ".modresolve.toml").write_text('modulepath = ["/proj/mf"]\n[steps]\nlatest = ["exact_match"]\n')
    merged = load_and_merge_configs(cwd=project, user_config_file=user_file)
    assert merged["modulepath"] == ["/proj/mf"]
    assert merged["prefer_latest"] is True
    assert merged["steps"] == {"match": ["latest"], "latest": ["exact_match"]}

def test_pyproject_tool_table(config_dirs):
    project, user_file = config_dirs
    (project / "pyproject.toml").write_text('[project]\nname = "x"\n[tool.modresolve]\naction = "atleast"\n')
    merged = load_and_merge_configs(cwd=project, user_config_file=user_file)
    assert merged == {"action": "atleast"}

def test_invalid_toml_raises(config_dirs):
    project, user_file = config_dirs
    (project / "modresolve.toml").write_text("modulepath = [\n")
    with pytest.raises(ConfigError):
        load_and_merge_configs(cwd=project, user_config_file=user_file)

def test_read_environment():
    env = {"MODULEPATH": "/a/mf:/b/mf:", "LOADEDMODULES": "foo/1.0:bar", "MODRESOLVE_LATEST": "yes"}
    assert read_environment(env) == {
        "modulepath": ["/a/mf", "/b/mf"],
        "loaded": ["foo/1.0", "bar"],
        "prefer_latest": True,
    }
    assert read_environment({}) == {}

def test_build_config_layers_in_order():
    config = build_config(
        {"modulepath": ["/toml/mf"], "output_format": "json"},
        {"modulepath": ["/env/mf"], "loaded": ["foo/1.0"]},
        {"prefer_latest": True, "action": None},
    )
    assert config.module_path == [Path("/env/mf")]
    assert config.loaded_modules == ["foo/1.0"]
    assert config.output_format is OutputFormat.JSON
    assert config.effective_action() is Action.LATEST

def test_build_config_parses_steps():
    config = build_config({"steps": {"atleast": ["latest"], "match": ["exact_match", "marked_default"]}})
    assert config.steps == {
        Action.AT_LEAST: (Step.LATEST,),
        Action.MATCH: (Step.EXACT_MATCH, Step.MARKED_DEFAULT),
    }

def test_build_config_modulepath_string():
    config = build_config({"modulepath": "/a:/b"})
    assert config.module_path == [Path("/a"), Path("/b")]

@pytest.mark.parametrize("source", [
    {"action": "newest"},
    {"output_format": "xml"},
    {"steps": {"match": ["guess"]}},
    {"steps": {"sometimes": ["latest"]}},
    {"steps": ["latest"]},
])
def test_build_config_rejects_bad_values(source):
    with pytest.raises(ConfigError):
        build_config(source)
