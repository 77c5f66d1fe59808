# modresolve/config/loader.py
"""
Loads resolver configuration from TOML files and the environment.

Precedence, lowest first: the user config file, the first project config
file found in the current directory, environment variables, then whatever
the CLI layers on top.
"""
import os
import toml
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple
import structlog

from modresolve.core.models import Action, Step
from modresolve.exceptions import ConfigError

from .settings import (
    ResolverConfig, OutputFormat,
    MODULEPATH_ENV_VAR, LOADEDMODULES_ENV_VAR, PREFER_LATEST_ENV_VAR,
)

log = structlog.get_logger(__name__)

PROJECT_CONFIG_FILENAMES = [".modresolve.toml", "modresolve.toml", "pyproject.toml"]
USER_CONFIG_DIR = Path.home() / ".config" / "modresolve"
USER_CONFIG_FILE = USER_CONFIG_DIR / "config.toml"

CONFIG_KEY_TO_RESOLVERCONFIG_ATTR_MAP: Dict[str, str] = {
    "modulepath": "module_path",
    "loaded": "loaded_modules",
    "prefer_latest": "prefer_latest",
    "action": "action",
    "steps": "steps",
    "output_format": "output_format",
}

TRUTHY_STRINGS = {"1", "yes", "true", "on"}

def _load_toml_file_data(file_path: Path) -> Dict[str, Any]:
    if not file_path.is_file(): return {}
    log.debug("loading_toml_config_file", path=str(file_path))
    try:
        data = toml.load(file_path)
    except (toml.TomlDecodeError, OSError) as e:
        raise ConfigError(f"Could not read config file {file_path}: {e}")
    return data.get("tool", {}).get("modresolve", {}) if file_path.name == "pyproject.toml" else data

def load_and_merge_configs(cwd: Optional[Path] = None, user_config_file: Optional[Path] = None) -> Dict[str, Any]:
    cwd = cwd or Path.cwd()
    user_config_file = user_config_file or USER_CONFIG_FILE
    merged_toml_data: Dict[str, Any] = {}
    if user_config_file.is_file():
        log.info("loading_user_global_config", path=str(user_config_file))
        merged_toml_data.update(_load_toml_file_data(user_config_file))

    for filename in PROJECT_CONFIG_FILENAMES:
        candidate = cwd / filename
        if candidate.is_file():
            project_settings = _load_toml_file_data(candidate)
            if project_settings:
                log.info("loading_project_local_config", path=str(candidate))
                user_steps = merged_toml_data.get("steps", {})
                project_steps = project_settings.pop("steps", {})
                if isinstance(user_steps, dict) and isinstance(project_steps, dict):
                    user_steps.update(project_steps)
                    merged_toml_data["steps"] = user_steps
                merged_toml_data.update(project_settings)
                break
    if not merged_toml_data: log.debug("no_configuration_files_loaded")
    return merged_toml_data

def _split_path_list(value: str) -> List[str]:
    return [p for p in value.split(os.pathsep) if p]

def read_environment(environ: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    # picks up MODULEPATH, LOADEDMODULES and MODRESOLVE_LATEST when they are set.
    environ = os.environ if environ is None else environ
    env_data: Dict[str, Any] = {}
    if environ.get(MODULEPATH_ENV_VAR):
        env_data["modulepath"] = _split_path_list(environ[MODULEPATH_ENV_VAR])
    if environ.get(LOADEDMODULES_ENV_VAR):
        env_data["loaded"] = _split_path_list(environ[LOADEDMODULES_ENV_VAR])
    if PREFER_LATEST_ENV_VAR in environ:
        env_data["prefer_latest"] = environ[PREFER_LATEST_ENV_VAR].strip().lower() in TRUTHY_STRINGS
    if env_data:
        log.debug("environment_config_read", keys=sorted(env_data))
    return env_data

def _parse_steps(raw: Any) -> Dict[Action, Tuple[Step, ...]]:
    if not isinstance(raw, dict):
        raise ConfigError(f"'steps' must be a table mapping actions to step lists, got {type(raw).__name__}")
    parsed: Dict[Action, Tuple[Step, ...]] = {}
    for action_str, step_names in raw.items():
        action = Action.from_string(action_str)
        if action is None:
            raise ConfigError(f"Unknown action '{action_str}' in 'steps'. Choose from: {[a.value for a in Action]}")
        if not isinstance(step_names, list):
            raise ConfigError(f"Steps for action '{action_str}' must be a list")
        steps = tuple(Step.from_string(s) if isinstance(s, str) else None for s in step_names)
        if None in steps:
            raise ConfigError(f"Unknown step in {step_names!r} for action '{action_str}'. Choose from: {[s.value for s in Step]}")
        parsed[action] = steps
    return parsed

def build_config(*sources: Dict[str, Any]) -> ResolverConfig:
    # later sources override earlier ones key by key.
    merged: Dict[str, Any] = {}
    for source in sources:
        for key, value in source.items():
            if value is not None:
                merged[key] = value

    options: Dict[str, Any] = {}
    for toml_key, attr in CONFIG_KEY_TO_RESOLVERCONFIG_ATTR_MAP.items():
        if toml_key not in merged:
            continue
        value = merged[toml_key]
        if attr == "module_path":
            if isinstance(value, str): value = _split_path_list(value)
            options[attr] = [Path(p) for p in value]
        elif attr == "loaded_modules":
            if isinstance(value, str): value = _split_path_list(value)
            options[attr] = [str(v) for v in value]
        elif attr == "prefer_latest":
            options[attr] = bool(value)
        elif attr == "action":
            action = value if isinstance(value, Action) else Action.from_string(value)
            if action is None:
                raise ConfigError(f"Invalid action '{value}'. Choose from: {[a.value for a in Action]}")
            options[attr] = action
        elif attr == "steps":
            options[attr] = _parse_steps(value)
        elif attr == "output_format":
            fmt = value if isinstance(value, OutputFormat) else OutputFormat.from_string(value)
            if fmt is None:
                raise ConfigError(f"Invalid output format '{value}'. Choose from: {[f.value for f in OutputFormat]}")
            options[attr] = fmt

    unknown = sorted(set(merged) - set(CONFIG_KEY_TO_RESOLVERCONFIG_ATTR_MAP))
    if unknown:
        log.warning("unknown_config_keys_ignored", keys=unknown)

    config = ResolverConfig(**options)
    log.debug("resolver_config_built", module_path=[str(p) for p in config.module_path],
              action=config.effective_action().value, output_format=config.output_format.value)
    return config
