# modresolve/cli/interface.py
import json
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import click
from click_option_group import optgroup
from rich.console import Console as RichConsole
from rich.table import Table
import structlog

from modresolve import __version__ as app_version
from modresolve.config.loader import build_config, load_and_merge_configs, read_environment
from modresolve.config.settings import ResolverConfig, OutputFormat
from modresolve.core.models import Action, LookupMode
from modresolve.core.module_name import ModuleName, describe_steps
from modresolve.core.module_table import ModuleTable
from modresolve.core.strategies import StepRegistry, build_step_registry
from modresolve.exceptions import ModResolveError, ModulePathError
from modresolve.logging_setup import configure_logging

log = structlog.get_logger(__name__)

class ResolveContext:
    # everything a subcommand needs, built once per invocation.
    def __init__(self, config: ResolverConfig, table: ModuleTable, registry: StepRegistry):
        self.config = config
        self.table = table
        self.registry = registry

    def resolvers(self, mode: LookupMode, names: Tuple[str, ...], action: Optional[Action]) -> List[ModuleName]:
        return ModuleName.build_array(
            mode, self.table, *names,
            action=action or self.config.effective_action(),
            step_registry=self.registry,
            log=log,
        )

def _build_context(cli_params: Dict[str, Any]) -> ResolveContext:
    cli_overrides: Dict[str, Any] = {}
    if cli_params.get("module_path"):
        cli_overrides["modulepath"] = [str(p) for p in cli_params["module_path"]]
    if cli_params.get("prefer_latest"):
        cli_overrides["prefer_latest"] = True

    config = build_config(load_and_merge_configs(), read_environment(), cli_overrides)
    if not config.module_path:
        raise ModulePathError("No module path configured. Set MODULEPATH or pass --modulepath.")

    table = ModuleTable.from_module_path(config.module_path, config.loaded_modules)
    return ResolveContext(config, table, build_step_registry(config.steps))

def _find_rows(resolvers: List[ModuleName]) -> List[Dict[str, Any]]:
    rows = []
    for mname in resolvers:
        result = mname.find()
        row = {"name": mname.usr_name(), "action": mname.action().value}
        row.update(asdict(result))
        rows.append(row)
    return rows

def _print_rows_table(rows: List[Dict[str, Any]]):
    table = Table(title="module resolution", show_lines=False)
    for column in ("name", "action", "full name", "default", "file"):
        table.add_column(column)
    for row in rows:
        if row["fn"] is None:
            table.add_row(row["name"], row["action"], "[red]not found[/red]", "", "")
        else:
            table.add_row(row["name"], row["action"], row["full_name"], "yes" if row["is_default"] else "", row["fn"])
    RichConsole().print(table)

@click.group(context_settings=dict(help_option_names=["-h", "--help"]))
@optgroup.group("Module Path Options", help="Where modules are searched for.")
@optgroup.option("-m", "--modulepath", "module_path", multiple=True, type=click.Path(path_type=Path), help="Module path root, in search order. Overrides MODULEPATH. Repeatable.")
@optgroup.option("--latest", "prefer_latest", is_flag=True, default=False, help="Prefer the latest version when no action is given.")
@optgroup.group("Application Behavior", help="Logging and diagnostics.")
@optgroup.option("--verbose", "-v", "verbosity_level", count=True, help="Verbosity: -v info, -vv debug.")
@optgroup.option("--force-json-logs", "force_json_logs_cli", is_flag=True, default=False, help="Force JSON logs.")
@click.version_option(version=app_version, package_name="modresolve", prog_name="modresolve", help="Show version and exit.")
@click.pass_context
def main_cli_group(ctx: click.Context, **cli_params: Any):
    """modresolve: resolve environment-module names to module files."""
    log_level = "warning"
    if cli_params.get("verbosity_level", 0) == 1: log_level = "info"
    elif cli_params.get("verbosity_level", 0) >= 2: log_level = "debug"
    configure_logging(log_level_str=log_level, force_json_logs=cli_params.get("force_json_logs_cli", False))

    log.debug("cli_command_invoked", params={k: v for k, v in cli_params.items() if v})
    ctx.ensure_object(dict)
    ctx.obj["cli_params"] = cli_params

def _context_or_exit(ctx: click.Context) -> ResolveContext:
    try:
        return _build_context(ctx.obj["cli_params"])
    except ModResolveError as e:
        log.error("resolve_context_failed", error=str(e))
        click.secho(f"Error: {e}", fg="red", err=True)
        sys.exit(1)

@main_cli_group.command("find")
@click.argument("names", nargs=-1, required=True)
@click.option("--loaded", "already_loaded", is_flag=True, default=False, help="Look names up among loaded modules.")
@click.option("--action", "action_str", type=click.Choice([a.value for a in Action]), default=None, help="How versions are matched. Default: match (latest with --latest).")
@click.option("-F", "--format", "output_format_str", type=click.Choice([f.value for f in OutputFormat]), default=None, help="Output format. Default: table.")
@click.pass_context
def find_command(ctx: click.Context, names: Tuple[str, ...], already_loaded: bool, action_str: Optional[str], output_format_str: Optional[str]):
    """Resolve module NAMES to module files."""
    rctx = _context_or_exit(ctx)
    mode = LookupMode.ALREADY_LOADED if already_loaded else LookupMode.FOR_LOAD
    rows = _find_rows(rctx.resolvers(mode, names, Action.from_string(action_str)))

    output_format = OutputFormat.from_string(output_format_str) or rctx.config.output_format
    if output_format == OutputFormat.JSON:
        click.echo(json.dumps(rows, indent=2))
    else:
        _print_rows_table(rows)

    missing = [row["name"] for row in rows if row["fn"] is None]
    if missing:
        log.info("modules_not_found", names=missing)
        click.secho(f"Unable to locate module(s): {', '.join(missing)}", fg="yellow", err=True)
        sys.exit(1)

@main_cli_group.command("avail")
@click.pass_context
def avail_command(ctx: click.Context):
    """List short names found on the module path."""
    rctx = _context_or_exit(ctx)
    table = Table(title="available short names")
    table.add_column("short name")
    table.add_column("locations")
    for sn in rctx.table.short_names():
        entries = rctx.table.location_tbl(sn) or []
        table.add_row(sn, "\n".join(entry.file for entry in entries))
    RichConsole().print(table)

@main_cli_group.command("describe")
@click.argument("names", nargs=-1, required=True)
@click.option("--action", "action_str", type=click.Choice([a.value for a in Action]), default=None, help="How versions are matched.")
@click.pass_context
def describe_command(ctx: click.Context, names: Tuple[str, ...], action_str: Optional[str]):
    """Show how NAMES are read: short name, version, and the steps that would run."""
    rctx = _context_or_exit(ctx)
    resolvers = rctx.resolvers(LookupMode.FOR_LOAD, names, Action.from_string(action_str))
    for mname, display in zip(resolvers, ModuleName.stringify(*resolvers)):
        click.echo(f"{display}\tsn={mname.sn() or '-'}\tversion={mname.version() or '-'}\tsteps={describe_steps(mname.steps())}")
