"""
Main CLI entry point for confstack.

Provides the command-line interface using Click:

    confstack show NAME      resolve and print a configuration
    confstack path NAME      list the files NAME would be loaded from
    confstack merge FILE...  deep-merge files, later files winning
"""

import dataclasses as _dataclasses
import json as _json
import logging as _logging
import os as _os
import pathlib as _pathlib
import sys as _sys
import typing as _typing

import click as _click
import rich.console as _rich_console
import rich.syntax as _rich_syntax
import yaml as _yaml

import confstack
import confstack.errors as errors
import confstack.files as files
import confstack.loader as loader
import confstack.merge as merge
import confstack.settings as settings

# Custom Click context settings for better help formatting
CONTEXT_SETTINGS: dict[str, _typing.Any] = {
    "help_option_names": ["-h", "--help"],
    "max_content_width": 100,
}

_STRATEGY_CHOICE = _click.Choice([s.value for s in merge.MergeStrategy], case_sensitive=False)


def _configure_logging(verbose: bool) -> None:
    """Route library logging to stderr at the requested level."""
    if verbose:
        level_name = "debug"
    else:
        try:
            level_name = settings.get_settings().log_level
        except errors.ConfstackError as e:
            raise _click.ClickException(str(e)) from e
    _logging.basicConfig(
        level=getattr(_logging, level_name.upper()),
        format="%(levelname)s %(name)s: %(message)s",
        stream=_sys.stderr,
    )


def _should_use_color(cli_flag: bool | None) -> tuple[bool, bool]:
    """Determine whether to use color output.

    Priority:
    1. CLI flag (--color / --no-color) if specified
    2. CONFSTACK_SHOW_COLOR env var (1=on, 0=off)
    3. NO_COLOR env var (if set, disable color) - standard convention
    4. Auto-detect: color if stdout is a TTY

    Returns:
        Tuple of (color_enabled, force_color).
        force_color is True when color was explicitly requested (not auto-detected).
    """
    if cli_flag is not None:
        return (cli_flag, cli_flag)

    env_color = _os.environ.get("CONFSTACK_SHOW_COLOR")
    if env_color is not None:
        enabled = env_color.lower() in ("1", "true", "yes", "on")
        return (enabled, enabled)

    if _os.environ.get("NO_COLOR") is not None:
        return (False, False)

    return (_sys.stdout.isatty(), False)


def _print_yaml(yaml_text: str, *, color: bool = True, force_color: bool = False) -> None:
    """Print YAML text, optionally with syntax highlighting."""
    if not color:
        _click.echo(yaml_text)
        return

    # force_terminal/no_color/color_system override NO_COLOR and FORCE_COLOR
    # when color was requested explicitly
    console = _rich_console.Console(
        force_terminal=force_color,
        no_color=False if force_color else None,
        color_system="truecolor" if force_color else "auto",
    )
    syntax = _rich_syntax.Syntax(
        yaml_text,
        "yaml",
        theme="monokai",
        background_color="default",
    )
    console.print(syntax)


def _emit_value(
    data: _typing.Any,
    *,
    as_json: bool,
    use_color: bool | None,
) -> None:
    if as_json:
        _click.echo(_json.dumps(data, indent=2))
        return
    color_enabled, force_color = _should_use_color(use_color)
    yaml_text = _yaml.safe_dump(data, default_flow_style=False, sort_keys=False)
    _print_yaml(yaml_text.rstrip("\n"), color=color_enabled, force_color=force_color)


@_click.group(context_settings=CONTEXT_SETTINGS)
@_click.version_option(confstack.__version__, "-v", "--version", prog_name="confstack")
@_click.option("--verbose", is_flag=True, help="Log source discovery to stderr")
def cli(verbose: bool) -> None:
    """confstack - layered configuration resolution.

    Resolves configuration from a local file, ~/.config, defaults and
    environment variables.
    """
    _configure_logging(verbose)


@cli.command(name="show")
@_click.argument("name")
@_click.option(
    "--cwd",
    "working_dir",
    type=_click.Path(file_okay=False, path_type=_pathlib.Path),
    default=None,
    help="Directory to search for local config files (default: current directory)",
)
@_click.option("--prefix", "env_prefix", type=str, default=None, help="Environment variable prefix")
@_click.option(
    "--override",
    "override_paths",
    multiple=True,
    type=_click.Path(dir_okay=False, path_type=_pathlib.Path),
    help="File merged over the resolved value (repeatable, later wins)",
)
@_click.option(
    "--strategy",
    type=_STRATEGY_CHOICE,
    default=None,
    help="Array merge strategy for --override files",
)
@_click.option("--key", "nested_key", type=str, default=None, help="Dotted key to extract")
@_click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@_click.option("--sources", "show_sources", is_flag=True, help="Show where the value came from")
@_click.option(
    "--color/--no-color",
    "use_color",
    default=None,
    help="Enable/disable syntax highlighting (default: auto-detect TTY)",
)
def show(
    name: str,
    working_dir: _pathlib.Path | None,
    env_prefix: str | None,
    override_paths: tuple[_pathlib.Path, ...],
    strategy: str | None,
    nested_key: str | None,
    as_json: bool,
    show_sources: bool,
    use_color: bool | None,
) -> None:
    """Show the resolved configuration NAME.

    Examples:
        confstack show myapp                 # YAML, colorized on a TTY
        confstack show myapp --json          # JSON
        confstack show myapp --key database  # Only the database section
        confstack show myapp --sources       # Include provenance
        confstack show myapp --override local.yaml --strategy replace
    """
    try:
        options = loader.LoadOptions(
            name=name,
            working_dir=working_dir,
            env_prefix=env_prefix,
            merge_strategy=strategy,
            nested_key=nested_key,
        )
        if override_paths:
            layers = [files.load_config_file(p) for p in override_paths]
            merge_options = merge.MergeOptions(options.resolve_strategy())
            options = _dataclasses.replace(
                options, overrides=merge.merge_layers(layers, merge_options)
            )
        result = loader.load(options)
    except (errors.ConfstackError, ValueError) as e:
        raise _click.ClickException(str(e)) from e

    if show_sources:
        _click.echo(f"# primary source: {result.primary_source.value}")
        for info in result.sources:
            location = f" {info.path}" if info.path is not None else ""
            _click.echo(f"# - {info.kind.value} (priority {info.priority}){location}")

    _emit_value(result.value, as_json=as_json, use_color=use_color)


@cli.command(name="path")
@_click.argument("name")
@_click.option(
    "--cwd",
    "working_dir",
    type=_click.Path(file_okay=False, path_type=_pathlib.Path),
    default=None,
    help="Directory to search for local config files (default: current directory)",
)
@_click.option("--all", "show_all", is_flag=True, help="Show all paths even if not found")
def path(name: str, working_dir: _pathlib.Path | None, show_all: bool) -> None:
    """Show configuration file paths for NAME and their status.

    Paths are listed in search order; the first existing one wins.

    Examples:
        confstack path myapp        # Show existing config files
        confstack path myapp --all  # Show all possible paths
    """
    root = working_dir or _pathlib.Path.cwd()
    try:
        home_dir = settings.get_settings().get_home_config_dir()
    except errors.ConfstackError as e:
        raise _click.ClickException(str(e)) from e

    groups = [
        ("Local", files.candidate_paths(name, root)),
        ("Home", files.home_candidate_paths(name, home_dir)),
    ]
    for label, candidates in groups:
        for candidate in candidates:
            exists = candidate.is_file()
            if exists or show_all:
                status = "✓" if exists else "✗"
                _click.echo(f"{status} {label}: {candidate}")


@cli.command(name="merge")
@_click.argument(
    "paths",
    nargs=-1,
    required=True,
    type=_click.Path(dir_okay=False, path_type=_pathlib.Path),
)
@_click.option("--strategy", type=_STRATEGY_CHOICE, default=None, help="Array merge strategy")
@_click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@_click.option(
    "--color/--no-color",
    "use_color",
    default=None,
    help="Enable/disable syntax highlighting (default: auto-detect TTY)",
)
def merge_cmd(
    paths: tuple[_pathlib.Path, ...],
    strategy: str | None,
    as_json: bool,
    use_color: bool | None,
) -> None:
    """Deep-merge configuration files; later files take priority.

    Examples:
        confstack merge base.yaml prod.yaml
        confstack merge base.json local.jsonc --strategy concat --json
    """
    try:
        chosen = (
            merge.coerce_strategy(strategy)
            if strategy is not None
            else settings.get_settings().default_strategy
        )
        layers = [files.load_config_file(p) for p in paths]
        merged = merge.merge_layers(layers, merge.MergeOptions(chosen))
    except errors.ConfstackError as e:
        raise _click.ClickException(str(e)) from e

    _emit_value(merged, as_json=as_json, use_color=use_color)


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
