"""
Multi-source configuration resolution.

load() resolves one configuration from ranked sources:

1. Local file:  NAME.{json,jsonc,yaml,yml} below the working directory,
                then package/pantry manifests in it (use with nested_key)
2. Home file:   the same names in ~/.config (or CONFSTACK_CONFIG_DIR)
3. Defaults:    the LoadOptions.defaults value
4. Empty object when none of the above exist

The first source found becomes the base; lower-ranked sources are not
read. An optional dotted nested_key then narrows the base, environment
variables are overlaid onto keys that already exist (see confstack.env),
and programmatic overrides, if any, are deep-merged on top.

The result records the primary source and every source that contributed,
each with its fixed priority (overrides 4, local 3, home 2, env 1,
defaults 0). Environment and overrides are never the primary source.
"""

from __future__ import annotations

import collections.abc as _abc
import dataclasses as _dataclasses
import datetime as _datetime
import enum as _enum
import logging as _logging
import pathlib as _pathlib
import typing as _typing

import pydantic as _pydantic

import confstack.constants as constants
import confstack.env as env
import confstack.errors as errors
import confstack.files as files
import confstack.merge as merge
import confstack.settings as settings
import confstack.value as value_model

_logger = _logging.getLogger(__name__)

_ModelT = _typing.TypeVar("_ModelT", bound=_pydantic.BaseModel)


class SourceKind(str, _enum.Enum):
    """Kinds of configuration sources."""

    OVERRIDES = "overrides"
    LOCAL_FILE = "local_file"
    HOME_FILE = "home_file"
    ENV_VARS = "env_vars"
    DEFAULTS = "defaults"


_PRIORITIES: dict[SourceKind, int] = {
    SourceKind.OVERRIDES: constants.PRIORITY_OVERRIDES,
    SourceKind.LOCAL_FILE: constants.PRIORITY_LOCAL_FILE,
    SourceKind.HOME_FILE: constants.PRIORITY_HOME_FILE,
    SourceKind.ENV_VARS: constants.PRIORITY_ENV_VARS,
    SourceKind.DEFAULTS: constants.PRIORITY_DEFAULTS,
}


@_dataclasses.dataclass(frozen=True)
class SourceInfo:
    """A source that contributed to a resolved configuration."""

    kind: SourceKind
    path: _pathlib.Path | None = None
    priority: int = -1

    def __post_init__(self) -> None:
        if self.priority < 0:
            object.__setattr__(self, "priority", _PRIORITIES[self.kind])


@_dataclasses.dataclass(frozen=True)
class LoadOptions:
    """
    Input to load().

    Attributes:
        name: Configuration name; selects file names and the default env
            prefix (name uppercased).
        defaults: Value used when no file is found.
        working_dir: Directory for the local search. None = process cwd.
        env_prefix: Environment variable prefix. None = name. Must not be
            empty.
        merge_strategy: Array strategy (member or name). None = the
            library default (CONFSTACK_DEFAULT_STRATEGY, else smart).
        nested_key: Dotted path selecting a sub-tree of the base.
        home_dir: Home configuration directory. None = library settings.
        environ: Environment mapping. None = os.environ.
        overrides: Value deep-merged over the result with merge_strategy,
            after the environment overlay (highest priority).
    """

    name: str
    defaults: _typing.Any = None
    working_dir: _pathlib.Path | str | None = None
    env_prefix: str | None = None
    merge_strategy: merge.MergeStrategy | str | None = None
    nested_key: str | None = None
    home_dir: _pathlib.Path | str | None = None
    environ: _abc.Mapping[str, str] | None = None
    overrides: _typing.Any = None

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("LoadOptions.name must be a non-empty string")
        if self.env_prefix == "":
            raise ValueError("LoadOptions.env_prefix must be None or non-empty")
        if self.merge_strategy is not None:
            object.__setattr__(
                self, "merge_strategy", merge.coerce_strategy(self.merge_strategy)
            )

    def resolve_strategy(self) -> merge.MergeStrategy:
        """Effective array strategy for this load."""
        if self.merge_strategy is not None:
            return merge.coerce_strategy(self.merge_strategy)
        return settings.get_settings().default_strategy


@_dataclasses.dataclass
class ConfigResult:
    """A resolved configuration and where it came from."""

    value: _typing.Any
    primary_source: SourceKind
    sources: tuple[SourceInfo, ...]
    loaded_at: _datetime.datetime

    def get(self, dotted_key: str, default: _typing.Any = None) -> _typing.Any:
        """Look up a dotted key in the resolved value."""
        found, node = value_model.get_path(self.value, dotted_key)
        return node if found else default

    def source_for(self, kind: SourceKind) -> SourceInfo | None:
        """Return the contributing source of a given kind, if any."""
        for info in self.sources:
            if info.kind is kind:
                return info
        return None

    def release(self) -> None:
        """Drop the resolved tree."""
        value_model.release(self.value)
        self.value = None


_ConfigT = _typing.TypeVar("_ConfigT")


@_dataclasses.dataclass
class TypedConfigResult(_typing.Generic[_ConfigT]):
    """A resolved configuration validated into a model."""

    config: _ConfigT
    raw: ConfigResult


def _extract_nested(base: _typing.Any, nested_key: str) -> _typing.Any:
    found, node = value_model.get_path(base, nested_key)
    if not found:
        _logger.debug("Nested key %r not found; using empty object", nested_key)
        return value_model.empty_object()
    return node


def _home_dir(options: LoadOptions) -> _pathlib.Path:
    if options.home_dir is not None:
        return _pathlib.Path(options.home_dir).expanduser()
    return settings.get_settings().get_home_config_dir()


def load(options: LoadOptions) -> ConfigResult:
    """
    Resolve configuration from file, home, defaults and environment.

    Args:
        options: What to load and from where.

    Returns:
        The resolved configuration with provenance.

    Raises:
        ConfigFileSyntaxError: A discovered file failed to decode.
        ConfigFilePermissionDenied: A discovered file could not be read.
        ConfigFileInvalid: A discovered file holds an unusable value.
        CircularReferenceDetected: Defaults or overrides contain themselves.
        MergeStrategyInvalid: The settings name an unknown default strategy.
        ConfigValidationFailed: Other CONFSTACK_* settings are invalid.
    """
    working_dir = _pathlib.Path(options.working_dir or _pathlib.Path.cwd())

    sources: list[SourceInfo] = []
    base: _typing.Any = None
    have_base = False
    primary = SourceKind.DEFAULTS

    local_path = files.find_config_file(options.name, working_dir)
    if local_path is not None:
        base = files.load_config_file(local_path)
        have_base = True
        primary = SourceKind.LOCAL_FILE
        sources.append(SourceInfo(SourceKind.LOCAL_FILE, local_path))

    if not have_base:
        home_path = files.find_home_config_file(options.name, _home_dir(options))
        if home_path is not None:
            base = files.load_config_file(home_path)
            have_base = True
            primary = SourceKind.HOME_FILE
            sources.append(SourceInfo(SourceKind.HOME_FILE, home_path))

    if not have_base and options.defaults is not None:
        base = value_model.clone(options.defaults)
        have_base = True
        sources.append(SourceInfo(SourceKind.DEFAULTS))

    if not have_base:
        base = value_model.empty_object()

    _logger.debug("Config %r base source: %s", options.name, primary.value)

    if options.nested_key:
        base = _extract_nested(base, options.nested_key)

    prefix = options.env_prefix if options.env_prefix is not None else options.name.upper()
    overlaid = env.apply_env_overrides(base, prefix, options.environ)
    if not value_model.equals(base, overlaid):
        sources.append(SourceInfo(SourceKind.ENV_VARS))

    resolved = overlaid
    if options.overrides is not None:
        strategy = options.resolve_strategy()
        resolved = merge.deep_merge(overlaid, options.overrides, merge.MergeOptions(strategy))
        if not value_model.equals(overlaid, resolved):
            sources.append(SourceInfo(SourceKind.OVERRIDES))

    return ConfigResult(
        value=resolved,
        primary_source=primary,
        sources=tuple(sources),
        loaded_at=_datetime.datetime.now(_datetime.timezone.utc),
    )


def try_load(options: LoadOptions) -> ConfigResult | None:
    """Like load(), but return None instead of raising ConfstackError."""
    try:
        return load(options)
    except errors.ConfstackError as e:
        _logger.debug("Config %r failed to load: %s", options.name, e)
        return None


def load_model(
    model_cls: type[_ModelT],
    options: LoadOptions,
) -> TypedConfigResult[_ModelT]:
    """
    Load configuration and validate it into a Pydantic model.

    Args:
        model_cls: Pydantic model describing the configuration.
        options: What to load and from where.

    Returns:
        The validated model plus the raw result.

    Raises:
        ConfigValidationFailed: If the resolved value does not validate.
    """
    result = load(options)
    try:
        config = model_cls.model_validate(result.value)
    except _pydantic.ValidationError as e:
        raise errors.ConfigValidationFailed(
            f"Configuration '{options.name}' failed validation:\n{e}",
            context=model_cls.__name__,
        ) from e
    return TypedConfigResult(config=config, raw=result)
