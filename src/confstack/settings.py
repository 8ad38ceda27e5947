"""
Library settings using pydantic-settings.

These settings configure confstack itself, not the applications that use
it. They are read from environment variables with the CONFSTACK_ prefix:

  CONFSTACK_CONFIG_DIR=/etc/myorg       # home config directory override
  CONFSTACK_DEFAULT_STRATEGY=concat     # array strategy when none is given
  CONFSTACK_LOG_LEVEL=debug             # CLI logging level

Settings are read fresh by get_settings() on every call; nothing is cached
at module level.
"""

import pathlib as _pathlib
import typing as _typing

import pydantic as _pydantic
import pydantic_settings as _pydantic_settings

import confstack.constants as constants
import confstack.errors as errors
import confstack.merge as merge


class LibrarySettings(_pydantic_settings.BaseSettings):
    """
    confstack configuration.

    All fields can be overridden via CONFSTACK_* environment variables.
    """

    model_config = _pydantic_settings.SettingsConfigDict(
        env_prefix="CONFSTACK_",
        extra="ignore",
    )

    config_dir: _pathlib.Path | None = None
    """Home configuration directory. None = ~/.config."""

    default_strategy: merge.MergeStrategy = merge.MergeStrategy.SMART
    """Array merge strategy used when LoadOptions does not name one."""

    log_level: _typing.Literal["debug", "info", "warning", "error"] = "warning"
    """Logging level configured by the CLI."""

    @_pydantic.field_validator("default_strategy", mode="before")
    @classmethod
    def _normalize_strategy(cls, value: _typing.Any) -> _typing.Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @_pydantic.field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value: _typing.Any) -> _typing.Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    def get_home_config_dir(self) -> _pathlib.Path:
        """Resolve the home configuration directory."""
        if self.config_dir is not None:
            return self.config_dir.expanduser()
        return _pathlib.Path.home() / constants.HOME_CONFIG_DIRNAME


def get_settings() -> LibrarySettings:
    """
    Read library settings from the current environment.

    Raises:
        MergeStrategyInvalid: If CONFSTACK_DEFAULT_STRATEGY is not a
            known strategy.
        ConfigValidationFailed: If any other CONFSTACK_* value is invalid.
    """
    try:
        return LibrarySettings()
    except _pydantic.ValidationError as e:
        fields = {str(err["loc"][0]) for err in e.errors() if err.get("loc")}
        if "default_strategy" in fields:
            choices = ", ".join(s.value for s in merge.MergeStrategy)
            raise errors.MergeStrategyInvalid(
                f"Invalid CONFSTACK_DEFAULT_STRATEGY (expected one of: {choices})",
                context="CONFSTACK_DEFAULT_STRATEGY",
            ) from e
        raise errors.ConfigValidationFailed(
            f"Invalid confstack settings:\n{e}",
            context="LibrarySettings",
        ) from e
