"""
confstack - layered configuration resolution

Resolves one configuration value from a local file, a home-directory file,
programmatic defaults and environment variables, with a deep-merge engine
supporting replace, concat and smart (keyed) array strategies.
"""

import importlib.metadata as _metadata

# Version is defined in pyproject.toml - read it and parse into tuple (primary representation)
_raw_version = _metadata.version("confstack")
__version_info__: tuple[int, int, int] = tuple(int(x) for x in _raw_version.split(".")[:3])  # type: ignore[assignment]
__version__: str = ".".join(str(x) for x in __version_info__)

from confstack.env import apply_env_overrides, decode_env_value, derive_env_name  # noqa: E402
from confstack.errors import (  # noqa: E402
    CircularReferenceDetected,
    ConfigFileError,
    ConfigFileInvalid,
    ConfigFileNotFound,
    ConfigFilePermissionDenied,
    ConfigFileSyntaxError,
    ConfigValidationFailed,
    ConfstackError,
    MergeStrategyInvalid,
)
from confstack.loader import (  # noqa: E402
    ConfigResult,
    LoadOptions,
    SourceInfo,
    SourceKind,
    TypedConfigResult,
    load,
    load_model,
    try_load,
)
from confstack.merge import MergeOptions, MergeStrategy, deep_merge, merge_layers  # noqa: E402
from confstack.value import ValueKind, clone, equals, release  # noqa: E402

__all__ = [
    "__version__",
    "__version_info__",
    "CircularReferenceDetected",
    "ConfigFileError",
    "ConfigFileInvalid",
    "ConfigFileNotFound",
    "ConfigFilePermissionDenied",
    "ConfigFileSyntaxError",
    "ConfigResult",
    "ConfigValidationFailed",
    "ConfstackError",
    "LoadOptions",
    "MergeOptions",
    "MergeStrategy",
    "MergeStrategyInvalid",
    "SourceInfo",
    "SourceKind",
    "TypedConfigResult",
    "ValueKind",
    "apply_env_overrides",
    "clone",
    "decode_env_value",
    "deep_merge",
    "derive_env_name",
    "equals",
    "load",
    "load_model",
    "merge_layers",
    "release",
    "try_load",
]
