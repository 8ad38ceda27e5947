"""
Environment variable overlay.

Environment variables can only override values whose key already exists
in the base configuration. Names are derived from the key path:

    prefix "myapp", path ("database", "host")  ->  MYAPP_DATABASE_HOST
    prefix "myapp", path ("log-level",)        ->  MYAPP_LOG_LEVEL

Raw strings are decoded with light type inference (see decode_env_value).
"""

from __future__ import annotations

import collections.abc as _abc
import json as _json
import logging as _logging
import os as _os
import re as _re
import typing as _typing

import confstack.constants as constants
import confstack.value as value_model

_logger = _logging.getLogger(__name__)

_INT_RE = _re.compile(r"[+-]?[0-9]+")
_FLOAT_RE = _re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")


def decode_env_value(raw: str) -> _typing.Any:
    """
    Decode an environment variable with type inference.

    First match wins:
    1. true/1/yes and false/0/no (any case) -> bool
    2. base-10 integer that fits in 64 bits -> int
    3. decimal float (sign, fraction, exponent) -> float
    4. text starting with "[" or "{" -> parsed JSON, if it parses
    5. text containing "," -> list of trimmed strings
    6. anything else -> the string, verbatim

    Comma lists are never typed per element: "1,2" decodes to ["1", "2"].
    Only decimal spellings are numbers: "inf", "nan" and "infinity" (any
    case or sign) stay strings.

    Example:
        >>> decode_env_value("yes")
        True
        >>> decode_env_value("a, b ,c")
        ['a', 'b', 'c']
    """
    lowered = raw.lower()
    if lowered in constants.ENV_TRUE_LITERALS:
        return True
    if lowered in constants.ENV_FALSE_LITERALS:
        return False

    if _INT_RE.fullmatch(raw):
        number = int(raw)
        if constants.INT64_MIN <= number <= constants.INT64_MAX:
            return number

    if _FLOAT_RE.fullmatch(raw):
        return float(raw)

    if raw[:1] in ("[", "{"):
        decoded = _decode_json(raw)
        if decoded is not None:
            return decoded

    if "," in raw:
        return [segment.strip(" \t") for segment in raw.split(",")]

    return raw


def _decode_json(raw: str) -> _typing.Any | None:
    """Parse a JSON array/object; None when it is not a usable value."""
    try:
        decoded = _json.loads(raw)
        value_model.check_value(decoded)
    except (ValueError, TypeError):
        return None
    return decoded


def derive_env_name(prefix: str, path: _abc.Sequence[str]) -> str:
    """
    Build the environment variable name for a key path.

    The prefix is uppercased as-is; each path component is uppercased,
    has "-" replaced by "_", and is joined with "_".
    """
    parts = [prefix.upper()]
    parts.extend(component.replace("-", "_").upper() for component in path)
    return "_".join(parts)


def apply_env_overrides(
    base: _typing.Any,
    prefix: str,
    environ: _abc.Mapping[str, str] | None = None,
) -> _typing.Any:
    """
    Overlay environment variables onto an existing configuration.

    For each key of an object: a matching variable replaces the value
    (no further merging below it); otherwise nested objects are searched
    with the extended prefix; everything else is copied unchanged. Keys
    that do not exist in base are never added.

    Args:
        base: Base configuration. Non-object values are returned as a copy.
        prefix: Root prefix, e.g. the application name.
        environ: Variable source. Defaults to os.environ.

    Returns:
        A new tree; base is not modified.
    """
    if environ is None:
        environ = _os.environ

    if not isinstance(base, dict):
        return value_model.clone(base)

    result: dict[str, _typing.Any] = {}
    for key, item in base.items():
        env_name = derive_env_name(prefix, [key])
        raw = environ.get(env_name)
        if raw is not None:
            _logger.debug("Applying environment override %s", env_name)
            result[key] = decode_env_value(raw)
        elif isinstance(item, dict):
            result[key] = apply_env_overrides(item, env_name, environ)
        else:
            result[key] = value_model.clone(item)
    return result
