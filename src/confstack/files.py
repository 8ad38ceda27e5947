"""
Configuration file discovery and decoding.

Search order for a configuration named NAME below a working directory:

    ./NAME.json  ./NAME.jsonc  ./NAME.yaml  ./NAME.yml
    ./NAME.config.json ... ./NAME.config.yml
    ./config/NAME.json ... (same list)
    ./.config/NAME.json ... (same list)
    ./package.json ... ./package.yml, ./pantry.json ... ./pantry.yml

A shared manifest such as package.json is loaded whole; pair it with
LoadOptions.nested_key to select the application's section.

The home search uses the same file names directly inside the home
configuration directory (~/.config by default).

Supported formats:
- .json: strict JSON
- .jsonc: JSON with // and /* */ comments
- .yaml / .yml: YAML via PyYAML's safe loader
"""

from __future__ import annotations

import json as _json
import logging as _logging
import pathlib as _pathlib
import typing as _typing

import yaml as _yaml

import confstack.constants as constants
import confstack.errors as errors
import confstack.value as value_model

_logger = _logging.getLogger(__name__)


def _file_names(name: str) -> list[str]:
    names = [f"{name}{ext}" for ext in constants.CONFIG_EXTENSIONS]
    names.extend(
        f"{name}{constants.CONFIG_INFIX}{ext}" for ext in constants.CONFIG_EXTENSIONS
    )
    return names


def candidate_paths(name: str, search_root: _pathlib.Path) -> list[_pathlib.Path]:
    """
    List local candidate paths in priority order.

    Args:
        name: Configuration name (file stem).
        search_root: Directory to search below (usually the working dir).

    Returns:
        Paths in the order they are searched. Existence is not checked.
    """
    paths: list[_pathlib.Path] = []
    for subdir in constants.PROJECT_SEARCH_DIRS:
        directory = search_root / subdir if subdir else search_root
        paths.extend(directory / file_name for file_name in _file_names(name))
    for stem in constants.PACKAGE_FILE_STEMS:
        paths.extend(search_root / f"{stem}{ext}" for ext in constants.CONFIG_EXTENSIONS)
    return paths


def home_candidate_paths(name: str, config_dir: _pathlib.Path) -> list[_pathlib.Path]:
    """List home-directory candidate paths in priority order."""
    return [config_dir / file_name for file_name in _file_names(name)]


def _first_existing(paths: list[_pathlib.Path]) -> _pathlib.Path | None:
    for path in paths:
        try:
            if path.is_file():
                return path
        except OSError:
            # Unreachable directory components count as absent
            continue
    return None


def find_config_file(name: str, search_root: _pathlib.Path) -> _pathlib.Path | None:
    """Return the first existing local config file, or None."""
    found = _first_existing(candidate_paths(name, search_root))
    _logger.debug("Local config search for %r in %s: %s", name, search_root, found)
    return found


def find_home_config_file(name: str, config_dir: _pathlib.Path) -> _pathlib.Path | None:
    """Return the first existing config file in the home config dir, or None."""
    found = _first_existing(home_candidate_paths(name, config_dir))
    _logger.debug("Home config search for %r in %s: %s", name, config_dir, found)
    return found


def strip_json_comments(text: str) -> str:
    """
    Remove // and /* */ comments outside string literals.

    Line comments keep their terminating newline so line numbers in
    later syntax errors still match the file.
    """
    out: list[str] = []
    i = 0
    length = len(text)
    in_string = False
    escaped = False

    while i < length:
        char = text[i]

        if in_string:
            out.append(char)
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            i += 1
            continue

        if char == '"':
            in_string = True
            out.append(char)
            i += 1
            continue

        if char == "/" and i + 1 < length and text[i + 1] == "/":
            newline = text.find("\n", i + 2)
            if newline == -1:
                break
            i = newline
            continue

        if char == "/" and i + 1 < length and text[i + 1] == "*":
            end = text.find("*/", i + 2)
            if end == -1:
                break
            # Keep line structure intact
            out.append("\n" * text.count("\n", i, end))
            i = end + 2
            continue

        out.append(char)
        i += 1

    return "".join(out)


def _decode_json(path: _pathlib.Path, content: str) -> _typing.Any:
    try:
        return _json.loads(content)
    except _json.JSONDecodeError as e:
        raise errors.ConfigFileSyntaxError(
            path, f"invalid JSON: {e.msg}", line=e.lineno, column=e.colno
        ) from e


def _decode_yaml(path: _pathlib.Path, content: str) -> _typing.Any:
    try:
        return _yaml.safe_load(content)
    except _yaml.MarkedYAMLError as e:
        mark = e.problem_mark
        raise errors.ConfigFileSyntaxError(
            path,
            f"invalid YAML: {e.problem}",
            line=mark.line + 1 if mark is not None else None,
            column=mark.column + 1 if mark is not None else None,
        ) from e
    except _yaml.YAMLError as e:
        raise errors.ConfigFileSyntaxError(path, f"invalid YAML: {e}") from e


def load_config_file(path: _pathlib.Path) -> _typing.Any:
    """
    Read and decode a configuration file.

    Args:
        path: File to load. The suffix selects the decoder.

    Returns:
        The decoded value tree. An empty YAML document decodes to None.

    Raises:
        ConfigFileNotFound: If the file does not exist.
        ConfigFilePermissionDenied: If the file cannot be opened for reading.
        ConfigFileInvalid: If it cannot be read, is not UTF-8, has an
            unsupported suffix, or holds values outside the value model.
        ConfigFileSyntaxError: If decoding fails.
    """
    try:
        content = path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise errors.ConfigFileNotFound(path) from e
    except PermissionError as e:
        raise errors.ConfigFilePermissionDenied(path, f"permission denied: {e}") from e
    except UnicodeDecodeError as e:
        raise errors.ConfigFileInvalid(path, f"not valid UTF-8: {e}") from e
    except OSError as e:
        raise errors.ConfigFileInvalid(path, f"cannot read file: {e}") from e

    suffix = path.suffix.lower()
    if suffix == ".json":
        data = _decode_json(path, content)
    elif suffix == ".jsonc":
        data = _decode_json(path, strip_json_comments(content))
    elif suffix in (".yaml", ".yml"):
        data = _decode_yaml(path, content)
    else:
        raise errors.ConfigFileInvalid(path, f"unsupported file type '{path.suffix}'")

    try:
        value_model.check_value(data)
    except TypeError as e:
        raise errors.ConfigFileInvalid(path, str(e)) from e

    _logger.debug("Loaded config file %s", path)
    return data
