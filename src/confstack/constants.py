"""
Shared constants for confstack.

This module provides a single source of truth for values used across
file discovery, merging and source resolution.
"""

# File discovery
CONFIG_EXTENSIONS: tuple[str, ...] = (".json", ".jsonc", ".yaml", ".yml")
"""Supported file extensions, in priority order."""

CONFIG_INFIX = ".config"
"""Alternate file naming: {name}.config{ext} is tried after {name}{ext}."""

PROJECT_SEARCH_DIRS: tuple[str, ...] = ("", "config", ".config")
"""Directories searched below the working directory, in priority order."""

PACKAGE_FILE_STEMS: tuple[str, ...] = ("package", "pantry")
"""Shared project manifests tried last in the working directory itself."""

HOME_CONFIG_DIRNAME = ".config"
"""Home configuration directory, relative to the user's home."""

# Smart array merging
SMART_MERGE_KEYS: tuple[str, ...] = ("id", "name", "key", "path", "type")
"""Candidate merge keys, scanned in order against the first target element."""

# Source priorities (higher wins)
PRIORITY_OVERRIDES = 4
PRIORITY_LOCAL_FILE = 3
PRIORITY_HOME_FILE = 2
PRIORITY_ENV_VARS = 1
PRIORITY_DEFAULTS = 0

# Environment decoding
ENV_TRUE_LITERALS: frozenset[str] = frozenset({"true", "1", "yes"})
ENV_FALSE_LITERALS: frozenset[str] = frozenset({"false", "0", "no"})

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1
