"""
Deep merge of configuration values.

deep_merge(target, source) combines two value trees with source taking
priority:

- Different kinds: source wins outright (a type change is not an error).
- Objects: keys are merged recursively; keys only in one side are copied.
- Arrays: combined according to MergeStrategy (REPLACE, CONCAT, SMART).
- Matching scalars: source wins.

The result never shares a list or dict with either input.

Circular references:
    Trees produced by decoders are acyclic, but programmatic defaults can
    be built by hand. Each top-level call keeps the identities of the
    target objects currently being merged (and of the nodes currently
    being copied); re-entering one raises CircularReferenceDetected
    instead of recursing forever.

Example:
    >>> deep_merge({"db": {"host": "a", "port": 1}}, {"db": {"port": 2}})
    {'db': {'host': 'a', 'port': 2}}
"""

from __future__ import annotations

import collections.abc as _abc
import dataclasses as _dataclasses
import enum as _enum
import logging as _logging
import typing as _typing

import confstack.constants as constants
import confstack.errors as errors
import confstack.value as value_model

_logger = _logging.getLogger(__name__)


class MergeStrategy(str, _enum.Enum):
    """How two arrays at the same path are combined."""

    REPLACE = "replace"
    """Source array replaces the target array."""

    CONCAT = "concat"
    """Target elements, then source elements not already present."""

    SMART = "smart"
    """Object arrays matched by merge key; otherwise CONCAT."""


def coerce_strategy(strategy: _typing.Any) -> MergeStrategy:
    """
    Convert a strategy name or member to a MergeStrategy.

    Args:
        strategy: A MergeStrategy, or its name/value in any case.

    Raises:
        MergeStrategyInvalid: For anything else.
    """
    if isinstance(strategy, MergeStrategy):
        return strategy
    if isinstance(strategy, str):
        try:
            return MergeStrategy(strategy.strip().lower())
        except ValueError:
            pass
    choices = ", ".join(s.value for s in MergeStrategy)
    raise errors.MergeStrategyInvalid(
        f"Invalid merge strategy {strategy!r} (expected one of: {choices})",
        context=repr(strategy),
    )


@_dataclasses.dataclass(frozen=True)
class MergeOptions:
    """Options for a single merge invocation."""

    strategy: MergeStrategy = MergeStrategy.SMART

    def __post_init__(self) -> None:
        # Frozen: bypass __setattr__ to store the coerced member
        object.__setattr__(self, "strategy", coerce_strategy(self.strategy))


_SMART_OPTIONS = MergeOptions(MergeStrategy.SMART)


class _MergeRun:
    """State scoped to one top-level deep_merge() call."""

    __slots__ = ("_merging", "_copying")

    def __init__(self) -> None:
        self._merging: set[int] = set()
        self._copying: set[int] = set()

    def copy(self, value: _typing.Any) -> _typing.Any:
        """clone() that detects self-containing trees."""
        if not isinstance(value, (list, dict)):
            value_model.kind_of(value)
            return value

        obj_id = id(value)
        if obj_id in self._copying:
            raise errors.CircularReferenceDetected(context="copy")
        self._copying.add(obj_id)
        try:
            if isinstance(value, list):
                return [self.copy(item) for item in value]
            return {key: self.copy(item) for key, item in value.items()}
        finally:
            self._copying.discard(obj_id)

    def merge(
        self,
        target: _typing.Any,
        source: _typing.Any,
        options: MergeOptions,
    ) -> _typing.Any:
        target_kind = value_model.kind_of(target)
        source_kind = value_model.kind_of(source)

        if target_kind is not source_kind:
            return self.copy(source)

        if source_kind is value_model.ValueKind.OBJECT:
            return self._merge_objects(target, source, options)

        if source_kind is value_model.ValueKind.ARRAY:
            return self._merge_arrays(target, source, options.strategy)

        return self.copy(source)

    def _merge_objects(
        self,
        target: dict[str, _typing.Any],
        source: dict[str, _typing.Any],
        options: MergeOptions,
    ) -> dict[str, _typing.Any]:
        obj_id = id(target)
        if obj_id in self._merging:
            raise errors.CircularReferenceDetected(context="merge")
        self._merging.add(obj_id)
        try:
            result: dict[str, _typing.Any] = {}
            for key, item in target.items():
                if key in source:
                    result[key] = self.merge(item, source[key], options)
                else:
                    result[key] = self.copy(item)
            for key, item in source.items():
                if key not in result:
                    result[key] = self.copy(item)
            return result
        finally:
            self._merging.discard(obj_id)

    def _merge_arrays(
        self,
        target: list[_typing.Any],
        source: list[_typing.Any],
        strategy: MergeStrategy,
    ) -> list[_typing.Any]:
        if strategy is MergeStrategy.REPLACE:
            return self.copy(source)
        if strategy is MergeStrategy.CONCAT:
            return self._concat(target, source)
        if strategy is MergeStrategy.SMART:
            return self._smart(target, source)
        # Unreachable with a coerced MergeOptions
        raise errors.MergeStrategyInvalid(context=repr(strategy))

    def _concat(
        self,
        target: list[_typing.Any],
        source: list[_typing.Any],
    ) -> list[_typing.Any]:
        result = [self.copy(item) for item in target]
        for item in source:
            if not any(_is_duplicate(existing, item) for existing in result):
                result.append(self.copy(item))
        return result

    def _smart(
        self,
        target: list[_typing.Any],
        source: list[_typing.Any],
    ) -> list[_typing.Any]:
        if not (_is_object_array(target) and _is_object_array(source)):
            return self._concat(target, source)

        merge_key = find_merge_key(target[0])
        if merge_key is None:
            _logger.debug("No merge key in first element; concatenating arrays")
            return self._concat(target, source)

        result: list[_typing.Any] = []
        index: dict[str, int] = {}
        for item in target:
            key_value = item.get(merge_key)
            if isinstance(key_value, str):
                index[key_value] = len(result)
            result.append(self.copy(item))

        for item in source:
            key_value = item.get(merge_key)
            if isinstance(key_value, str) and key_value in index:
                position = index[key_value]
                result[position] = self.merge(result[position], item, _SMART_OPTIONS)
            else:
                if isinstance(key_value, str):
                    index[key_value] = len(result)
                result.append(self.copy(item))
        return result


def _is_object_array(items: list[_typing.Any]) -> bool:
    return bool(items) and all(isinstance(item, dict) for item in items)


def _is_duplicate(existing: _typing.Any, candidate: _typing.Any) -> bool:
    """Primitive equality for CONCAT; containers are never duplicates."""
    if isinstance(existing, (list, dict)) or isinstance(candidate, (list, dict)):
        return False
    return value_model.equals(existing, candidate)


def find_merge_key(first: dict[str, _typing.Any]) -> str | None:
    """
    Pick the SMART merge key from the first target element.

    Returns:
        The first of SMART_MERGE_KEYS present with a string value, or None.
    """
    for candidate in constants.SMART_MERGE_KEYS:
        if isinstance(first.get(candidate), str):
            return candidate
    return None


def deep_merge(
    target: _typing.Any,
    source: _typing.Any,
    options: MergeOptions | None = None,
) -> _typing.Any:
    """
    Merge source into target and return a new tree.

    Args:
        target: Lower-priority value.
        source: Higher-priority value.
        options: Merge options. Defaults to the SMART array strategy.

    Returns:
        Merged value. Neither input is modified or aliased.

    Raises:
        CircularReferenceDetected: If an object is re-entered while it is
            still being merged or copied.
        TypeError: If either tree holds values outside the value model.
    """
    if options is None:
        options = MergeOptions()
    return _MergeRun().merge(target, source, options)


def merge_layers(
    layers: _abc.Iterable[_typing.Any],
    options: MergeOptions | None = None,
) -> _typing.Any:
    """
    Fold deep_merge over layers ordered lowest to highest priority.

    Returns:
        The merged value, or an empty object when there are no layers.
    """
    result: _typing.Any = None
    seen_any = False
    for layer in layers:
        if not seen_any:
            result = _MergeRun().copy(layer)
            seen_any = True
        else:
            result = deep_merge(result, layer, options)
    return result if seen_any else value_model.empty_object()
