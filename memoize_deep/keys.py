"""Canonical cache keys for call arguments.

Arguments are first converted into a small tagged tree (scalars, ordered
sequences, keyed mappings) and that tree is rendered as compact JSON. Mapping
fields are sorted by name, so ``{"a": 1, "b": 2}`` and ``{"b": 2, "a": 1}``
share a key, while positional and sequence order are kept as given.
"""

import json
import math
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence, Set, Tuple, Union

from pydantic import BaseModel

from .errors import SerializationError

Scalar = Union[None, bool, int, float, str]


@dataclass(frozen=True)
class ScalarNode:
    value: Scalar

    def to_json(self) -> Any:
        return self.value


@dataclass(frozen=True)
class SequenceNode:
    items: Tuple["KeyNode", ...]

    def to_json(self) -> Any:
        return [item.to_json() for item in self.items]


@dataclass(frozen=True)
class MappingNode:
    # always sorted by field name
    fields: Tuple[Tuple[str, "KeyNode"], ...]

    def to_json(self) -> Any:
        return {name: node.to_json() for name, node in self.fields}


KeyNode = Union[ScalarNode, SequenceNode, MappingNode]


def _field_name(key: Any, path: str) -> str:
    if isinstance(key, str):
        return key
    if isinstance(key, int) and not isinstance(key, bool):
        return str(key)
    raise SerializationError(f"mapping key {key!r} of type {type(key).__name__} is not a string", path)


def to_node(value: Any, path: str = "args", _active: Optional[Set[int]] = None) -> KeyNode:
    """Convert ``value`` into a key node, raising ``SerializationError`` if it cannot be represented."""
    if _active is None:
        _active = set()

    if value is None or isinstance(value, (bool, str)):
        return ScalarNode(value)
    if isinstance(value, int):
        return ScalarNode(int(value))
    if isinstance(value, float):
        if not math.isfinite(value):
            raise SerializationError(f"non-finite float {value!r}", path)
        return ScalarNode(float(value))

    if isinstance(value, BaseModel):
        value = value.model_dump(mode="json")

    if isinstance(value, (list, tuple, Mapping)):
        marker = id(value)
        if marker in _active:
            raise SerializationError("cyclic reference", path)
        _active.add(marker)
        try:
            if isinstance(value, Mapping):
                return _mapping_node(value, path, _active)
            return SequenceNode(
                tuple(to_node(item, f"{path}[{i}]", _active) for i, item in enumerate(value))
            )
        finally:
            _active.discard(marker)

    raise SerializationError(f"cannot encode value of type {type(value).__name__}", path)


def _mapping_node(value: Mapping, path: str, active: Set[int]) -> MappingNode:
    fields: Dict[str, KeyNode] = {}
    for key, item in value.items():
        name = _field_name(key, path)
        if name in fields:
            raise SerializationError(f"mapping key {name!r} appears more than once", path)
        fields[name] = to_node(item, f"{path}[{name!r}]", active)
    return MappingNode(tuple(sorted(fields.items(), key=lambda kv: kv[0])))


def encode_key(args: Sequence[Any], kwargs: Optional[Mapping] = None) -> str:
    """Return the canonical key for a call with ``args`` and optional ``kwargs``."""
    try:
        node = to_node(list(args))
        if kwargs:
            node = SequenceNode((node, to_node(dict(kwargs), "kwargs")))
    except RecursionError as exc:
        raise SerializationError("arguments are nested too deeply") from exc
    return json.dumps(node.to_json(), separators=(",", ":"), ensure_ascii=False)
