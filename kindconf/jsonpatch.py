"""JSON Patch (RFC 6902) and JSON Merge Patch (RFC 7386) on decoded JSON values."""

from __future__ import annotations

import copy
import json
import re
from dataclasses import dataclass
from typing import Any, Iterator

_INDEX = re.compile(r"-?[0-9]+")


class PatchError(ValueError):
    """Raised when a patch cannot be decoded or applied."""


def _unescape(token: str) -> str:
    return token.replace("~1", "/").replace("~0", "~")


def _parse_pointer(path: Any) -> list[str]:
    if not isinstance(path, str):
        raise PatchError(f"JSON pointer must be a string, got {type(path).__name__}")
    if path == "":
        return []
    if not path.startswith("/"):
        raise PatchError(f"invalid JSON pointer {path!r}")
    return [_unescape(token) for token in path[1:].split("/")]


def _index(token: str, length: int, *, for_insert: bool = False) -> int:
    if for_insert and token == "-":
        return length
    if not _INDEX.fullmatch(token):
        raise PatchError(f"invalid array index {token!r}")
    index = int(token)
    if index < 0:
        if index < -length:
            raise PatchError(f"array index {index} out of bounds")
        index += length
    upper = length if for_insert else length - 1
    if index > upper:
        raise PatchError(f"array index {index} out of bounds")
    return index


def _child(container: Any, token: str) -> Any:
    if isinstance(container, dict):
        if token not in container:
            raise PatchError(f"path segment {token!r} does not exist")
        return container[token]
    if isinstance(container, list):
        return container[_index(token, len(container))]
    raise PatchError(f"cannot traverse into {type(container).__name__} at {token!r}")


def _get(document: Any, tokens: list[str]) -> Any:
    for token in tokens:
        document = _child(document, token)
    return document


def _add(document: Any, tokens: list[str], value: Any) -> Any:
    if not tokens:
        return value
    parent = _get(document, tokens[:-1])
    last = tokens[-1]
    if isinstance(parent, dict):
        parent[last] = value
    elif isinstance(parent, list):
        parent.insert(_index(last, len(parent), for_insert=True), value)
    else:
        raise PatchError(f"cannot add to {type(parent).__name__}")
    return document


def _remove(document: Any, tokens: list[str]) -> Any:
    """Remove the value at tokens from document in place and return it."""
    if not tokens:
        raise PatchError("cannot remove the whole document")
    parent = _get(document, tokens[:-1])
    last = tokens[-1]
    if isinstance(parent, dict):
        if last not in parent:
            raise PatchError(f"unable to remove nonexistent key {last!r}")
        return parent.pop(last)
    if isinstance(parent, list):
        return parent.pop(_index(last, len(parent)))
    raise PatchError(f"cannot remove from {type(parent).__name__}")


def _replace(document: Any, tokens: list[str], value: Any) -> Any:
    if not tokens:
        return value
    parent = _get(document, tokens[:-1])
    last = tokens[-1]
    if isinstance(parent, dict):
        if last not in parent:
            raise PatchError(f"unable to replace nonexistent key {last!r}")
        parent[last] = value
    elif isinstance(parent, list):
        parent[_index(last, len(parent))] = value
    else:
        raise PatchError(f"cannot replace in {type(parent).__name__}")
    return document


def _json_equal(a: Any, b: Any) -> bool:
    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a == b
    if isinstance(a, (int, float)) and isinstance(b, (int, float)):
        return a == b
    if isinstance(a, dict) and isinstance(b, dict):
        return a.keys() == b.keys() and all(_json_equal(a[k], b[k]) for k in a)
    if isinstance(a, list) and isinstance(b, list):
        return len(a) == len(b) and all(_json_equal(x, y) for x, y in zip(a, b))
    return type(a) is type(b) and a == b


def _field(operation: dict, name: str) -> Any:
    if name not in operation:
        raise PatchError(f"operation {operation.get('op')!r} is missing {name!r}")
    return operation[name]


def _apply_operation(document: Any, operation: dict) -> Any:
    kind = operation.get("op")
    path = _field(operation, "path")
    tokens = _parse_pointer(path)

    match kind:
        case "add":
            return _add(document, tokens, copy.deepcopy(_field(operation, "value")))
        case "remove":
            _remove(document, tokens)
            return document
        case "replace":
            return _replace(document, tokens, copy.deepcopy(_field(operation, "value")))
        case "move":
            source = _field(operation, "from")
            source_tokens = _parse_pointer(source)
            if source == path:
                _get(document, source_tokens)
                return document
            if path.startswith(source + "/"):
                raise PatchError(f"cannot move {source!r} into its own child {path!r}")
            value = _remove(document, source_tokens)
            return _add(document, tokens, value)
        case "copy":
            source_tokens = _parse_pointer(_field(operation, "from"))
            value = copy.deepcopy(_get(document, source_tokens))
            return _add(document, tokens, value)
        case "test":
            expected = _field(operation, "value")
            if not _json_equal(_get(document, tokens), expected):
                raise PatchError(f"testing value {path!r} failed")
            return document
        case _:
            raise PatchError(f"unexpected kind of operation: {kind!r}")


@dataclass(frozen=True)
class Patch:
    """A decoded RFC 6902 patch: an ordered sequence of operations."""

    operations: tuple[dict, ...]

    def __iter__(self) -> Iterator[dict]:
        return iter(self.operations)

    def __len__(self) -> int:
        return len(self.operations)

    def apply(self, document: Any) -> Any:
        """Return a patched copy of document; the input is left unchanged."""
        result = copy.deepcopy(document)
        for operation in self.operations:
            result = _apply_operation(result, operation)
        return result


def decode_patch(data: str | bytes | list) -> Patch:
    """Decode an RFC 6902 patch from JSON text or an already decoded list."""
    if isinstance(data, (str, bytes, bytearray)):
        try:
            data = json.loads(data)
        except (ValueError, UnicodeDecodeError) as exc:
            raise PatchError(f"invalid JSON patch: {exc}") from exc
    if not isinstance(data, list):
        raise PatchError("a JSON patch must be an array of operations")
    if not all(isinstance(op, dict) for op in data):
        raise PatchError("every JSON patch operation must be an object")
    return Patch(tuple(copy.deepcopy(op) for op in data))


def _prune_nulls(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: _prune_nulls(v) for k, v in value.items() if v is not None}
    if isinstance(value, list):
        return [_prune_nulls(v) for v in value]
    return copy.deepcopy(value)


def _merge(target: Any, patch: Any) -> Any:
    if not isinstance(patch, dict):
        if isinstance(patch, list) and isinstance(target, dict):
            return copy.deepcopy(patch)
        return _prune_nulls(patch)
    result = dict(target) if isinstance(target, dict) else {}
    for key, value in patch.items():
        if value is None:
            result.pop(key, None)
        else:
            result[key] = _merge(result.get(key), value)
    return result


def merge_patch(document: Any, patch: Any) -> Any:
    """Return document with the RFC 7386 merge patch applied; inputs are unchanged."""
    if document is None:
        raise PatchError("invalid JSON document")
    if patch is None or not isinstance(patch, (dict, list)):
        raise PatchError("invalid JSON merge patch")
    if isinstance(patch, list):
        return _prune_nulls(patch)
    return _merge(copy.deepcopy(document), patch)