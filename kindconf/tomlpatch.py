"""Patching TOML documents with TOML merge patches and JSON 6902 patches."""

from __future__ import annotations

import datetime
import enum
import json
import math
import re
import tomllib
from decimal import Decimal
from typing import Any, Iterable

from kindconf.jsonpatch import PatchError, decode_patch, merge_patch

_BARE_KEY = re.compile(r"[A-Za-z0-9_-]+")
_ESCAPES = str.maketrans({"\t": "\\t", "\n": "\\n", "\r": "\\r", '"': '\\"', "\\": "\\\\"})
_INDENT = "  "


def toml_patch(
    to_patch: str,
    patches: Iterable[str] | None = None,
    patches_6902: Iterable[str] | None = None,
) -> str:
    """Apply TOML merge patches, then JSON 6902 patches, to a TOML document."""
    document = json.loads(toml_to_json(to_patch))
    for patch in patches or ():
        document = merge_patch(document, json.loads(toml_to_json(patch)))
    for patch_6902 in patches_6902 or ():
        document = decode_patch(patch_6902).apply(document)
    return _encode_toml(document)


def _time_to_json(value: datetime.date | datetime.time) -> str:
    text = value.isoformat()
    if isinstance(value, datetime.datetime) and value.utcoffset() == datetime.timedelta(0):
        text = text.removesuffix("+00:00") + "Z"
    return text


def _value_to_json(value: Any) -> Any:
    if isinstance(value, dict):
        return _table_to_json(value)
    if isinstance(value, list):
        return [_value_to_json(v) for v in value]
    if isinstance(value, float):
        if not math.isfinite(value):
            raise PatchError(f"unsupported value: {value!r}")
        if value.is_integer() and abs(value) < 1e21:
            integral = int(value)
            if -(2**63) <= integral < 2**64:
                return integral
        return value
    if isinstance(value, (datetime.date, datetime.time)):
        return _time_to_json(value)
    return value


def _table_to_json(table: dict) -> dict:
    # empty arrays directly under a table come out as null, which a merge
    # patch then treats as a deletion
    return {
        key: None if isinstance(value, list) and not value else _value_to_json(value)
        for key, value in table.items()
    }


def toml_to_json(data: str | bytes) -> str:
    """Convert a TOML document to JSON text."""
    try:
        text = data.decode("utf-8") if isinstance(data, (bytes, bytearray)) else data
        parsed = tomllib.loads(text)
    except (tomllib.TOMLDecodeError, UnicodeDecodeError) as exc:
        raise PatchError(f"invalid TOML: {exc}") from exc
    try:
        return json.dumps(_table_to_json(parsed), allow_nan=False)
    except ValueError as exc:
        raise PatchError(str(exc)) from exc


def json_to_toml_string(data: str | bytes) -> str:
    """Convert a JSON object to a TOML document."""
    try:
        decoded = json.loads(data)
    except (ValueError, UnicodeDecodeError) as exc:
        raise PatchError(f"invalid JSON: {exc}") from exc
    return _encode_toml(decoded)


class _TomlType(enum.Enum):
    INTEGER = "Integer"
    FLOAT = "Float"
    STRING = "String"
    BOOL = "Bool"
    ARRAY = "Array"
    HASH = "Hash"
    ARRAY_HASH = "ArrayHash"


def _array_type(values: list) -> _TomlType | None:
    if not values:
        return None
    first = _toml_type(values[0])
    if first is None:
        raise PatchError("toml: cannot encode array with nil element")
    if any(_toml_type(v) is not first for v in values[1:]):
        raise PatchError("toml: cannot encode array with mixed element types")
    return first


def _toml_type(value: Any) -> _TomlType | None:
    if value is None:
        return None
    if isinstance(value, bool):
        return _TomlType.BOOL
    if isinstance(value, int):
        return _TomlType.INTEGER
    if isinstance(value, float):
        return _TomlType.FLOAT
    if isinstance(value, str):
        return _TomlType.STRING
    if isinstance(value, dict):
        return _TomlType.HASH
    if isinstance(value, list):
        return _TomlType.ARRAY_HASH if _array_type(value) is _TomlType.HASH else _TomlType.ARRAY
    raise PatchError(f"toml: unsupported type {type(value).__name__}")


def _quote_key(key: str) -> str:
    if _BARE_KEY.fullmatch(key):
        return key
    return '"' + key.translate(_ESCAPES) + '"'


def _format_float(value: float) -> str:
    if not math.isfinite(value):
        raise PatchError(f"toml: unsupported float {value!r}")
    text = format(Decimal(repr(value)), "f")
    return text if "." in text else text + ".0"


def _element(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return _format_float(value)
    if isinstance(value, str):
        return '"' + value.translate(_ESCAPES) + '"'
    if isinstance(value, list):
        return "[" + ", ".join(_element(v) for v in value) + "]"
    raise PatchError(f"toml: unexpected primitive type {type(value).__name__}")


class _TomlEncoder:
    def __init__(self) -> None:
        self._parts: list[str] = []
        self._written = False

    def result(self) -> str:
        return "".join(self._parts)

    def _write(self, text: str) -> None:
        self._parts.append(text)
        self._written = True

    def _newline(self) -> None:
        if self._written:
            self._write("\n")

    @staticmethod
    def _check_key(key: tuple[str, ...]) -> None:
        if any(part == "" for part in key):
            raise PatchError(
                f"Key '{'.'.join(key)}' is not a valid table name. Key names cannot be empty."
            )

    @staticmethod
    def _indent(key: tuple[str, ...]) -> str:
        return _INDENT * (len(key) - 1)

    @staticmethod
    def _dotted(key: tuple[str, ...]) -> str:
        return ".".join(_quote_key(part) for part in key)

    def table(self, key: tuple[str, ...], table: dict) -> None:
        self._check_key(key)
        if len(key) == 1:
            self._newline()
        if key:
            self._write(f"{self._indent(key)}[{self._dotted(key)}]")
            self._newline()
        self._map(key, table)

    def _map(self, key: tuple[str, ...], table: dict) -> None:
        direct: list[str] = []
        nested: list[str] = []
        for name, value in table.items():
            kind = _toml_type(value)
            (nested if kind in (_TomlType.HASH, _TomlType.ARRAY_HASH) else direct).append(name)
        for names in (direct, nested):
            for name in sorted(names):
                value = table[name]
                if value is not None:
                    self._value(key + (name,), value)

    def _value(self, key: tuple[str, ...], value: Any) -> None:
        if isinstance(value, dict):
            self.table(key, value)
        elif isinstance(value, list) and _toml_type(value) is _TomlType.ARRAY_HASH:
            self._array_of_tables(key, value)
        else:
            self._key_value(key, value)

    def _array_of_tables(self, key: tuple[str, ...], tables: list) -> None:
        for table in tables:
            self._check_key(key)
            self._newline()
            self._write(f"{self._indent(key)}[[{self._dotted(key)}]]")
            self._newline()
            self._map(key, table)

    def _key_value(self, key: tuple[str, ...], value: Any) -> None:
        self._check_key(key)
        self._write(f"{self._indent(key)}{_quote_key(key[-1])} = {_element(value)}")
        self._newline()


def _encode_toml(document: Any) -> str:
    if not isinstance(document, dict):
        raise PatchError("toml: top-level value must be a table")
    encoder = _TomlEncoder()
    encoder.table((), document)
    return encoder.result()