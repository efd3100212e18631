"""Patching streams of Kubernetes YAML documents with merge and JSON 6902 patches."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable

import yaml

from kindconf.jsonpatch import Patch, PatchError, decode_patch, merge_patch

YAML_SEPARATOR = "\n---"


class _Loader(yaml.SafeLoader):
    """A safe loader that keeps timestamps as plain strings, as JSON would."""


_Loader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != "tag:yaml.org,2002:timestamp"]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


def _json_key(key: Any) -> str:
    if isinstance(key, bool):
        return "true" if key else "false"
    if key is None:
        return "null"
    return str(key)


def _to_json_value(value: Any) -> Any:
    if isinstance(value, dict):
        return {_json_key(k): _to_json_value(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_to_json_value(v) for v in value]
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return value


def _yaml_to_json(raw: str) -> Any:
    """Decode a YAML document into JSON-compatible Python values."""
    try:
        return _to_json_value(yaml.load(raw, Loader=_Loader))
    except yaml.YAMLError as exc:
        raise PatchError(f"error converting YAML to JSON: {exc}") from exc


def _json_to_yaml(value: Any) -> str:
    """Encode JSON-compatible values as YAML with sorted keys."""
    text = yaml.safe_dump(
        value,
        default_flow_style=False,
        sort_keys=True,
        allow_unicode=True,
        width=2**31 - 1,
    )
    return text.removesuffix("...\n")


@dataclass
class PatchJSON6902:
    """A JSON 6902 patch targeting resources of a given group, version and kind."""

    group: str = ""
    version: str = ""
    kind: str = ""
    patch: str = ""


@dataclass(frozen=True)
class MatchInfo:
    """The type meta (kind and apiVersion) used to match resources and patches."""

    kind: str = ""
    api_version: str = ""


@dataclass
class MergePatch:
    """A merge patch document and what it applies to."""

    raw: str
    document: Any
    match_info: MatchInfo


@dataclass
class Json6902Patch:
    """A decoded JSON 6902 patch and what it applies to."""

    raw: str
    patch: Patch
    match_info: MatchInfo


@dataclass
class Resource:
    """A single YAML document to patch, held as JSON-compatible values."""

    raw: str
    document: Any
    match_info: MatchInfo = field(default_factory=MatchInfo)

    def matches(self, other: MatchInfo) -> bool:
        """Kinds must be equal; the apiVersion is compared only if other sets one."""
        mine = self.match_info
        return mine.kind == other.kind and (
            other.api_version == "" or mine.api_version == other.api_version
        )

    def apply_merge_patch(self, patch: MergePatch) -> bool:
        """Apply patch if it matches; return whether it matched."""
        if not self.matches(patch.match_info):
            return False
        self.document = merge_patch(self.document, patch.document)
        return True

    def apply_6902_patch(self, patch: Json6902Patch) -> bool:
        """Apply patch if it matches; return whether it matched."""
        if not self.matches(patch.match_info):
            return False
        self.document = patch.patch.apply(self.document)
        return True

    def encode(self) -> str:
        """Return the resource as YAML."""
        return _json_to_yaml(self.document)


def group_version_to_api_version(group: str, version: str) -> str:
    """Join group and version into an apiVersion; the core group has no prefix."""
    if not group:
        return version
    return f"{group}/{version}"


def _string_field(data: dict, name: str, raw: str) -> str:
    value = data.get(name)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise PatchError(f"failed to parse type meta for {raw!r}: {name} must be a string")
    return value


def parse_yaml_match_info(raw: str) -> MatchInfo:
    """Read kind and apiVersion from a YAML document."""
    try:
        data = _yaml_to_json(raw)
    except PatchError as exc:
        raise PatchError(f"failed to parse type meta for {raw!r}: {exc}") from exc
    if data is None:
        return MatchInfo()
    if not isinstance(data, dict):
        raise PatchError(f"failed to parse type meta for {raw!r}: not an object")
    return MatchInfo(
        kind=_string_field(data, "kind", raw),
        api_version=_string_field(data, "apiVersion", raw),
    )


def match_info_for_json6902_patch(patch: PatchJSON6902) -> MatchInfo:
    """Return the match info a configured JSON 6902 patch targets."""
    return MatchInfo(
        kind=patch.kind,
        api_version=group_version_to_api_version(patch.group, patch.version),
    )


def split_yaml_documents(stream: str) -> list[str]:
    """Split a YAML stream on lines starting with '---'.

    The separator line is consumed whole. A trailing separator line with no
    newline after it ends the stream.
    """
    documents: list[str] = []
    data = stream
    while data:
        index = data.find(YAML_SEPARATOR)
        if index < 0:
            documents.append(data)
            break
        after = data[index + len(YAML_SEPARATOR):]
        if not after:
            documents.append(data[:index])
            break
        newline = after.find("\n")
        if newline < 0:
            break
        documents.append(data[:index])
        data = after[newline + 1:]
    return documents


def parse_resources(stream: str) -> list[Resource]:
    """Split a YAML stream into resources."""
    return [
        Resource(raw=raw, document=_yaml_to_json(raw), match_info=parse_yaml_match_info(raw))
        for raw in split_yaml_documents(stream)
    ]


def parse_merge_patches(raw_patches: Iterable[str]) -> list[MergePatch]:
    """Parse merge patches; each may itself be a stream of several documents."""
    split = [doc for raw in raw_patches for doc in split_yaml_documents(raw)]
    return [
        MergePatch(raw=raw, document=_yaml_to_json(raw), match_info=parse_yaml_match_info(raw))
        for raw in split
    ]


def convert_json6902_patches(patches: Iterable[PatchJSON6902]) -> list[Json6902Patch]:
    """Decode configured JSON 6902 patches, written as YAML or JSON."""
    return [
        Json6902Patch(
            raw=p.patch,
            patch=decode_patch(_yaml_to_json(p.patch)),
            match_info=match_info_for_json6902_patch(p),
        )
        for p in patches
    ]


def kube_yaml(
    to_patch: str,
    patches: Iterable[str] | None = None,
    patches_6902: Iterable[PatchJSON6902] | None = None,
) -> str:
    """Patch a stream of Kubernetes YAML documents.

    Merge patches are applied first, then JSON 6902 patches, each to the
    documents whose kind (and apiVersion, where the patch sets one) match.
    """
    try:
        resources = parse_resources(to_patch)
    except PatchError as exc:
        raise PatchError(f"failed to parse yaml to patch: {exc}") from exc
    try:
        merge_patches = parse_merge_patches(patches or ())
    except PatchError as exc:
        raise PatchError(f"failed to parse patches: {exc}") from exc
    try:
        json6902_patches = convert_json6902_patches(patches_6902 or ())
    except PatchError as exc:
        raise PatchError(f"failed to parse JSON 6902 patches: {exc}") from exc

    encoded: list[str] = []
    for resource in resources:
        for merge in merge_patches:
            try:
                resource.apply_merge_patch(merge)
            except PatchError as exc:
                raise PatchError(f"failed to apply patch: {exc}") from exc
        for patch in json6902_patches:
            try:
                resource.apply_6902_patch(patch)
            except PatchError as exc:
                raise PatchError(f"failed to apply JSON 6902 patch: {exc}") from exc
        encoded.append(resource.encode())
    return "---\n".join(encoded)