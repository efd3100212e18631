"""Kubeconfig data model, decoding from kubeadm output and encoding to YAML."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import yaml


class KubeconfigError(Exception):
    """Raised when a kubeconfig cannot be read, validated or encoded."""


def _as_str(value: Any, what: str) -> str:
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        raise KubeconfigError(f"{what} must be a string, got {type(value).__name__}")
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _as_mapping(value: Any, what: str) -> dict:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise KubeconfigError(f"{what} must be a mapping, got {type(value).__name__}")
    return dict(value)


def _as_list(value: Any, what: str) -> list:
    if value is None:
        return []
    if not isinstance(value, list):
        raise KubeconfigError(f"{what} must be a list, got {type(value).__name__}")
    return value


@dataclass
class Cluster:
    """How to reach a cluster; unknown fields are kept for writing back."""

    server: str = ""
    other_fields: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any) -> Cluster:
        data = _as_mapping(data, "cluster")
        server = _as_str(data.pop("server", None), "cluster.server")
        return cls(server=server, other_fields=data)

    def to_dict(self) -> dict[str, Any]:
        out = dict(self.other_fields)
        if self.server:
            out["server"] = self.server
        return out


@dataclass
class NamedCluster:
    """A cluster entry together with its name."""

    name: str = ""
    cluster: Cluster = field(default_factory=Cluster)

    @classmethod
    def from_dict(cls, data: Any) -> NamedCluster:
        data = _as_mapping(data, "clusters entry")
        return cls(
            name=_as_str(data.get("name"), "cluster name"),
            cluster=Cluster.from_dict(data.get("cluster")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "cluster": self.cluster.to_dict()}


@dataclass
class NamedUser:
    """A user entry; the user's data is kept untouched."""

    name: str = ""
    user: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any) -> NamedUser:
        data = _as_mapping(data, "users entry")
        return cls(
            name=_as_str(data.get("name"), "user name"),
            user=_as_mapping(data.get("user"), "user"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "user": dict(self.user)}


@dataclass
class Context:
    """References to a cluster and a user; unknown fields are kept."""

    cluster: str = ""
    user: str = ""
    other_fields: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any) -> Context:
        data = _as_mapping(data, "context")
        cluster = _as_str(data.pop("cluster", None), "context.cluster")
        user = _as_str(data.pop("user", None), "context.user")
        return cls(cluster=cluster, user=user, other_fields=data)

    def to_dict(self) -> dict[str, Any]:
        out = dict(self.other_fields)
        out["cluster"] = self.cluster
        out["user"] = self.user
        return out


@dataclass
class NamedContext:
    """A context entry together with its name."""

    name: str = ""
    context: Context = field(default_factory=Context)

    @classmethod
    def from_dict(cls, data: Any) -> NamedContext:
        data = _as_mapping(data, "contexts entry")
        return cls(
            name=_as_str(data.get("name"), "context name"),
            context=Context.from_dict(data.get("context")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "context": self.context.to_dict()}


_KNOWN_CONFIG_KEYS = ("clusters", "users", "contexts", "current-context")


@dataclass
class Config:
    """A kubeconfig; fields not inspected are kept in other_fields."""

    clusters: list[NamedCluster] = field(default_factory=list)
    users: list[NamedUser] = field(default_factory=list)
    contexts: list[NamedContext] = field(default_factory=list)
    current_context: str = ""
    other_fields: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any) -> Config:
        data = _as_mapping(data, "kubeconfig")
        clusters = [NamedCluster.from_dict(c) for c in _as_list(data.pop("clusters", None), "clusters")]
        users = [NamedUser.from_dict(u) for u in _as_list(data.pop("users", None), "users")]
        contexts = [NamedContext.from_dict(c) for c in _as_list(data.pop("contexts", None), "contexts")]
        current = _as_str(data.pop("current-context", None), "current-context")
        return cls(
            clusters=clusters,
            users=users,
            contexts=contexts,
            current_context=current,
            other_fields=data,
        )

    def to_dict(self) -> dict[str, Any]:
        out = {k: v for k, v in self.other_fields.items() if k not in _KNOWN_CONFIG_KEYS}
        if self.clusters:
            out["clusters"] = [c.to_dict() for c in self.clusters]
        if self.users:
            out["users"] = [u.to_dict() for u in self.users]
        if self.contexts:
            out["contexts"] = [c.to_dict() for c in self.contexts]
        if self.current_context:
            out["current-context"] = self.current_context
        return out


def kind_cluster_key(cluster_name: str) -> str:
    """Return the key that identifies a kind cluster in kubeconfig files."""
    return "kind-" + cluster_name


def check_kubeadm_expectations(cfg: Config) -> None:
    """Check that a kubeadm kubeconfig has exactly one cluster, user and context."""
    if len(cfg.clusters) != 1:
        raise KubeconfigError(
            f"kubeadm KUBECONFIG should have one cluster, but read {len(cfg.clusters)}"
        )
    if len(cfg.users) != 1:
        raise KubeconfigError(
            f"kubeadm KUBECONFIG should have one user, but read {len(cfg.users)}"
        )
    if len(cfg.contexts) != 1:
        raise KubeconfigError(
            f"kubeadm KUBECONFIG should have one context, but read {len(cfg.contexts)}"
        )


def encode(cfg: Config) -> str:
    """Encode cfg as normalized YAML; an empty config encodes to ''."""
    data = cfg.to_dict()
    if not data:
        return ""
    try:
        return yaml.safe_dump(
            data,
            default_flow_style=False,
            sort_keys=True,
            allow_unicode=True,
            width=2**31 - 1,
        )
    except (yaml.YAMLError, TypeError) as exc:
        raise KubeconfigError(f"failed to encode KUBECONFIG: {exc}") from exc


def _decode(raw: str) -> Config:
    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        raise KubeconfigError(f"failed to parse kubeconfig: {exc}") from exc
    return Config.from_dict(data)


def kind_from_raw_kubeadm(raw_kubeadm_kubeconfig: str, cluster_name: str, server: str = "") -> Config:
    """Build a kind kubeconfig from kubeadm's admin kubeconfig.

    All names are replaced by the kind cluster key; the server is replaced
    only when given.
    """
    cfg = _decode(raw_kubeadm_kubeconfig)
    check_kubeadm_expectations(cfg)

    key = kind_cluster_key(cluster_name)
    cfg.clusters[0].name = key
    cfg.users[0].name = key
    cfg.contexts[0].name = key
    cfg.contexts[0].context.user = key
    cfg.contexts[0].context.cluster = key
    cfg.current_context = key

    if server:
        cfg.clusters[0].cluster.server = server
    return cfg


def read(config_path) -> Config:
    """Load the kubeconfig at config_path, or an empty one if it does not exist."""
    try:
        with open(config_path, encoding="utf-8") as f:
            raw = f.read()
    except FileNotFoundError:
        return Config()
    except OSError as exc:
        raise KubeconfigError(f"failed to read {config_path}: {exc}") from exc
    return _decode(raw)