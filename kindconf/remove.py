"""Removing kind cluster entries from kubeconfig files."""

from __future__ import annotations

from typing import TypeVar

from kindconf.kubeconfig import Config, KubeconfigError, kind_cluster_key, read
from kindconf.lock import locked
from kindconf.merge import write
from kindconf.paths import paths

_Entry = TypeVar("_Entry")


def _without(entries: list[_Entry], key: str) -> tuple[list[_Entry], bool]:
    kept = [e for e in entries if e.name != key]
    return kept, len(kept) != len(entries)


def remove(cfg: Config, kind_cluster_name: str) -> bool:
    """Drop the kind cluster's entries from cfg; return True if anything changed."""
    key = kind_cluster_key(kind_cluster_name)

    cfg.clusters, clusters_changed = _without(cfg.clusters, key)
    cfg.users, users_changed = _without(cfg.users, key)
    cfg.contexts, contexts_changed = _without(cfg.contexts, key)
    mutated = clusters_changed or users_changed or contexts_changed

    if cfg.current_context == key:
        cfg.current_context = ""
        mutated = True
    return mutated


def remove_kind(kind_cluster_name: str, explicit_path="") -> None:
    """Remove the kind cluster from every kubeconfig kubectl would consider."""
    for config_path in paths(explicit_path):
        try:
            lock = locked(config_path)
            lock.__enter__()
        except OSError as exc:
            raise KubeconfigError(f"failed to lock config file: {exc}") from exc
        try:
            try:
                existing = read(config_path)
            except KubeconfigError as exc:
                raise KubeconfigError(
                    f"failed to read kubeconfig to remove KIND entry: {exc}"
                ) from exc
            if remove(existing, kind_cluster_name):
                write(existing, config_path)
        finally:
            lock.__exit__(None, None, None)