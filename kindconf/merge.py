"""Writing kubeconfig files and merging kind entries into existing ones."""

from __future__ import annotations

import os
from typing import TypeVar

from kindconf.kubeconfig import (
    Config,
    KubeconfigError,
    check_kubeadm_expectations,
    encode,
    read,
)
from kindconf.lock import locked
from kindconf.paths import path_for_merge

_Entry = TypeVar("_Entry")


def write(cfg: Config, config_path) -> None:
    """Encode cfg and write it to config_path, creating directories as needed."""
    encoded = encode(cfg)
    config_path = os.fspath(config_path)
    directory = os.path.dirname(config_path)
    if directory and not os.path.exists(directory):
        try:
            os.makedirs(directory, mode=0o755, exist_ok=True)
        except OSError as exc:
            raise KubeconfigError(f"failed to create directory for KUBECONFIG: {exc}") from exc
    try:
        fd = os.open(config_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(encoded)
    except OSError as exc:
        raise KubeconfigError(f"failed to write KUBECONFIG: {exc}") from exc


def _upsert(entries: list[_Entry], entry: _Entry) -> list[_Entry]:
    """Replace every entry sharing entry's name, or append entry if none does."""
    replaced = [entry if e.name == entry.name else e for e in entries]
    if not any(e.name == entry.name for e in entries):
        replaced.append(entry)
    return replaced


def merge(existing: Config, kind: Config) -> None:
    """Merge the kind config's single cluster, user and context into existing."""
    check_kubeadm_expectations(kind)

    existing.clusters = _upsert(existing.clusters, kind.clusters[0])
    existing.users = _upsert(existing.users, kind.users[0])
    existing.contexts = _upsert(existing.contexts, kind.contexts[0])
    existing.current_context = kind.current_context

    # some clients depend on apiVersion and kind being present
    if not existing.other_fields:
        existing.other_fields = kind.other_fields


def write_merged(kind_config: Config, explicit_config_path="") -> None:
    """Merge kind_config into the kubeconfig kubectl would write to and save it."""
    config_path = os.fspath(path_for_merge(explicit_config_path))
    try:
        lock = locked(config_path)
        lock.__enter__()
    except OSError as exc:
        raise KubeconfigError(f"failed to lock config file: {exc}") from exc
    try:
        try:
            existing = read(config_path)
        except KubeconfigError as exc:
            raise KubeconfigError(f"failed to get kubeconfig to merge: {exc}") from exc
        merge(existing, kind_config)
        write(existing, config_path)
    finally:
        lock.__exit__(None, None, None)