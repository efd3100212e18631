"""Discovery of the kubeconfig files to consider, following kubectl's rules."""

from __future__ import annotations

import os
import posixpath
import stat
import sys
from typing import Callable, Iterable

KUBECONFIG_ENV = "KUBECONFIG"

GetEnv = Callable[[str], str]


def _default_get_env(name: str) -> str:
    return os.environ.get(name, "")


def _current_goos() -> str:
    return "windows" if os.name == "nt" else sys.platform


def paths(explicit_path: str, get_env: GetEnv | None = None) -> list[str]:
    """Return the kubeconfig paths to consider.

    An explicit path wins; otherwise $KUBECONFIG is used as a path list;
    otherwise $HOME/.kube/config.
    """
    get_env = get_env or _default_get_env
    if explicit_path:
        return [explicit_path]

    env_value = get_env(KUBECONFIG_ENV)
    found = discard_empty_and_duplicates(env_value.split(os.pathsep) if env_value else [])
    if found:
        return found

    home = home_dir(_current_goos(), get_env)
    return [posixpath.normpath(posixpath.join(home, ".kube", "config"))]


def path_for_merge(explicit_path: str, get_env: GetEnv | None = None) -> str:
    """Return the file kubectl would merge into."""
    candidates = paths(explicit_path, get_env)
    if len(candidates) == 1:
        return candidates[0]
    return next((p for p in candidates if file_exists(p)), candidates[-1])


def file_exists(filename: str) -> bool:
    """Return True if filename exists and is not a directory."""
    try:
        info = os.stat(filename)
    except OSError:
        return False
    return not stat.S_ISDIR(info.st_mode)


def discard_empty_and_duplicates(paths: Iterable[str]) -> list[str]:
    """Drop empty entries and later duplicates, keeping order."""
    return list(dict.fromkeys(p for p in paths if p))


def home_dir(goos: str, get_env: GetEnv | None = None) -> str:
    """Return the current user's home directory.

    On Windows the first of HOME, HOMEDRIVE+HOMEPATH, USERPROFILE holding a
    .kube/config file wins; failing that the first of HOME, USERPROFILE,
    HOMEDRIVE+HOMEPATH that is a writeable directory, then the first that
    exists, then the first that is set.
    """
    get_env = get_env or _default_get_env
    if goos != "windows":
        return get_env("HOME")

    home = get_env("HOME")
    home_drive, home_path = get_env("HOMEDRIVE"), get_env("HOMEPATH")
    home_drive_home_path = home_drive + home_path if home_drive and home_path else ""
    user_profile = get_env("USERPROFILE")

    for p in (home, home_drive_home_path, user_profile):
        if p and os.path.exists(os.path.join(p, ".kube", "config")):
            return p

    first_set = ""
    first_existing = ""
    for p in (home, user_profile, home_drive_home_path):
        if not p:
            continue
        first_set = first_set or p
        try:
            info = os.stat(p)
        except OSError:
            continue
        first_existing = first_existing or p
        if stat.S_ISDIR(info.st_mode) and info.st_mode & stat.S_IWUSR:
            return p

    return first_existing or first_set