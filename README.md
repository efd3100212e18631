# kindconf

Helpers for the configuration around local Kubernetes clusters: kubeconfig
entries, an HAProxy configuration for the control plane, unpacking of log
archives, and patching of TOML and Kubernetes YAML documents.

## Installation

```
pip install .
```

Run the test suite with:

```
pip install .[test]
pytest
```

## Kubeconfig files

- `kindconf.kubeconfig` holds the data model (`Config`, `NamedCluster`,
  `Cluster`, `NamedUser`, `NamedContext`, `Context`). Fields that are not
  inspected are kept in `other_fields` (and a user's data in `NamedUser.user`)
  so they are written back unchanged. `Config.from_dict` and `Config.to_dict`
  convert to and from plain dictionaries.
  - `kind_cluster_key(name)` returns `"kind-<name>"`.
  - `check_kubeadm_expectations(cfg)` requires exactly one cluster, one user
    and one context.
  - `kind_from_raw_kubeadm(raw, cluster_name, server)` reads kubeadm's admin
    kubeconfig, renames every entry and the current context to the cluster
    key, and replaces the server address when `server` is not empty.
  - `encode(cfg)` writes YAML with sorted keys; an empty config encodes to
    `""`.
  - `read(path)` loads a file, or returns an empty `Config` if it does not
    exist.
- `kindconf.paths` chooses files the way kubectl does: `paths()` returns the
  explicit path if given, else the entries of `KUBECONFIG` (empty entries and
  duplicates dropped), else `$HOME/.kube/config`. `path_for_merge()` returns
  the single candidate, else the first that exists as a file, else the last.
  `home_dir()` follows the Windows rules for `HOME`, `HOMEDRIVE`/`HOMEPATH`
  and `USERPROFILE`. Both take an optional `get_env` callable in place of the
  process environment.
- `kindconf.lock` creates a `<file>.lock` sibling exclusively
  (`lock_file`, `unlock_file`, or the `locked()` context manager).
- `kindconf.merge`: `merge(existing, kind)` replaces entries of the same name
  or appends them, and sets the current context; `write(cfg, path)` writes
  the file with mode 0600, creating directories; `write_merged(cfg, path)`
  does both under the lock.
- `kindconf.remove`: `remove(cfg, name)` drops the cluster's entries and
  reports whether anything changed; `remove_kind(name, path)` does this for
  every candidate file under the lock.

Convert a kubeadm admin kubeconfig and merge it into the user's kubeconfig:

```python
from kindconf.kubeconfig import kind_from_raw_kubeadm, encode
from kindconf.merge import write_merged

with open("admin.conf") as f:
    cfg = kind_from_raw_kubeadm(f.read(), "kind", "https://127.0.0.1:6443")

print(encode(cfg))
write_merged(cfg, "")  # "" means: follow KUBECONFIG / $HOME rules
```

Remove the cluster again:

```python
from kindconf.remove import remove_kind

remove_kind("kind", "")
```

## Load balancer configuration

`kindconf.loadbalancer.config(ConfigData(...))` renders an HAProxy
configuration binding the control-plane port (also on IPv6 when `ipv6` is
set) with one backend server per entry of `backend_servers`, sorted by name.
`IMAGE` and `CONFIG_PATH` name the load balancer image and the config file's
path inside it.

```python
from kindconf.loadbalancer import ConfigData, config

print(config(ConfigData(
    control_plane_port=6443,
    backend_servers={"kind-control-plane": "kind-control-plane:6443"},
    ipv6=False,
)))
```

## Unpacking log archives

`kindconf.logs.untar(stream, directory, logger)` reads a tar stream, writes
regular files and directories into `directory`, logs a warning for any other
entry type, and reads the stream to its end.

## Patching

- `kindconf.jsonpatch`: `decode_patch(text)` returns a `Patch` whose
  `apply(document)` performs RFC 6902 operations on a copy;
  `merge_patch(document, patch)` applies an RFC 7386 merge patch.
- `kindconf.tomlpatch.toml_patch(to_patch, patches, patches_6902)` applies
  TOML merge patches and then JSON 6902 patches to a TOML document and
  writes TOML back with sorted keys and indented nested tables. An empty
  array set directly in a table reads as null, so in a merge patch it removes
  the key. `toml_to_json` and `json_to_toml_string` do the conversions.
- `kindconf.kubeyaml.kube_yaml(to_patch, patches, patches_6902)` splits a
  YAML stream into documents and applies merge patches and then
  `PatchJSON6902` patches to each document whose `kind` matches, and whose
  `apiVersion` matches where the patch sets one. Documents are written back
  with sorted keys, joined by `---`.

```python
from kindconf.tomlpatch import toml_patch

out = toml_patch(
    'disabled_plugins = ["restart"]\n',
    ["disabled_plugins = []"],
    [],
)
```

```python
from kindconf.kubeyaml import kube_yaml, PatchJSON6902

out = kube_yaml(
    "kind: ClusterConfiguration\napiVersion: kubeadm.k8s.io/v1beta2\n",
    ["kind: ClusterConfiguration\nclusterName: demo\n"],
    [PatchJSON6902(group="kubeadm.k8s.io", version="v1beta2",
                   kind="ClusterConfiguration",
                   patch='[{"op": "add", "path": "/networking", "value": {}}]')],
)
```

## Errors

`KubeconfigError` is raised for kubeconfig files that cannot be read,
validated, locked or written; `PatchError` (a `ValueError`) for patches or
documents that cannot be decoded or applied. `untar` raises
`tarfile.ReadError` for a broken archive and `OSError` for write failures.

## What this package does not do

There is no command-line tool. The package does not create clusters or talk
to nodes or containers: it does not fetch the admin kubeconfig or the API
server endpoint from a running cluster, and it does not run `tar` on a node
to collect logs. Those inputs have to be supplied by the caller as text or as
a stream.