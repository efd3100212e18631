import os

import pytest

from kindconf.kubeconfig import (
    Cluster,
    Config,
    Context,
    KubeconfigError,
    NamedCluster,
    NamedContext,
    NamedUser,
)
from kindconf.lock import lock_name
from kindconf.merge import merge, write, write_merged


def _kind_only(name="kind-kind"):
    return Config(
        clusters=[NamedCluster(name=name)],
        users=[NamedUser(name=name)],
        contexts=[NamedContext(name=name)],
    )


def _full_kind_config():
    return Config(
        clusters=[
            NamedCluster(
                name="kind-kind",
                cluster=Cluster(
                    server="https://127.0.0.1:6443",
                    other_fields={"certificate-authority-data": "definitelyacert"},
                ),
            )
        ],
        contexts=[
            NamedContext(name="kind-kind", context=Context(user="kind-kind", cluster="kind-kind"))
        ],
        users=[
            NamedUser(
                name="kind-kind",
                user={"client-certificate-data": "seemslegit", "client-key-data": "yep"},
            )
        ],
        current_context="kind-kind",
        other_fields={"apiVersion": "v1", "kind": "Config", "preferences": {}},
    )


def test_merge_bad_kind_config():
    existing = Config()
    with pytest.raises(KubeconfigError):
        merge(existing, Config())
    assert existing == Config()


def test_merge_empty_existing():
    existing = Config()
    merge(existing, _kind_only())
    assert existing == _kind_only()


def test_merge_replace_existing():
    existing = Config(
        clusters=[NamedCluster(name="kind-kind", cluster=Cluster(server="foo"))],
        users=[NamedUser(name="kind-kind")],
        contexts=[NamedContext(name="kind-kind")],
    )
    merge(existing, _kind_only())
    assert existing == _kind_only()


def test_merge_add_to_existing():
    existing = Config(
        clusters=[NamedCluster(name="kops-blah", cluster=Cluster(server="foo"))],
        users=[NamedUser(name="kops-blah")],
        contexts=[NamedContext(name="kops-blah")],
    )
    merge(existing, _kind_only())
    expected = Config(
        clusters=[
            NamedCluster(name="kops-blah", cluster=Cluster(server="foo")),
            NamedCluster(name="kind-kind"),
        ],
        users=[NamedUser(name="kops-blah"), NamedUser(name="kind-kind")],
        contexts=[NamedContext(name="kops-blah"), NamedContext(name="kind-kind")],
    )
    assert existing == expected


EXISTING_CONFIG = """clusters:
- cluster:
    certificate-authority-data: definitelyacert
    server: https://192.168.9.4:6443
  name: kind-foo
contexts:
- context:
    cluster: kind-foo
    user: kind-foo
  name: kind-foo
current-context: kind-foo
kind: Config
apiVersion: v1
preferences: {}
users:
- name: kind-foo
  user:
    client-certificate-data: seemslegit
    client-key-data: yep
"""

MERGED_EXPECTED = """apiVersion: v1
clusters:
- cluster:
    certificate-authority-data: definitelyacert
    server: https://192.168.9.4:6443
  name: kind-foo
- cluster:
    certificate-authority-data: definitelyacert
    server: https://127.0.0.1:6443
  name: kind-kind
contexts:
- context:
    cluster: kind-foo
    user: kind-foo
  name: kind-foo
- context:
    cluster: kind-kind
    user: kind-kind
  name: kind-kind
current-context: kind-kind
kind: Config
preferences: {}
users:
- name: kind-foo
  user:
    client-certificate-data: seemslegit
    client-key-data: yep
- name: kind-kind
  user:
    client-certificate-data: seemslegit
    client-key-data: yep
"""

SINGLE_EXPECTED = """apiVersion: v1
clusters:
- cluster:
    certificate-authority-data: definitelyacert
    server: https://127.0.0.1:6443
  name: kind-kind
contexts:
- context:
    cluster: kind-kind
    user: kind-kind
  name: kind-kind
current-context: kind-kind
kind: Config
preferences: {}
users:
- name: kind-kind
  user:
    client-certificate-data: seemslegit
    client-key-data: yep
"""


def test_write_merged_normal(tmp_path):
    path = tmp_path / "existing-kubeconfig"
    path.write_text(EXISTING_CONFIG, encoding="utf-8")
    write_merged(_full_kind_config(), str(path))
    assert path.read_text(encoding="utf-8") == MERGED_EXPECTED
    assert not os.path.exists(lock_name(str(path)))


def test_write_merged_bogus_config(tmp_path):
    path = tmp_path / "bogus"
    with pytest.raises(KubeconfigError):
        write_merged(Config(), str(path))
    assert not os.path.exists(lock_name(str(path)))


def test_write_merged_no_existing_file(tmp_path):
    path = tmp_path / "bogus" / "extra-bogus"
    write_merged(_full_kind_config(), str(path))
    assert path.read_text(encoding="utf-8") == SINGLE_EXPECTED


def test_write_merged_already_locked(tmp_path):
    path = tmp_path / "config"
    open(lock_name(str(path)), "w").close()
    with pytest.raises(KubeconfigError, match="failed to lock config file"):
        write_merged(_full_kind_config(), str(path))


def test_write_no_existing_file(tmp_path):
    path = tmp_path / "bogus" / "extra-bogus"
    write(_full_kind_config(), str(path))
    assert path.read_text(encoding="utf-8") == SINGLE_EXPECTED


def test_write_empty_config_writes_empty_file(tmp_path):
    path = tmp_path / "config"
    write(Config(), path)
    assert path.read_text(encoding="utf-8") == ""