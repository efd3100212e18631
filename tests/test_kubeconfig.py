import pytest

from kindconf.kubeconfig import (
    Cluster,
    Config,
    Context,
    KubeconfigError,
    NamedCluster,
    NamedContext,
    NamedUser,
    check_kubeadm_expectations,
    encode,
    kind_cluster_key,
    kind_from_raw_kubeadm,
    read,
)

A_CONFIG = """apiVersion: v1
clusters:
- cluster:
    certificate-authority-data: definitelyacert
    server: https://192.168.9.4:6443
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
    client-key-data: yup
"""

RAW_KUBEADM = """apiVersion: v1
clusters:
- cluster:
    certificate-authority-data: definitelyacert
    server: https://192.168.9.4:6443
  name: kind
contexts:
- context:
    cluster: kind
    user: kubernetes-admin
  name: kubernetes-admin@kind
current-context: kubernetes-admin@kind
kind: Config
preferences: {}
users:
- name: kubernetes-admin
  user:
    client-certificate-data: seemslegit
    client-key-data: yep
"""


def test_kind_cluster_key():
    assert kind_cluster_key("foobar") == "kind-foobar"


def _sized(clusters, contexts, users):
    return Config(
        clusters=[NamedCluster() for _ in range(clusters)],
        contexts=[NamedContext() for _ in range(contexts)],
        users=[NamedUser() for _ in range(users)],
    )


@pytest.mark.parametrize(
    "cfg",
    [
        _sized(5, 5, 5),
        _sized(1, 1, 2),
        _sized(2, 1, 1),
        _sized(1, 2, 1),
    ],
    ids=["too many of all", "too many users", "too many clusters", "too many contexts"],
)
def test_check_kubeadm_expectations_errors(cfg):
    with pytest.raises(KubeconfigError):
        check_kubeadm_expectations(cfg)


def test_check_kubeadm_expectations_just_right():
    assert check_kubeadm_expectations(_sized(1, 1, 1)) is None


def test_encode_roundtrip():
    cfg = kind_from_raw_kubeadm(A_CONFIG, "kind", "")
    assert encode(cfg) == A_CONFIG


def test_encode_empty():
    assert encode(Config()) == ""


def test_kind_from_raw_kubeadm_bad_config():
    with pytest.raises(KubeconfigError):
        kind_from_raw_kubeadm("\t", "kind", "")


def test_kind_from_raw_kubeadm_valid_config():
    server = "https://127.0.0.1:6443"
    expected = Config(
        clusters=[
            NamedCluster(
                name="kind-kind",
                cluster=Cluster(
                    server=server,
                    other_fields={"certificate-authority-data": "definitelyacert"},
                ),
            )
        ],
        contexts=[
            NamedContext(
                name="kind-kind",
                context=Context(user="kind-kind", cluster="kind-kind"),
            )
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
    assert kind_from_raw_kubeadm(RAW_KUBEADM, "kind", server) == expected


def test_kind_from_raw_kubeadm_keeps_server_when_unset():
    cfg = kind_from_raw_kubeadm(RAW_KUBEADM, "kind", "")
    assert cfg.clusters[0].cluster.server == "https://192.168.9.4:6443"


def test_dict_roundtrip():
    cfg = kind_from_raw_kubeadm(RAW_KUBEADM, "kind", "")
    assert Config.from_dict(cfg.to_dict()) == cfg


def test_from_dict_rejects_non_mapping():
    with pytest.raises(KubeconfigError):
        Config.from_dict(["not", "a", "mapping"])


def test_read_missing_file(tmp_path):
    assert read(tmp_path / "missing") == Config()


def test_read_existing_file(tmp_path):
    path = tmp_path / "config"
    path.write_text(A_CONFIG)
    cfg = read(path)
    assert cfg.current_context == "kind-kind"
    assert encode(cfg) == A_CONFIG