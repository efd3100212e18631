from kindconf.loadbalancer import ConfigData, config


def _server_lines(text):
    return [line for line in text.splitlines() if line.lstrip().startswith("server ")]


def test_ipv4_config_binds_and_sorts_backends():
    data = ConfigData(
        control_plane_port=6443,
        backend_servers={"b-node": "10.0.0.2:6443", "a-node": "10.0.0.1:6443"},
        ipv6=False,
    )
    out = config(data)
    assert out.startswith("# generated by kind\n")
    assert "  bind *:6443\n" in out
    assert "bind :::" not in out
    assert _server_lines(out) == [
        "  server a-node 10.0.0.1:6443 check check-ssl verify none resolvers docker resolve-prefer ipv4",
        "  server b-node 10.0.0.2:6443 check check-ssl verify none resolvers docker resolve-prefer ipv4",
    ]


def test_ipv6_config_adds_bind_and_prefers_ipv6():
    data = ConfigData(
        control_plane_port=7000,
        backend_servers={"cp1": "[fd00::1]:6443"},
        ipv6=True,
    )
    out = config(data)
    assert "  bind *:7000\n  bind :::7000;\n  default_backend kube-apiservers\n" in out
    lines = _server_lines(out)
    assert len(lines) == 1
    assert lines[0].endswith("resolve-prefer ipv6")
    assert "[fd00::1]:6443" in lines[0]


def test_no_backends_has_no_server_lines():
    out = config(ConfigData(control_plane_port=6443))
    assert _server_lines(out) == []
    assert out.endswith("\n")
    assert "backend kube-apiservers\n  option httpchk GET /healthz\n" in out


def test_frontend_precedes_backend():
    out = config(ConfigData(control_plane_port=6443, backend_servers={"x": "1.2.3.4:6443"}))
    assert out.index("frontend control-plane") < out.index("backend kube-apiservers")
    assert out.count("default_backend kube-apiservers") == 1