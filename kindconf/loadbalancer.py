"""Configuration for the external control-plane load balancer."""

from __future__ import annotations

from dataclasses import dataclass, field

IMAGE = "kindest/haproxy:v20200708-548e36db"
"""The load balancer image:tag."""

CONFIG_PATH = "/usr/local/etc/haproxy/haproxy.cfg"
"""The path of the config file inside the image."""

_PREAMBLE = """# generated by kind
global
  log /dev/log local0
  log /dev/log local1 notice
  daemon

resolvers docker
  nameserver dns 127.0.0.11:53

defaults
  log global
  mode tcp
  option dontlognull
  # timeouts are not tuned
  timeout connect 5000
  timeout client 50000
  timeout server 50000
  # allow to boot despite dns don't resolve backends
  default-server init-addr none

"""


@dataclass
class ConfigData:
    """Values supplied to the load balancer config."""

    control_plane_port: int
    backend_servers: dict[str, str] = field(default_factory=dict)
    ipv6: bool = False


def config(data: ConfigData) -> str:
    """Render the haproxy configuration for data; backends are sorted by name."""
    port = data.control_plane_port
    family = "ipv6" if data.ipv6 else "ipv4"
    ipv6_bind = f"  bind :::{port};\n" if data.ipv6 else "  \n"
    servers = "".join(
        f"\n  server {name} {address} check check-ssl verify none "
        f"resolvers docker resolve-prefer {family}"
        for name, address in sorted(data.backend_servers.items())
    )
    frontend = (
        "frontend control-plane\n"
        f"  bind *:{port}\n"
        f"{ipv6_bind}"
        "  default_backend kube-apiservers\n"
        "\n"
    )
    backend = (
        "backend kube-apiservers\n"
        "  option httpchk GET /healthz\n"
        "  # backend certificates are not verified (!)\n"
        f"  {servers}\n"
    )
    return _PREAMBLE + frontend + backend