"""Kubeconfig, load balancer config, log archive and YAML/TOML patch helpers for local Kubernetes clusters."""

__version__ = "0.1.0"