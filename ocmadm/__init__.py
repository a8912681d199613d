"""Preflight checks, kubeconfig handling and klusterlet join helpers for Open Cluster Management."""

__version__ = "0.1.0"