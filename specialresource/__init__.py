"""Manifest, kernel-affinity, waiting and upgrade helpers for special resources on Kubernetes."""

__version__ = "0.1.0"