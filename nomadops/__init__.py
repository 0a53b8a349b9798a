"""nomadops -- GitOps reconciliation core for HashiCorp Nomad."""

__version__ = "0.1.0"
