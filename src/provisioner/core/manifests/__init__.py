"""Declarative manifest storage shared by the file-backed collaborators."""

from provisioner.core.manifests.store import ManifestStore


__all__ = ["ManifestStore"]
