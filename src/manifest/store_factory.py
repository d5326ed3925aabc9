# src/manifest/store_factory.py — v1
"""Factory for manifest store instantiation."""

from __future__ import annotations

from typing import TYPE_CHECKING

from hubdeploy.manifest.base_manifest_store import BaseManifestStore

if TYPE_CHECKING:
    from hubdeploy.config.settings import Settings


def create_manifest_store(settings: Settings | None = None) -> BaseManifestStore:
    """Instantiate the configured manifest backend.

    Args:
        settings: Application settings. Defaults to JSON under ./deployments.
    """
    backend = "json" if settings is None else settings.manifest_backend

    if backend == "json":
        from hubdeploy.manifest.json_store import JsonManifestStore

        if settings is None:
            return JsonManifestStore(manifest_dir="deployments")
        return JsonManifestStore(
            manifest_dir=settings.manifest_dir, network=settings.network
        )

    raise ValueError(f"Unsupported manifest backend: {backend!r}")
