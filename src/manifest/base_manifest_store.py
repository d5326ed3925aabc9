# src/manifest/base_manifest_store.py — v1
"""Abstract manifest persistence interface."""

from __future__ import annotations

from abc import ABC, abstractmethod

from hubdeploy.core.models import Manifest


class BaseManifestStore(ABC):
    """Unified interface for manifest storage backends."""

    @abstractmethod
    async def load(self) -> Manifest:
        """Load the manifest; an absent manifest loads as empty."""

    @abstractmethod
    async def save(self, manifest: Manifest) -> None:
        """Persist the full manifest."""
