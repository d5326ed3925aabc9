# src/manifest/json_store.py — v1
"""JSON file-based manifest store (default MANIFEST_BACKEND=json).

One file per network: <manifest_dir>/<network>_contracts.json.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from hubdeploy.core.errors import ConfigurationError
from hubdeploy.core.models import Manifest
from hubdeploy.manifest.base_manifest_store import BaseManifestStore

logger = logging.getLogger(__name__)


class JsonManifestStore(BaseManifestStore):
    """File-based manifest store using a single JSON document."""

    def __init__(self, manifest_dir: Path, network: str = "localhost") -> None:
        self._root = Path(manifest_dir).expanduser()
        self._network = network

    @property
    def path(self) -> Path:
        safe_network = self._network.replace("/", "_").replace("\\", "_")
        return self._root / f"{safe_network}_contracts.json"

    async def load(self) -> Manifest:
        """Load manifest for the configured network."""
        path = self.path
        if not path.exists():
            logger.info("No manifest at %s, starting empty", path)
            return Manifest(network=self._network)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            manifest = Manifest(**data)
        except (json.JSONDecodeError, ValidationError) as exc:
            raise ConfigurationError(f"Manifest {path} is unreadable: {exc}") from exc

        if manifest.network != self._network:
            raise ConfigurationError(
                f"Manifest {path} records network '{manifest.network}', "
                f"expected '{self._network}'"
            )
        logger.debug("Loaded manifest %s with %d entries", path, len(manifest))
        return manifest

    async def save(self, manifest: Manifest) -> None:
        """Write manifest atomically (temp file + rename)."""
        path = self.path
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(".json.tmp")
        tmp.write_text(manifest.model_dump_json(indent=2), encoding="utf-8")
        tmp.replace(path)
