# src/chain/chain_factory.py — v1
"""Factory for chain backend instantiation."""

from __future__ import annotations

from typing import TYPE_CHECKING

from hubdeploy.chain.local_chain import LocalChain

if TYPE_CHECKING:
    from hubdeploy.config.settings import Settings


def create_chain(settings: Settings | None = None) -> LocalChain:
    """Instantiate the configured chain backend.

    The returned object provides the Deployer, Hub and ParameterSource
    capabilities.

    Args:
        settings: Application settings. Defaults to an ephemeral local chain.
    """
    if settings is None:
        return LocalChain()

    if settings.chain_backend == "local":
        return LocalChain(
            network=settings.network,
            state_file=settings.chain_state_file,
        )

    raise ValueError(f"Unsupported chain backend: {settings.chain_backend!r}")
