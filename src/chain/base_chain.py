# src/chain/base_chain.py — v1
"""Abstract interfaces for the on-chain collaborators.

The orchestrator never talks to a ledger directly; it goes through these
three capabilities. Each call may suspend until the transaction is
confirmed or reverted.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class BaseDeployer(ABC):
    """Submits deployment transactions."""

    @abstractmethod
    async def deploy(self, contract: str, constructor_args: list[Any]) -> str:
        """Deploy contract and return its address.

        Raises:
            DeploymentReverted: The transaction reverted.
            NetworkError: The execution environment is unreachable.
        """


class BaseHubRegistry(ABC):
    """The Hub: maps logical contract aliases to current addresses."""

    @abstractmethod
    async def set_address(self, alias: str, address: str) -> None:
        """Point alias at address."""

    @abstractmethod
    async def get_address(self, alias: str) -> str | None:
        """Current address for alias, or None if unregistered."""


class BaseParameterSource(ABC):
    """Parameter storage readable and writable per implementation address."""

    @abstractmethod
    async def read_parameter(self, address: str, key: str) -> Any:
        """Read key at address.

        Raises:
            ParameterNotFound: No value stored for key at address.
        """

    @abstractmethod
    async def write_parameter(self, address: str, key: str, value: Any) -> None:
        """Write key at address."""
