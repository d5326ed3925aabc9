# src/chain/local_chain.py — v1
"""In-process simulated ledger (default CHAIN_BACKEND=local).

Implements Deployer, Hub and ParameterSource against a single in-memory
state. Addresses are derived deterministically from the network name and a
deployment nonce, so two fresh chains produce the same address sequence.
When a state file is given, state is loaded on construction and written
after every transaction, which lets CLI reruns see the same chain.
"""

from __future__ import annotations

import hashlib
import json
import logging
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from hubdeploy.chain.base_chain import BaseDeployer, BaseHubRegistry, BaseParameterSource
from hubdeploy.core.errors import DeploymentReverted, NetworkError, ParameterNotFound

logger = logging.getLogger(__name__)


class LocalChainState(BaseModel):
    """Serializable ledger state."""

    network: str = "localhost"
    nonce: int = 0
    deployments: dict[str, str] = Field(default_factory=dict)
    hub: dict[str, str] = Field(default_factory=dict)
    parameters: dict[str, dict[str, Any]] = Field(default_factory=dict)


class LocalChain(BaseDeployer, BaseHubRegistry, BaseParameterSource):
    """Simulated ledger for local runs and tests.

    Args:
        network: Network name mixed into address derivation.
        state_file: Optional JSON file to persist state across processes.
        revert_on: Contract identifiers whose deployment always reverts.
        offline: When True every call raises NetworkError.
    """

    def __init__(
        self,
        network: str = "localhost",
        state_file: Path | None = None,
        revert_on: set[str] | None = None,
        offline: bool = False,
    ) -> None:
        self._state_file = Path(state_file).expanduser() if state_file else None
        self._state = self._load(network)
        self.revert_on: set[str] = set(revert_on or ())
        self.offline = offline

    @property
    def state(self) -> LocalChainState:
        return self._state

    # ------------------------------------------------------------------
    # Deployer
    # ------------------------------------------------------------------

    async def deploy(self, contract: str, constructor_args: list[Any]) -> str:
        self._check_online()
        if contract in self.revert_on:
            raise DeploymentReverted(contract, "reverted by local chain")

        self._state.nonce += 1
        address = _derive_address(self._state.network, self._state.nonce)
        self._state.deployments[address] = contract
        self._state.parameters.setdefault(address, {})
        self._persist()
        logger.debug(
            "Deployed %s at %s (nonce=%d, args=%s)",
            contract, address, self._state.nonce, constructor_args,
        )
        return address

    # ------------------------------------------------------------------
    # Hub
    # ------------------------------------------------------------------

    async def set_address(self, alias: str, address: str) -> None:
        self._check_online()
        self._state.hub[alias] = address
        self._persist()
        logger.debug("Hub: %s -> %s", alias, address)

    async def get_address(self, alias: str) -> str | None:
        self._check_online()
        return self._state.hub.get(alias)

    # ------------------------------------------------------------------
    # Parameters
    # ------------------------------------------------------------------

    async def read_parameter(self, address: str, key: str) -> Any:
        self._check_online()
        params = self._state.parameters.get(address, {})
        if key not in params:
            raise ParameterNotFound(address, key)
        return params[key]

    async def write_parameter(self, address: str, key: str, value: Any) -> None:
        self._check_online()
        self._state.parameters.setdefault(address, {})[key] = value
        self._persist()

    def seed_parameters(self, address: str, values: dict[str, Any]) -> None:
        """Set parameters directly (test and fixture helper, no transaction)."""
        self._state.parameters.setdefault(address, {}).update(values)
        self._persist()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _load(self, network: str) -> LocalChainState:
        if self._state_file is None or not self._state_file.exists():
            return LocalChainState(network=network)
        try:
            data = json.loads(self._state_file.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise NetworkError(
                f"Local chain state {self._state_file} is corrupt: {exc}"
            ) from exc
        state = LocalChainState(**data)
        if state.network != network:
            logger.warning(
                "Local chain state %s belongs to network '%s', not '%s'",
                self._state_file, state.network, network,
            )
        return state

    def _persist(self) -> None:
        if self._state_file is None:
            return
        self._state_file.parent.mkdir(parents=True, exist_ok=True)
        self._state_file.write_text(
            self._state.model_dump_json(indent=2), encoding="utf-8"
        )

    def _check_online(self) -> None:
        if self.offline:
            raise NetworkError(f"Local chain '{self._state.network}' is offline")


def _derive_address(network: str, nonce: int) -> str:
    """0x-prefixed 20-byte address from sha256(network:nonce)."""
    digest = hashlib.sha256(f"{network}:{nonce}".encode("utf-8")).hexdigest()
    return "0x" + digest[:40]
