# src/pipeline/step.py — v2
"""Deployment step — the unit of work in an orchestration run.

A step names the implementation it deploys (contract), the logical name it
is registered under in the Hub (target), the steps it depends on, and its
tags. Versioned successors (e.g. CommitManagerV2) keep the target of their
predecessor (CommitManagerV1) while their own name differs.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Awaitable, Callable

from hubdeploy.core.semver import Version, parse_version

if TYPE_CHECKING:
    from hubdeploy.chain.base_chain import BaseDeployer

DeployAction = Callable[["BaseDeployer", "Step"], Awaitable[str]]


async def deploy_contract(deployer: BaseDeployer, step: Step) -> str:
    """Default deploy action: submit step.contract with its constructor args."""
    return await deployer.deploy(step.contract, list(step.constructor_args))


@dataclass(frozen=True)
class Step:
    """Immutable deployment step declaration."""

    name: str
    target: str = ""
    contract: str = ""
    version: str | None = None
    dependencies: tuple[str, ...] = ()
    tags: frozenset[str] = frozenset()
    constructor_args: tuple[Any, ...] = field(default=(), hash=False)
    carry_parameters: tuple[str, ...] = ()
    upgrade: bool = False
    action: DeployAction = field(default=deploy_contract, compare=False, repr=False)

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Step name must not be empty")
        # Frozen dataclass: normalise via object.__setattr__
        if not self.target:
            object.__setattr__(self, "target", self.name)
        if not self.contract:
            object.__setattr__(self, "contract", self.name)
        object.__setattr__(self, "dependencies", tuple(self.dependencies))
        object.__setattr__(self, "tags", frozenset(self.tags))
        object.__setattr__(self, "constructor_args", tuple(self.constructor_args))
        object.__setattr__(self, "carry_parameters", tuple(self.carry_parameters))
        parse_version(self.version)

    @property
    def parsed_version(self) -> Version | None:
        return parse_version(self.version)

    @property
    def is_successor(self) -> bool:
        """True for upgrade steps and for steps registered under another step's alias."""
        return self.upgrade or self.target != self.name

    async def deploy(self, deployer: BaseDeployer) -> str:
        """Run this step's deploy action and return the new address."""
        return await self.action(deployer, self)
