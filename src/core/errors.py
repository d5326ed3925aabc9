# src/core/errors.py — v1
"""Error taxonomy for deployment orchestration.

ConfigurationError subclasses are fatal and raised before any deployment
begins. StepExecutionError subclasses are per-step: the runner marks the
step Failed and blocks its dependents, but independent steps continue.
"""

from __future__ import annotations


class HubDeployError(Exception):
    """Base class for all hubdeploy errors."""


# ------------------------------------------------------------------
# Configuration (fatal, pre-flight)
# ------------------------------------------------------------------


class ConfigurationError(HubDeployError):
    """Raised when the step set or settings are internally inconsistent."""


class UnknownDependency(ConfigurationError):
    """A step names a dependency that is not in the step set."""

    def __init__(self, step: str, dependency: str) -> None:
        self.step = step
        self.dependency = dependency
        super().__init__(
            f"Step '{step}' depends on '{dependency}' which is not registered"
        )


class CyclicDependency(ConfigurationError):
    """The dependency relation contains a cycle."""

    def __init__(self, cycle: list[str]) -> None:
        self.cycle = cycle
        super().__init__(
            f"Cycle detected involving steps: {' -> '.join(cycle)}"
        )


class PlanFileError(ConfigurationError):
    """A plan file is malformed or references an unimportable action."""


# ------------------------------------------------------------------
# Per-step execution
# ------------------------------------------------------------------


class StepExecutionError(HubDeployError):
    """Raised by collaborators when a single step cannot complete."""


class DeploymentReverted(StepExecutionError):
    """The deployment transaction was mined but reverted."""

    def __init__(self, contract: str, reason: str = "") -> None:
        self.contract = contract
        self.reason = reason
        msg = f"Deployment of '{contract}' reverted"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class NetworkError(StepExecutionError):
    """The execution environment could not be reached."""


class ParameterMigrationFailed(StepExecutionError):
    """A carried parameter could not be read from the old implementation or
    written to the new one.

    alias_committed tells whether the Hub alias already points at the new
    address (True only when the failure happened on the write side).
    """

    def __init__(
        self,
        alias: str,
        parameter: str,
        reason: str,
        alias_committed: bool = False,
    ) -> None:
        self.alias = alias
        self.parameter = parameter
        self.alias_committed = alias_committed
        super().__init__(
            f"Parameter '{parameter}' could not be migrated for '{alias}': {reason}"
        )


class ParameterNotFound(KeyError):
    """Raised by a parameter source when a key has no value at an address."""

    def __init__(self, address: str, key: str) -> None:
        self.address = address
        self.key = key
        super().__init__(f"{key} @ {address}")
