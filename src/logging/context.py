# src/logging/context.py — v2
"""Contextual logging support — attach network, run_id, step and contract to log records."""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

# Set once per orchestration run.
_network: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "network", default=None
)
_run_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "run_id", default=None
)
# Set around each step.
_step: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "step", default=None
)
_contract: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "contract", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    network: str | None = None
    run_id: str | None = None
    step: str | None = None
    contract: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        network=_network.get(),
        run_id=_run_id.get(),
        step=_step.get(),
        contract=_contract.get(),
    )


def set_run_context(network: str, run_id: str) -> None:
    """Set run-level context."""
    _network.set(network)
    _run_id.set(run_id)


def set_step_context(step: str, contract: str | None = None) -> None:
    """Set step-level context (called per step execution)."""
    _step.set(step)
    _contract.set(contract)


def clear_step_context() -> None:
    _step.set(None)
    _contract.set(None)


def clear_context() -> None:
    """Reset all context variables."""
    _network.set(None)
    _run_id.set(None)
    clear_step_context()
