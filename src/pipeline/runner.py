# src/pipeline/runner.py — v2
"""Orchestrator runner — drive resolved steps through the gate.

Walks the execution plan one step at a time. For each step:

  - dependencies not all successful       -> BLOCKED (step not attempted)
  - gate says SKIP                        -> SKIPPED
  - gate says FRESH_DEPLOY                -> DEPLOYING -> DEPLOYED | FAILED
  - gate says MIGRATE                     -> MIGRATING -> MIGRATED | FAILED

Every successful deploy or migration is recorded in the manifest (and
saved, when a store is configured) before the next step starts, so a
rerun after a partial failure only retries what did not finish.
Configuration errors are raised before anything is deployed; per-step
errors are isolated to the step and its dependents.
"""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterable

from hubdeploy.core.errors import StepExecutionError
from hubdeploy.core.models import Manifest, ManifestEntry, StepOutcome, StepStatus
from hubdeploy.logging.context import clear_step_context, set_run_context, set_step_context
from hubdeploy.manifest.fingerprint import compute_args_fingerprint
from hubdeploy.pipeline.dag_builder import build_plan
from hubdeploy.pipeline.gate import GateAction, GateDecision, decide
from hubdeploy.pipeline.migration import migrate

if TYPE_CHECKING:
    from hubdeploy.chain.base_chain import BaseDeployer, BaseHubRegistry, BaseParameterSource
    from hubdeploy.manifest.base_manifest_store import BaseManifestStore
    from hubdeploy.pipeline.step import Step

logger = logging.getLogger(__name__)

PENDING_ADDRESS = "<pending>"


@dataclass
class RunResult:
    """Result of a full orchestration run."""

    manifest: Manifest
    run_id: str = ""
    outcomes: dict[str, StepOutcome] = field(default_factory=dict)
    duration_ms: int = 0

    def _names(self, status: StepStatus) -> list[str]:
        return [name for name, o in self.outcomes.items() if o.status is status]

    @property
    def skipped_steps(self) -> list[str]:
        return self._names(StepStatus.SKIPPED)

    @property
    def deployed_steps(self) -> list[str]:
        return self._names(StepStatus.DEPLOYED)

    @property
    def migrated_steps(self) -> list[str]:
        return self._names(StepStatus.MIGRATED)

    @property
    def failed_steps(self) -> list[str]:
        return self._names(StepStatus.FAILED)

    @property
    def blocked_steps(self) -> list[str]:
        return self._names(StepStatus.BLOCKED)

    @property
    def success(self) -> bool:
        return all(o.status.is_success for o in self.outcomes.values())

    @property
    def exit_code(self) -> int:
        return 0 if self.success else 1


@dataclass(frozen=True)
class PlannedStep:
    """A step paired with the gate decision it would get (dry run)."""

    step: Step
    decision: GateDecision


class OrchestratorRunner:
    """Execute deployment steps against a manifest and chain collaborators.

    Args:
        deployer: Submits deployment transactions.
        registry: The Hub alias registry.
        parameter_source: Parameter storage used by migrations.
        manifest_store: Optional store; when set, the manifest is saved
            after every recorded entry.
    """

    def __init__(
        self,
        deployer: BaseDeployer,
        registry: BaseHubRegistry,
        parameter_source: BaseParameterSource,
        manifest_store: BaseManifestStore | None = None,
    ) -> None:
        self._deployer = deployer
        self._registry = registry
        self._parameter_source = parameter_source
        self._manifest_store = manifest_store

    async def run(self, steps: Iterable[Step], manifest: Manifest) -> RunResult:
        """Execute all steps in dependency order.

        Args:
            steps: Step declarations (declaration order breaks ties).
            manifest: Current manifest; updated in place and returned.

        Raises:
            ConfigurationError: Unknown dependency, cycle or duplicate name.
        """
        plan = build_plan(steps)
        start_ns = time.monotonic_ns()
        result = RunResult(manifest=manifest, run_id=uuid.uuid4().hex[:12])
        set_run_context(manifest.network, result.run_id)

        logger.info(
            "Run %s on '%s': %d steps", result.run_id, manifest.network, plan.total_steps
        )

        for step in plan.flat_order:
            set_step_context(step.name, step.target)
            try:
                outcome = await self._run_step(step, manifest, result.outcomes)
            finally:
                clear_step_context()
            result.outcomes[step.name] = outcome

        result.duration_ms = (time.monotonic_ns() - start_ns) // 1_000_000
        logger.info(
            "Run complete: %d deployed, %d migrated, %d skipped, %d failed, %d blocked, %dms",
            len(result.deployed_steps),
            len(result.migrated_steps),
            len(result.skipped_steps),
            len(result.failed_steps),
            len(result.blocked_steps),
            result.duration_ms,
        )
        return result

    async def _run_step(
        self,
        step: Step,
        manifest: Manifest,
        outcomes: dict[str, StepOutcome],
    ) -> StepOutcome:
        outcome = StepOutcome(step_name=step.name, contract_name=step.target)

        blockers = [
            dep for dep in dict.fromkeys(step.dependencies)
            if not outcomes[dep].status.is_success
        ]
        if blockers:
            outcome.status = StepStatus.BLOCKED
            outcome.blocked_by = blockers
            logger.warning(
                "Step '%s' (%s) blocked by: %s", step.name, step.target, blockers
            )
            return outcome

        decision = decide(step, manifest)
        logger.debug("Gate for '%s': %s (%s)", step.name, decision.action.value, decision.reason)

        if decision.action is GateAction.SKIP:
            self._warn_on_args_drift(step, decision.prior)
            outcome.status = StepStatus.SKIPPED
            if decision.prior is not None:
                outcome.address = decision.prior.address
                outcome.version = decision.prior.version
            logger.info("Step '%s' skipped: %s", step.name, decision.reason)
            return outcome

        try:
            if decision.action is GateAction.MIGRATE:
                outcome.status = StepStatus.MIGRATING
                entry = await migrate(
                    step,
                    decision.prior,
                    self._deployer,
                    self._registry,
                    self._parameter_source,
                )
                final = StepStatus.MIGRATED
            else:
                outcome.status = StepStatus.DEPLOYING
                entry = await self._fresh_deploy(step)
                final = StepStatus.DEPLOYED
        except StepExecutionError as exc:
            outcome.status = StepStatus.FAILED
            outcome.error = str(exc)
            logger.error("Step '%s' (%s) failed: %s", step.name, step.target, exc)
            return outcome
        except Exception as exc:
            outcome.status = StepStatus.FAILED
            outcome.error = f"{type(exc).__name__}: {exc}"
            logger.exception(
                "Step '%s' (%s) failed unexpectedly", step.name, step.target
            )
            return outcome

        manifest.record(entry)
        if self._manifest_store is not None:
            await self._manifest_store.save(manifest)

        outcome.status = final
        outcome.address = entry.address
        outcome.version = entry.version
        logger.info(
            "Step '%s' %s: %s at %s (v%s)",
            step.name, final.value, step.target, entry.address, entry.version or "-",
        )
        return outcome

    async def _fresh_deploy(self, step: Step) -> ManifestEntry:
        address = await step.deploy(self._deployer)
        await self._registry.set_address(step.target, address)
        return ManifestEntry(
            contract_name=step.target,
            address=address,
            version=step.version,
            args_fingerprint=compute_args_fingerprint(step.constructor_args),
            implementation=step.contract,
        )

    @staticmethod
    def _warn_on_args_drift(step: Step, prior: ManifestEntry | None) -> None:
        if prior is None or prior.args_fingerprint is None:
            return
        if prior.implementation not in (None, step.contract):
            return
        if prior.args_fingerprint != compute_args_fingerprint(step.constructor_args):
            logger.warning(
                "Step '%s': constructor args changed since '%s' was deployed; "
                "bump the version to redeploy",
                step.name,
                step.target,
            )


def preview(steps: Iterable[Step], manifest: Manifest) -> list[PlannedStep]:
    """Dry run: resolve steps and report the decision each would get.

    Works on a copy of the manifest; later steps see the effect of earlier
    planned deployments (recorded with a placeholder address).
    """
    plan = build_plan(steps)
    shadow = manifest.model_copy(deep=True)
    planned: list[PlannedStep] = []
    for step in plan.flat_order:
        decision = decide(step, shadow)
        planned.append(PlannedStep(step=step, decision=decision))
        if decision.action is not GateAction.SKIP:
            shadow.record(
                ManifestEntry(
                    contract_name=step.target,
                    address=PENDING_ADDRESS,
                    version=step.version,
                    implementation=step.contract,
                )
            )
    return planned


async def run(
    steps: Iterable[Step],
    manifest: Manifest,
    deployer: BaseDeployer,
    registry: BaseHubRegistry,
    parameter_source: BaseParameterSource,
    manifest_store: BaseManifestStore | None = None,
) -> RunResult:
    """Convenience wrapper around OrchestratorRunner.run()."""
    runner = OrchestratorRunner(deployer, registry, parameter_source, manifest_store)
    return await runner.run(steps, manifest)
