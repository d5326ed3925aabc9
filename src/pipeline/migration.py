# src/pipeline/migration.py — v2
"""Migration executor — swap the implementation behind a Hub alias.

  1. Read every carried parameter from the old implementation.
  2. Deploy the new implementation.
  3. Re-register the Hub alias to the new address.
  4. Write (or confirm) each carried parameter at the new address.
  5. Return the new ManifestEntry.

Reads happen before anything is submitted, so a missing parameter costs
no transaction and leaves the Hub untouched. Nothing here rolls back a
confirmed transaction.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from hubdeploy.core.errors import ParameterMigrationFailed, ParameterNotFound
from hubdeploy.core.models import ManifestEntry, MigrationPlan
from hubdeploy.manifest.fingerprint import compute_args_fingerprint

if TYPE_CHECKING:
    from hubdeploy.chain.base_chain import BaseDeployer, BaseHubRegistry, BaseParameterSource
    from hubdeploy.pipeline.step import Step

logger = logging.getLogger(__name__)

_MISSING = object()


def build_migration_plan(step: Step, prior: ManifestEntry) -> MigrationPlan:
    """Describe the swap from prior's implementation to step.contract."""
    return MigrationPlan(
        from_contract_name=prior.implementation or prior.contract_name,
        to_contract_name=step.contract,
        parameters_to_carry=tuple(dict.fromkeys(step.carry_parameters)),
    )


async def migrate(
    step: Step,
    prior: ManifestEntry,
    deployer: BaseDeployer,
    registry: BaseHubRegistry,
    parameter_source: BaseParameterSource,
) -> ManifestEntry:
    """Deploy step's implementation and rewire prior's alias to it.

    Raises:
        DeploymentReverted / NetworkError: From the deployer or Hub.
        ParameterMigrationFailed: A carried parameter could not be read
            from the old address or written to the new one.
    """
    plan = build_migration_plan(step, prior)
    alias = prior.contract_name
    logger.info(
        "Migrating '%s': %s@%s -> %s (carry %d parameters)",
        alias,
        plan.from_contract_name,
        prior.address,
        plan.to_contract_name,
        len(plan.parameters_to_carry),
    )

    carried: dict[str, Any] = {}
    for key in plan.parameters_to_carry:
        try:
            carried[key] = await parameter_source.read_parameter(prior.address, key)
        except ParameterNotFound as exc:
            raise ParameterMigrationFailed(
                alias, key, f"not set at {prior.address}"
            ) from exc
        except (TypeError, ValueError) as exc:
            raise ParameterMigrationFailed(
                alias, key, f"unreadable at {prior.address}: {exc}"
            ) from exc

    new_address = await step.deploy(deployer)
    logger.info("Deployed %s at %s", plan.to_contract_name, new_address)

    await registry.set_address(alias, new_address)
    logger.info("Hub alias '%s' -> %s", alias, new_address)

    for key, value in carried.items():
        await _write_or_confirm(parameter_source, alias, new_address, key, value)

    return ManifestEntry(
        contract_name=alias,
        address=new_address,
        version=step.version,
        args_fingerprint=compute_args_fingerprint(step.constructor_args),
        implementation=step.contract,
    )


async def _write_or_confirm(
    parameter_source: BaseParameterSource,
    alias: str,
    address: str,
    key: str,
    value: Any,
) -> None:
    try:
        current = await parameter_source.read_parameter(address, key)
    except ParameterNotFound:
        current = _MISSING

    if current == value:
        logger.debug("Parameter %s already %r at %s", key, value, address)
        return

    try:
        await parameter_source.write_parameter(address, key, value)
    except (TypeError, ValueError) as exc:
        raise ParameterMigrationFailed(
            alias, key, f"write rejected at {address}: {exc}", alias_committed=True
        ) from exc
    logger.debug("Parameter %s = %r carried to %s", key, value, address)

