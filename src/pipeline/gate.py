# src/pipeline/gate.py — v2
"""Idempotency gate — decide whether a step needs to deploy.

The gate is a pure function of a step and the manifest. It never mutates
the manifest and never touches the chain.

Decision table (first match wins):

  no manifest entry for step.target          -> FRESH_DEPLOY
  step declares no version                   -> SKIP
  entry has no version (legacy)              -> MIGRATE if step.is_successor else FRESH_DEPLOY
  step version > entry version, same major   -> MIGRATE
  step version > entry version, new major    -> MIGRATE if step.is_successor else FRESH_DEPLOY
  otherwise                                  -> SKIP
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from hubdeploy.core.models import Manifest, ManifestEntry
from hubdeploy.pipeline.step import Step


class GateAction(str, Enum):
    SKIP = "skip"
    FRESH_DEPLOY = "fresh_deploy"
    MIGRATE = "migrate"


@dataclass(frozen=True)
class GateDecision:
    """Outcome of the gate for one step."""

    action: GateAction
    prior: ManifestEntry | None = None
    reason: str = ""

    @classmethod
    def skip(cls, prior: ManifestEntry | None, reason: str) -> GateDecision:
        return cls(GateAction.SKIP, prior, reason)

    @classmethod
    def fresh_deploy(cls, prior: ManifestEntry | None, reason: str) -> GateDecision:
        return cls(GateAction.FRESH_DEPLOY, prior, reason)

    @classmethod
    def migrate(cls, prior: ManifestEntry, reason: str) -> GateDecision:
        return cls(GateAction.MIGRATE, prior, reason)


def decide(step: Step, manifest: Manifest) -> GateDecision:
    """Decide skip / fresh deploy / migrate for step against manifest."""
    prior = manifest.get(step.target)
    if prior is None:
        return GateDecision.fresh_deploy(None, f"'{step.target}' not deployed")

    wanted = step.parsed_version
    if wanted is None:
        return GateDecision.skip(prior, f"'{step.target}' deployed, step is unversioned")

    recorded = prior.parsed_version
    if recorded is None:
        if step.is_successor:
            return GateDecision.migrate(
                prior, f"legacy '{step.target}' upgraded to {wanted}"
            )
        return GateDecision.fresh_deploy(
            prior, f"legacy '{step.target}' has no version to carry"
        )

    if wanted > recorded:
        if wanted.same_lineage(recorded) or step.is_successor:
            return GateDecision.migrate(prior, f"{recorded} -> {wanted}")
        return GateDecision.fresh_deploy(
            prior, f"{recorded} -> {wanted} crosses major version"
        )

    return GateDecision.skip(prior, f"'{step.target}' at {recorded}, step at {wanted}")
