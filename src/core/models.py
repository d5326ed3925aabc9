# src/core/models.py — v1
"""Core domain models: ManifestEntry, Manifest, MigrationPlan, StepOutcome."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field, field_validator

from hubdeploy.core.semver import Version, parse_version


class ManifestEntry(BaseModel):
    """Durable record of one deployed logical contract."""

    contract_name: str
    address: str
    version: str | None = None
    args_fingerprint: str | None = None
    implementation: str | None = None
    deployed_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_validator("version")
    @classmethod
    def validate_version(cls, v: str | None) -> str | None:  # noqa: N805
        if v is not None:
            Version.from_string(v)
        return v

    @property
    def parsed_version(self) -> Version | None:
        return parse_version(self.version)


class Manifest(BaseModel):
    """What is currently deployed on a network, keyed by logical contract name.

    Only the orchestrator driver calls record(); everything else reads.
    """

    network: str = "localhost"
    contracts: dict[str, ManifestEntry] = Field(default_factory=dict)

    def get(self, contract_name: str) -> ManifestEntry | None:
        return self.contracts.get(contract_name)

    def record(self, entry: ManifestEntry) -> None:
        """Insert or replace the entry for entry.contract_name."""
        self.contracts[entry.contract_name] = entry

    def __contains__(self, contract_name: object) -> bool:
        return contract_name in self.contracts

    def __len__(self) -> int:
        return len(self.contracts)


@dataclass(frozen=True)
class MigrationPlan:
    """Ephemeral description of one implementation swap behind a Hub alias."""

    from_contract_name: str
    to_contract_name: str
    parameters_to_carry: tuple[str, ...] = ()


class StepStatus(str, Enum):
    """Per-step state in a run. Values after PENDING/DEPLOYING/MIGRATING are terminal."""

    PENDING = "pending"
    DEPLOYING = "deploying"
    MIGRATING = "migrating"
    SKIPPED = "skipped"
    DEPLOYED = "deployed"
    MIGRATED = "migrated"
    FAILED = "failed"
    BLOCKED = "blocked"

    @property
    def is_success(self) -> bool:
        return self in (StepStatus.SKIPPED, StepStatus.DEPLOYED, StepStatus.MIGRATED)


@dataclass
class StepOutcome:
    """Terminal result of one step."""

    step_name: str
    contract_name: str
    status: StepStatus = StepStatus.PENDING
    address: str | None = None
    version: str | None = None
    error: str | None = None
    blocked_by: list[str] = field(default_factory=list)
