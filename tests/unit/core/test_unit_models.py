# tests/unit/core/test_unit_models.py — v1
"""Tests for core/models.py and core/errors.py."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from hubdeploy.core.errors import (
    ConfigurationError,
    CyclicDependency,
    DeploymentReverted,
    NetworkError,
    ParameterMigrationFailed,
    StepExecutionError,
    UnknownDependency,
)
from hubdeploy.core.models import Manifest, ManifestEntry, StepStatus
from hubdeploy.core.semver import Version


class TestManifestEntry:
    def test_parsed_version(self):
        entry = ManifestEntry(contract_name="Hub", address="0x1", version="1.2.0")
        assert entry.parsed_version == Version(1, 2, 0)
        assert ManifestEntry(contract_name="Hub", address="0x1").parsed_version is None

    def test_invalid_version(self):
        with pytest.raises(ValidationError):
            ManifestEntry(contract_name="Hub", address="0x1", version="latest")


class TestManifest:
    def test_record_replaces(self):
        m = Manifest()
        m.record(ManifestEntry(contract_name="Hub", address="0x1"))
        m.record(ManifestEntry(contract_name="Hub", address="0x2"))
        assert len(m) == 1
        assert m.get("Hub").address == "0x2"
        assert "Hub" in m
        assert "Other" not in m


class TestStepStatus:
    @pytest.mark.parametrize("status", [StepStatus.SKIPPED, StepStatus.DEPLOYED, StepStatus.MIGRATED])
    def test_success_states(self, status):
        assert status.is_success

    @pytest.mark.parametrize(
        "status",
        [StepStatus.FAILED, StepStatus.BLOCKED, StepStatus.PENDING, StepStatus.DEPLOYING],
    )
    def test_unsuccessful_states(self, status):
        assert not status.is_success


class TestErrorTaxonomy:
    def test_configuration_errors(self):
        assert issubclass(UnknownDependency, ConfigurationError)
        assert issubclass(CyclicDependency, ConfigurationError)

    def test_step_errors(self):
        for cls in (DeploymentReverted, NetworkError, ParameterMigrationFailed):
            assert issubclass(cls, StepExecutionError)

    def test_cycle_message(self):
        err = CyclicDependency(["a", "b", "a"])
        assert "a -> b -> a" in str(err)
