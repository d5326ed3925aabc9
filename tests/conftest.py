# tests/conftest.py — v2
"""Shared test fixtures for unit tests.

Provides an in-process local chain, empty manifests and the reference
step set (Hub, ParametersStorage, ServiceAgreementStorageV1,
CommitManagerV1 and its V2 successor). No external services.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from hubdeploy.chain.local_chain import LocalChain
from hubdeploy.core.models import Manifest
from hubdeploy.pipeline.step import Step

COMMIT_MANAGER_PARAMETERS = ("r0", "r1", "commitWindowDurationPerc")


# === FIXTURES: Steps ===


@pytest.fixture
def base_steps() -> list[Step]:
    """First-generation network: Hub, storages and CommitManagerV1."""
    return [
        Step(name="Hub", tags={"Hub"}),
        Step(name="ParametersStorage", dependencies=("Hub",), tags={"ParametersStorage"}),
        Step(
            name="ServiceAgreementStorageV1",
            dependencies=("Hub",),
            tags={"ServiceAgreementStorageV1"},
        ),
        Step(
            name="CommitManagerV1",
            version="1.0.0",
            dependencies=("Hub", "ParametersStorage", "ServiceAgreementStorageV1"),
            tags={"CommitManagerV1"},
        ),
    ]


@pytest.fixture
def commit_manager_v2() -> Step:
    """V2 implementation registered under the V1 Hub alias."""
    return Step(
        name="CommitManagerV2",
        target="CommitManagerV1",
        contract="CommitManagerV2",
        version="2.0.0",
        dependencies=("Hub", "ParametersStorage", "ServiceAgreementStorageV1"),
        tags={"CommitManagerV2", "v2"},
        carry_parameters=COMMIT_MANAGER_PARAMETERS,
        upgrade=True,
    )


# === FIXTURES: Chain + manifest ===


@pytest.fixture
def local_chain() -> LocalChain:
    """Ephemeral in-memory chain."""
    return LocalChain(network="hardhat")


@pytest.fixture
def empty_manifest() -> Manifest:
    return Manifest(network="hardhat")


@pytest.fixture
def tmp_manifest_dir(tmp_path: Path) -> Path:
    """Temporary manifest directory."""
    out = tmp_path / "deployments"
    out.mkdir()
    return out
