# tests/unit/pipeline/test_unit_step.py — v2
"""Tests for pipeline/step.py — Step defaults and deploy action."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from hubdeploy.pipeline.step import Step


class TestStep:
    def test_defaults_from_name(self):
        step = Step(name="ParametersStorage")
        assert step.target == "ParametersStorage"
        assert step.contract == "ParametersStorage"
        assert step.version is None
        assert step.parsed_version is None

    def test_successor_keeps_target(self):
        step = Step(name="CommitManagerV2", target="CommitManagerV1", version="2.0.0")
        assert step.target == "CommitManagerV1"
        assert step.contract == "CommitManagerV2"
        assert str(step.parsed_version) == "2.0.0"

    def test_is_successor(self):
        assert Step(name="CommitManagerV2", target="CommitManagerV1").is_successor
        assert Step(name="CommitManagerV1", upgrade=True).is_successor
        assert not Step(name="CommitManagerV1").is_successor

    def test_collections_are_normalised(self):
        step = Step(name="s", dependencies=["a", "b"], tags=["x"], constructor_args=[1])
        assert step.dependencies == ("a", "b")
        assert step.tags == frozenset({"x"})
        assert step.constructor_args == (1,)

    def test_hashable_with_structured_constructor_args(self):
        step = Step(name="Token", constructor_args=[["0xabc", "0xdef"], {"decimals": 18}])
        twin = Step(name="Token", constructor_args=[["0xabc", "0xdef"], {"decimals": 18}])
        assert {step, twin} == {step}
        assert step != Step(name="Token", constructor_args=[{"decimals": 6}])

    def test_empty_name_rejected(self):
        with pytest.raises(ValueError, match="name"):
            Step(name="")

    def test_invalid_version_rejected(self):
        with pytest.raises(ValueError, match="Invalid version"):
            Step(name="s", version="1.x")

    @pytest.mark.asyncio
    async def test_default_action_deploys_contract_with_args(self):
        deployer = AsyncMock()
        deployer.deploy = AsyncMock(return_value="0xabc")
        step = Step(name="Token", contract="ERC20Token", constructor_args=("TRAC", 18))

        address = await step.deploy(deployer)

        assert address == "0xabc"
        deployer.deploy.assert_awaited_once_with("ERC20Token", ["TRAC", 18])

    @pytest.mark.asyncio
    async def test_custom_action(self):
        async def action(deployer, step):
            return f"0x{step.name.lower()}"

        step = Step(name="Proxy", action=action)
        assert await step.deploy(AsyncMock()) == "0xproxy"
