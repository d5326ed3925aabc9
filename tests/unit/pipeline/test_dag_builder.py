# tests/unit/pipeline/test_dag_builder.py — v2
"""Tests for pipeline/dag_builder.py — step resolution and topological sort."""

from __future__ import annotations

import random

import pytest

from hubdeploy.core.errors import ConfigurationError, CyclicDependency, UnknownDependency
from hubdeploy.pipeline.dag_builder import ExecutionPlan, build_plan, resolve
from hubdeploy.pipeline.step import Step


def _steps(dep_map: dict[str, list[str]]) -> list[Step]:
    return [Step(name=name, dependencies=tuple(deps)) for name, deps in dep_map.items()]


def _names(steps: list[Step]) -> list[str]:
    return [s.name for s in steps]


def _random_dag(seed: int, size: int) -> list[Step]:
    """Random DAG: each node may only depend on nodes generated before it,
    then the declaration order is shuffled."""
    rng = random.Random(seed)
    names = [f"s{i}" for i in range(size)]
    dep_map = {
        name: rng.sample(names[:idx], k=rng.randint(0, min(idx, 4)))
        for idx, name in enumerate(names)
    }
    rng.shuffle(names)
    return [Step(name=n, dependencies=tuple(dep_map[n])) for n in names]


def _transitive_deps(steps: list[Step], name: str) -> set[str]:
    by_name = {s.name: s for s in steps}
    seen: set[str] = set()
    stack = list(by_name[name].dependencies)
    while stack:
        dep = stack.pop()
        if dep not in seen:
            seen.add(dep)
            stack.extend(by_name[dep].dependencies)
    return seen


class TestBuildPlan:
    def test_empty(self):
        plan = build_plan([])
        assert plan.total_steps == 0
        assert plan.stages == []
        assert plan.flat_order == []

    def test_single_step_no_deps(self):
        plan = build_plan(_steps({"Hub": []}))
        assert plan.step_names == ["Hub"]
        assert len(plan.stages) == 1

    def test_linear_chain(self):
        order = _names(resolve(_steps({"c": ["b"], "b": ["a"], "a": []})))
        assert order == ["a", "b", "c"]

    def test_independent_steps_share_a_stage(self):
        plan = build_plan(_steps({
            "Hub": [],
            "ParametersStorage": ["Hub"],
            "ServiceAgreementStorageV1": ["Hub"],
        }))
        assert _names(plan.stages[0]) == ["Hub"]
        assert _names(plan.stages[1]) == ["ParametersStorage", "ServiceAgreementStorageV1"]

    def test_ties_follow_declaration_order(self):
        order = _names(resolve(_steps({"zeta": [], "alpha": [], "mid": []})))
        assert order == ["zeta", "alpha", "mid"]

    def test_order_is_stable_across_calls(self):
        steps = _random_dag(seed=7, size=25)
        assert _names(resolve(steps)) == _names(resolve(steps))

    def test_diamond(self):
        order = _names(resolve(_steps({
            "d": ["b", "c"], "b": ["a"], "c": ["a"], "a": [],
        })))
        assert order.index("a") < order.index("b") < order.index("d")
        assert order.index("c") < order.index("d")

    def test_duplicate_dependency_counts_once(self):
        order = _names(resolve(_steps({"a": [], "b": ["a", "a"]})))
        assert order == ["a", "b"]

    def test_duplicate_step_name_raises(self):
        with pytest.raises(ConfigurationError, match="Duplicate"):
            build_plan([Step(name="Hub"), Step(name="Hub")])


class TestResolveErrors:
    def test_unknown_dependency(self):
        with pytest.raises(UnknownDependency, match="not registered") as exc_info:
            resolve(_steps({"CommitManagerV1": ["StakingV2"]}))
        assert exc_info.value.step == "CommitManagerV1"
        assert exc_info.value.dependency == "StakingV2"

    def test_unknown_dependency_is_configuration_error(self):
        with pytest.raises(ConfigurationError):
            resolve(_steps({"a": ["missing"]}))

    def test_two_cycle(self):
        with pytest.raises(CyclicDependency, match="Cycle") as exc_info:
            resolve(_steps({"a": ["b"], "b": ["a"]}))
        assert set(exc_info.value.cycle) == {"a", "b"}

    def test_self_dependency(self):
        with pytest.raises(CyclicDependency) as exc_info:
            resolve(_steps({"a": ["a"]}))
        assert "a" in exc_info.value.cycle

    def test_cycle_behind_valid_prefix(self):
        with pytest.raises(CyclicDependency) as exc_info:
            resolve(_steps({
                "root": [], "x": ["root", "z"], "y": ["x"], "z": ["y"], "free": [],
            }))
        members = set(exc_info.value.cycle)
        assert members == {"x", "y", "z"}
        assert "root" not in members

    @pytest.mark.parametrize("seed", range(10))
    def test_random_graph_with_back_edge_always_raises(self, seed):
        steps = _random_dag(seed=seed, size=12)
        order = _names(resolve(steps))
        # Make the first step depend on the last one: closes a cycle
        # whenever the last step transitively depends on the first.
        last = order[-1]
        first = next(iter(_transitive_deps(steps, last) or {last}))
        patched = [
            Step(name=s.name, dependencies=s.dependencies + (last,))
            if s.name == first else s
            for s in steps
        ]
        with pytest.raises(CyclicDependency):
            resolve(patched)


class TestResolveProperty:
    @pytest.mark.parametrize("seed", range(25))
    def test_every_step_follows_its_transitive_dependencies(self, seed):
        steps = _random_dag(seed=seed, size=random.Random(seed).randint(1, 30))
        order = _names(resolve(steps))
        assert sorted(order) == sorted(s.name for s in steps)
        index = {name: i for i, name in enumerate(order)}
        for step in steps:
            for dep in _transitive_deps(steps, step.name):
                assert index[dep] < index[step.name]


class TestExecutionPlan:
    def test_flat_order(self):
        a, b, c = Step(name="a"), Step(name="b"), Step(name="c")
        plan = ExecutionPlan(stages=[[a, b], [c]])
        assert plan.flat_order == [a, b, c]
        assert plan.total_steps == 3
